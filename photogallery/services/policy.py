"""Access policy for every gallery, image, comment and user action.

``decide`` is a pure function of the actor, the action and the target. The
rules, in precedence order:

1. Anonymous actors are denied every mutating action. Read-only listings are
   allowed and the caller renders them empty with a "please log in" message.
2. Deleting a gallery that still holds images is denied for every role.
3. Admins may do anything except delete their own account.
4. Other users may create galleries, list and browse what they own, view
   images, and change galleries/images whose effective owner they are.
5. Comments may be created, edited and deleted by any logged-in user.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Any, Optional

from photogallery.core.errors import (
    AuthenticationError,
    AuthorizationError,
    StructuralGuardError,
)

audit = logging.getLogger("audit")


class Action(str, enum.Enum):
    GALLERY_LIST = "gallery-list"
    GALLERY_BROWSE = "gallery-browse"
    GALLERY_CREATE = "gallery-create"
    GALLERY_UPDATE = "gallery-update"
    GALLERY_DELETE = "gallery-delete"
    IMAGE_LIST = "image-list"
    IMAGE_VIEW = "image-view"
    IMAGE_CREATE = "image-create"
    IMAGE_UPDATE = "image-update"
    IMAGE_DELETE = "image-delete"
    COMMENT_CREATE = "comment-create"
    COMMENT_EDIT = "comment-edit"
    COMMENT_DELETE = "comment-delete"
    USER_LIST = "user-list"
    USER_CREATE = "user-create"
    USER_DELETE = "user-delete"


class Decision(enum.Enum):
    ALLOW = "allow"
    DENY = "deny"


READ_ONLY_LISTINGS = frozenset({Action.GALLERY_LIST, Action.GALLERY_BROWSE, Action.IMAGE_LIST})

# Non-admins may do these whenever they are logged in
_ANY_AUTHENTICATED = frozenset(
    {
        Action.GALLERY_CREATE,
        Action.IMAGE_VIEW,
        Action.COMMENT_CREATE,
        Action.COMMENT_EDIT,
        Action.COMMENT_DELETE,
    }
)

# Non-admins may do these only on what they own; image-create targets the gallery
_OWNER_ONLY = frozenset(
    {
        Action.GALLERY_UPDATE,
        Action.GALLERY_DELETE,
        Action.IMAGE_CREATE,
        Action.IMAGE_UPDATE,
        Action.IMAGE_DELETE,
    }
)

_FORBIDDEN_MESSAGES = {
    Action.GALLERY_UPDATE: "Forbidden: you can only edit your own galleries.",
    Action.GALLERY_DELETE: "Forbidden: you can only delete your own galleries.",
    Action.IMAGE_CREATE: "Forbidden: you can only add images to your own galleries.",
    Action.IMAGE_UPDATE: "Unauthorized: You don't have permission to edit this image.",
    Action.IMAGE_DELETE: "Unauthorized: You don't have permission to delete this image.",
    Action.USER_LIST: "Access denied. Admins only.",
    Action.USER_CREATE: "Access denied. Admins only.",
    Action.USER_DELETE: "Access denied. Admins only.",
}


class DenialKind(enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    STRUCTURAL = "structural"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class Denial:
    kind: DenialKind
    reason: str


def is_admin(actor: Any) -> bool:
    return actor is not None and bool(getattr(actor, "is_admin", False))


def effective_owner_id(target: Any) -> Optional[int]:
    """Owner of a gallery, or of an image through its gallery."""
    if target is None:
        return None
    if hasattr(target, "OwnerID"):
        return target.OwnerID
    gallery = getattr(target, "gallery", None)
    if gallery is not None:
        return gallery.OwnerID
    return None


def evaluate(actor: Any, action: Action, target: Any = None, *, image_count: int = 0) -> Optional[Denial]:
    """Return None when the action is allowed, else why it is not."""
    if actor is None:
        if action in READ_ONLY_LISTINGS:
            return None
        return Denial(DenialKind.UNAUTHENTICATED, "Unauthorized: You must be logged in.")

    if action is Action.GALLERY_DELETE and image_count > 0:
        return Denial(DenialKind.STRUCTURAL, "Cannot delete gallery: gallery is not empty.")

    if is_admin(actor):
        if action is Action.USER_DELETE and target is not None and target.UserID == actor.UserID:
            return Denial(DenialKind.FORBIDDEN, "You cannot delete your own account.")
        return None

    if action in READ_ONLY_LISTINGS or action in _ANY_AUTHENTICATED:
        return None
    if action in _OWNER_ONLY:
        owner_id = effective_owner_id(target)
        if owner_id is not None and owner_id == actor.UserID:
            return None
    return Denial(DenialKind.FORBIDDEN, _FORBIDDEN_MESSAGES.get(action, "Forbidden."))


def decide(actor: Any, action: Action, target: Any = None, *, image_count: int = 0) -> Decision:
    if evaluate(actor, action, target, image_count=image_count) is None:
        return Decision.ALLOW
    return Decision.DENY


def enforce(actor: Any, action: Action, target: Any = None, *, image_count: int = 0) -> None:
    """Raise the matching handler error when the policy denies the action."""
    denial = evaluate(actor, action, target, image_count=image_count)
    if denial is None:
        return
    audit.info(
        "policy.denied",
        extra={
            "action": action.value,
            "actor": getattr(actor, "Username", None),
            "kind": denial.kind.value,
        },
    )
    if denial.kind is DenialKind.UNAUTHENTICATED:
        raise AuthenticationError(denial.reason)
    if denial.kind is DenialKind.STRUCTURAL:
        raise StructuralGuardError(denial.reason)
    raise AuthorizationError(denial.reason)
