from types import SimpleNamespace

import pytest

from photogallery.core.errors import AuthenticationError, AuthorizationError, StructuralGuardError
from photogallery.services.policy import (
    READ_ONLY_LISTINGS,
    Action,
    Decision,
    decide,
    effective_owner_id,
    enforce,
)

ADMIN = SimpleNamespace(UserID=1, Username="admin", is_admin=True)
ALICE = SimpleNamespace(UserID=2, Username="alice", is_admin=False)
BOB = SimpleNamespace(UserID=3, Username="bob", is_admin=False)

ALICE_GALLERY = SimpleNamespace(GalleryID=10, OwnerID=ALICE.UserID)
ALICE_IMAGE = SimpleNamespace(ImageID=100, gallery=ALICE_GALLERY)


@pytest.mark.parametrize("action", list(Action))
def test_anonymous_denied_everything_but_listings(action):
    expected = Decision.ALLOW if action in READ_ONLY_LISTINGS else Decision.DENY
    assert decide(None, action, ALICE_GALLERY) is expected


def test_admin_cannot_delete_self():
    assert decide(ADMIN, Action.USER_DELETE, ADMIN) is Decision.DENY
    assert decide(ADMIN, Action.USER_DELETE, ALICE) is Decision.ALLOW


def test_admin_may_change_anything():
    for action in (Action.GALLERY_UPDATE, Action.IMAGE_UPDATE, Action.IMAGE_DELETE, Action.USER_CREATE):
        target = ALICE_IMAGE if action.value.startswith("image") else ALICE_GALLERY
        assert decide(ADMIN, action, target) is Decision.ALLOW


def test_non_owner_cannot_change_gallery_or_image():
    assert decide(BOB, Action.GALLERY_UPDATE, ALICE_GALLERY) is Decision.DENY
    assert decide(BOB, Action.GALLERY_DELETE, ALICE_GALLERY) is Decision.DENY
    assert decide(BOB, Action.IMAGE_UPDATE, ALICE_IMAGE) is Decision.DENY
    assert decide(BOB, Action.IMAGE_DELETE, ALICE_IMAGE) is Decision.DENY
    assert decide(BOB, Action.IMAGE_CREATE, ALICE_GALLERY) is Decision.DENY


def test_owner_may_change_own_things():
    assert decide(ALICE, Action.GALLERY_UPDATE, ALICE_GALLERY) is Decision.ALLOW
    assert decide(ALICE, Action.IMAGE_UPDATE, ALICE_IMAGE) is Decision.ALLOW
    assert decide(ALICE, Action.IMAGE_CREATE, ALICE_GALLERY) is Decision.ALLOW


def test_empty_gallery_delete_allowed_for_owner_only():
    assert decide(ALICE, Action.GALLERY_DELETE, ALICE_GALLERY, image_count=0) is Decision.ALLOW


def test_non_empty_gallery_delete_denied_for_every_role():
    for actor in (ADMIN, ALICE, BOB):
        assert decide(actor, Action.GALLERY_DELETE, ALICE_GALLERY, image_count=2) is Decision.DENY


def test_user_administration_is_admin_only():
    for action in (Action.USER_LIST, Action.USER_CREATE, Action.USER_DELETE):
        assert decide(ALICE, action, BOB) is Decision.DENY


def test_comments_open_to_any_logged_in_user():
    for action in (Action.COMMENT_CREATE, Action.COMMENT_EDIT, Action.COMMENT_DELETE):
        assert decide(BOB, action) is Decision.ALLOW


def test_effective_owner_goes_through_gallery():
    assert effective_owner_id(ALICE_IMAGE) == ALICE.UserID
    assert effective_owner_id(ALICE_GALLERY) == ALICE.UserID
    assert effective_owner_id(None) is None


def test_enforce_maps_denials_to_errors():
    with pytest.raises(AuthenticationError):
        enforce(None, Action.GALLERY_CREATE)
    with pytest.raises(StructuralGuardError):
        enforce(ADMIN, Action.GALLERY_DELETE, ALICE_GALLERY, image_count=1)
    with pytest.raises(AuthorizationError) as exc:
        enforce(ADMIN, Action.USER_DELETE, ADMIN)
    assert exc.value.message == "You cannot delete your own account."
    enforce(ALICE, Action.GALLERY_UPDATE, ALICE_GALLERY)
