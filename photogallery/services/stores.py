"""Entity stores: the only place that reads and writes the database.

Name uniqueness (users, galleries per owner, images per gallery) is decided
by unique indexes on collation keys. A create or update that collides fails
on commit and is reported as ``ConflictError``; there is no separate
look-up before the write, so two concurrent creates of the same name end
with exactly one success.
"""

import logging
from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from photogallery.core.errors import ConflictError, NotFoundError
from photogallery.models import Comment, Gallery, Image, User
from photogallery.services.collation import collation_key

logger = logging.getLogger(__name__)

T = TypeVar("T")


def parse_id(value: Any) -> Optional[int]:
    """Path and query ids arrive as text; anything that is not a positive int matches nothing."""
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return parsed if parsed > 0 else None


class Store(Generic[T]):
    model: Type[T]
    label = "Entity"

    def __init__(self, db: Session):
        self.db = db

    def _conflict_message(self, entity: T, updating: bool = False) -> str:
        return f"{self.label} already exists!"

    def _apply_keys(self, entity: T) -> None:
        """Refresh collation keys from the display names before writing."""

    def _commit(self, entity: T, updating: bool = False) -> None:
        # Built up front: a rollback expires the attempted values
        conflict = self._conflict_message(entity, updating)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info("store.conflict", extra={"entity": self.label})
            raise ConflictError(conflict)

    def _pk(self, entity: T) -> int:
        return self.model.__mapper__.primary_key_from_instance(entity)[0]

    def create(self, entity: T) -> int:
        self._apply_keys(entity)
        self.db.add(entity)
        self._commit(entity)
        return self._pk(entity)

    def find_by_id(self, entity_id: Any) -> Optional[T]:
        pk = parse_id(entity_id)
        if pk is None:
            return None
        return self.db.get(self.model, pk)

    def get(self, entity_id: Any) -> T:
        entity = self.find_by_id(entity_id)
        if entity is None:
            raise NotFoundError(f"{self.label} not found.")
        return entity

    def count(self, **filters) -> int:
        return self.db.query(self.model).filter_by(**filters).count()

    def update(self, entity_id: Any, **patch) -> T:
        entity = self.get(entity_id)
        for field, value in patch.items():
            setattr(entity, field, value)
        self._apply_keys(entity)
        self._commit(entity, updating=True)
        return entity

    def delete(self, entity_id: Any) -> None:
        entity = self.get(entity_id)
        self.db.delete(entity)
        self.db.commit()


class UserStore(Store[User]):
    model = User
    label = "User"

    def _conflict_message(self, entity: User, updating: bool = False) -> str:
        return f'Username "{entity.Username}" already exists!'

    def _apply_keys(self, entity: User) -> None:
        entity.UsernameKey = collation_key(entity.Username)

    def find_by_username(self, username: str) -> Optional[User]:
        """Collated look-up ("ADMIN" finds "admin"); login uses the exact match in auth."""
        return self.db.query(User).filter(User.UsernameKey == collation_key(username)).first()

    def all(self) -> List[User]:
        return self.db.query(User).order_by(User.Username).all()

    def count_galleries(self, user_id: int) -> int:
        return self.db.query(Gallery).filter(Gallery.OwnerID == user_id).count()


class GalleryStore(Store[Gallery]):
    model = Gallery
    label = "Gallery"

    def _conflict_message(self, entity: Gallery, updating: bool = False) -> str:
        if updating:
            return f'Gallery "{entity.Name}" already exists for this user.'
        return f'Gallery "{entity.Name}" already exists!'

    def _apply_keys(self, entity: Gallery) -> None:
        entity.NameKey = collation_key(entity.Name)

    def find_by_name(self, name: str, owner_id: int) -> Optional[Gallery]:
        return (
            self.db.query(Gallery)
            .filter(Gallery.NameKey == collation_key(name), Gallery.OwnerID == owner_id)
            .first()
        )

    def visible_to(self, actor: Optional[User]) -> List[Gallery]:
        """All galleries for an admin, own galleries otherwise, none for anonymous."""
        if actor is None:
            return []
        q = self.db.query(Gallery).options(joinedload(Gallery.owner))
        if not actor.is_admin:
            q = q.filter(Gallery.OwnerID == actor.UserID)
        return q.order_by(Gallery.Date.desc(), Gallery.Name).all()

    def count_images(self, gallery_id: int) -> int:
        return self.db.query(Image).filter(Image.GalleryID == gallery_id).count()


class ImageStore(Store[Image]):
    model = Image
    label = "Image"

    def _conflict_message(self, entity: Image, updating: bool = False) -> str:
        return f'Image "{entity.Name}" already exists!'

    def _apply_keys(self, entity: Image) -> None:
        entity.NameKey = collation_key(entity.Name)

    def find_by_name(self, name: str, gallery_id: int) -> Optional[Image]:
        return (
            self.db.query(Image)
            .filter(Image.NameKey == collation_key(name), Image.GalleryID == gallery_id)
            .first()
        )

    def in_gallery(self, gallery_id: int) -> List[Image]:
        return self.db.query(Image).filter(Image.GalleryID == gallery_id).order_by(Image.Name).all()

    def visible_to(self, actor: Optional[User]) -> List[Image]:
        if actor is None:
            return []
        q = self.db.query(Image).join(Gallery).options(joinedload(Image.gallery))
        if not actor.is_admin:
            q = q.filter(Gallery.OwnerID == actor.UserID)
        return q.order_by(Gallery.Name, Image.Name).all()

    def update(self, entity_id: Any, **patch) -> Image:
        image = self.get(entity_id)
        new_gallery = patch.get("GalleryID")
        if new_gallery is not None and new_gallery != image.GalleryID:
            # Comments carry the gallery too; keep them with their image
            for comment in image.comments:
                comment.GalleryID = new_gallery
        return super().update(entity_id, **patch)


class CommentStore(Store[Comment]):
    model = Comment
    label = "Comment"

    def for_image(self, image_id: int) -> List[Comment]:
        return (
            self.db.query(Comment)
            .options(joinedload(Comment.author))
            .filter(Comment.ImageID == image_id)
            .order_by(Comment.CreatedAt.desc(), Comment.CommentID.desc())
            .all()
        )


def totals(db: Session) -> dict:
    return {
        "users": db.query(func.count(User.UserID)).scalar() or 0,
        "galleries": db.query(func.count(Gallery.GalleryID)).scalar() or 0,
        "images": db.query(func.count(Image.ImageID)).scalar() or 0,
        "comments": db.query(func.count(Comment.CommentID)).scalar() or 0,
    }
