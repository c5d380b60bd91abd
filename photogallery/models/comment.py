from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from .user import Base

MAX_COMMENT_LENGTH = 250


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Comment(Base):
    __tablename__ = "Comment"
    CommentID = Column(Integer, primary_key=True, autoincrement=True)
    ImageID = Column(Integer, ForeignKey("Image.ImageID"), nullable=False, index=True)
    # Denormalized from the image for listing convenience
    GalleryID = Column(Integer, ForeignKey("Gallery.GalleryID"), nullable=False)
    AuthorID = Column(Integer, ForeignKey("Users.UserID"), nullable=False)
    Content = Column(String(MAX_COMMENT_LENGTH), nullable=False)
    # Naive UTC, like every other timestamp we write
    CreatedAt = Column(DateTime, default=utcnow, nullable=False)

    image = relationship("Image", back_populates="comments")
    author = relationship("User", back_populates="comments")
