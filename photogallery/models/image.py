from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from .user import Base


class Image(Base):
    __tablename__ = "Image"
    __table_args__ = (
        UniqueConstraint("NameKey", "GalleryID", name="uq_image_name_gallery"),
    )
    ImageID = Column(Integer, primary_key=True, autoincrement=True)
    Name = Column(String(100), nullable=False)
    NameKey = Column(String(100), nullable=False)
    Description = Column(String(200), nullable=True)
    # Relative to the upload directory; served under /storage/
    Path = Column(String(200), nullable=False)
    GalleryID = Column(Integer, ForeignKey("Gallery.GalleryID"), nullable=False, index=True)

    gallery = relationship("Gallery", back_populates="images")
    comments = relationship(
        "Comment",
        back_populates="image",
        cascade="all, delete-orphan",
        order_by="Comment.CreatedAt.desc()",
    )
