from sqlalchemy import Column, Date, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from .user import Base


class Gallery(Base):
    __tablename__ = "Gallery"
    __table_args__ = (
        UniqueConstraint("NameKey", "OwnerID", name="uq_gallery_name_owner"),
    )
    GalleryID = Column(Integer, primary_key=True, autoincrement=True)
    Name = Column(String(100), nullable=False)
    NameKey = Column(String(100), nullable=False)
    Description = Column(String(200), nullable=True)
    Date = Column(Date, nullable=False)
    OwnerID = Column(Integer, ForeignKey("Users.UserID"), nullable=False, index=True)

    owner = relationship("User", back_populates="galleries")
    images = relationship("Image", back_populates="gallery")
