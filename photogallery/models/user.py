import enum

from sqlalchemy import Column, DateTime, Enum, Integer, String
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"


class User(Base):
    __tablename__ = "Users"
    UserID = Column(Integer, primary_key=True, autoincrement=True)
    Username = Column(String(100), nullable=False)
    # Collation key of Username; the unique index makes case variants collide
    UsernameKey = Column(String(100), nullable=False, unique=True)
    Name = Column(String(100), nullable=False)
    Surname = Column(String(100), nullable=False)
    HashedPassword = Column(String(255), nullable=False)
    # Admin role flag (replaces comparing Username with the reserved name)
    Role = Column(
        Enum(UserRole, name="user_role", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.USER,
    )
    DateCreated = Column(DateTime, server_default=func.now())

    galleries = relationship("Gallery", back_populates="owner")
    comments = relationship("Comment", back_populates="author", cascade="all, delete-orphan")

    @property
    def is_admin(self) -> bool:
        return self.Role == UserRole.ADMIN

    def __repr__(self) -> str:
        return f"<User {self.UserID} {self.Username!r}>"
