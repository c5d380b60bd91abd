# Package init for photogallery.models
from .comment import Comment as Comment
from .gallery import Gallery as Gallery
from .image import Image as Image
from .logging import AppErrorLog as AppErrorLog
from .user import Base as Base  # explicit re-export
from .user import UserRole as UserRole
from .user import User as User
