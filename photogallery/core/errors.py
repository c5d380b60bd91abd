"""Handler-level error taxonomy.

Every error here is recoverable: handlers catch it at their boundary and
render a page carrying ``message`` with ``status_code``. Anything else is
unexpected and reaches the application's 500 handler.
"""

from typing import Iterable, List


class GalleryError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def messages(self) -> List[str]:
        return [self.message]


class ValidationError(GalleryError):
    """Field-level input problems; the form is re-rendered with every message."""

    status_code = 400

    def __init__(self, messages: Iterable[str]):
        self._messages = list(messages)
        super().__init__("; ".join(self._messages))

    @property
    def messages(self) -> List[str]:
        return list(self._messages)


class NotFoundError(GalleryError):
    status_code = 404


class AuthenticationError(GalleryError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized: You must be logged in."):
        super().__init__(message)


class AuthorizationError(GalleryError):
    status_code = 403


class ConflictError(GalleryError):
    status_code = 409


class StructuralGuardError(GalleryError):
    status_code = 409
