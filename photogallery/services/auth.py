# ruff: noqa: I001
import logging
import time
from typing import Any, Optional

from fastapi import Depends, Request
from itsdangerous import BadData, URLSafeTimedSerializer
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from photogallery.core.context import AppContext, get_context
from photogallery.models.user import User, UserRole
from db import get_db

audit = logging.getLogger("audit")

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Password hashing


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        # Unknown or malformed hash (e.g. seeded rows); treat as a mismatch
        return False


def role_for_username(username: str, admin_username: str) -> UserRole:
    """One-time migration rule, also applied to new accounts: the reserved name is the admin."""
    if username == admin_username:
        return UserRole.ADMIN
    return UserRole.USER


# Session resolver


class TokenCodec:
    """Issues and resolves signed login tokens carrying the username claim."""

    SALT = "photogallery.auth"

    def __init__(self, secret_key: str, ttl_seconds: int = 3600):
        self.serializer = URLSafeTimedSerializer(secret_key, salt=self.SALT)
        self.ttl_seconds = int(ttl_seconds)

    def issue(self, username: str, issued_at: Optional[float] = None) -> str:
        iat = int(time.time() if issued_at is None else issued_at)
        payload = {"username": username, "iat": iat, "exp": iat + self.ttl_seconds}
        return str(self.serializer.dumps(payload))

    def resolve(self, token: Optional[str]) -> Optional[str]:
        """Return the username for a valid token; None for anything else. Never raises."""
        if not token:
            return None
        try:
            payload: Any = self.serializer.loads(token, max_age=self.ttl_seconds)
        except BadData:
            return None
        if not isinstance(payload, dict):
            return None
        username = payload.get("username")
        exp = payload.get("exp")
        if not isinstance(username, str) or not username:
            return None
        if not isinstance(exp, (int, float)) or exp <= time.time():
            return None
        return username


# Identity loader


def load_identity(db: Session, username: Optional[str]) -> Optional[User]:
    """Map a username claim to the stored user; None means anonymous."""
    if not username:
        return None
    return db.query(User).filter(User.Username == username).first()


def authenticate_user(db: Session, username: str, password: str):
    """Return (user, error message). The message mirrors what the login form shows."""
    user = load_identity(db, username)
    if user is None:
        return None, "No user found!"
    if not verify_password(password, getattr(user, "HashedPassword", "")):
        return None, "Bad pass!"
    return user, None


def username_from_request(request: Request, ctx: AppContext) -> Optional[str]:
    return ctx.tokens.resolve(request.cookies.get(ctx.settings.AUTH_COOKIE_NAME))


# FastAPI dependencies for auth


def get_actor(
    request: Request,
    db: Session = Depends(get_db),
    ctx: AppContext = Depends(get_context),
) -> Optional[User]:
    """Return the current User, or None for anonymous visitors.

    Also stashes the actor on request.state so every template can show it.
    """
    actor = load_identity(db, username_from_request(request, ctx))
    request.state.actor = actor
    return actor


def set_auth_cookie(response, ctx: AppContext, token: str) -> None:
    response.set_cookie(
        key=ctx.settings.AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=bool(ctx.settings.COOKIE_SECURE),
        max_age=int(ctx.settings.AUTH_COOKIE_MAX_AGE_SECONDS),
        path="/",
    )


def clear_auth_cookie(response, ctx: AppContext) -> None:
    response.delete_cookie(key=ctx.settings.AUTH_COOKIE_NAME, path="/")
