import time

from photogallery.services.auth import (
    TokenCodec,
    authenticate_user,
    hash_password,
    load_identity,
    role_for_username,
    verify_password,
)
from photogallery.models import UserRole


def test_issue_and_resolve_roundtrip():
    codec = TokenCodec("secret", ttl_seconds=60)
    assert codec.resolve(codec.issue("alice")) == "alice"


def test_expired_token_is_anonymous():
    codec = TokenCodec("secret", ttl_seconds=60)
    token = codec.issue("alice", issued_at=time.time() - 3600)
    assert codec.resolve(token) is None


def test_garbage_and_foreign_tokens_never_raise():
    codec = TokenCodec("secret", ttl_seconds=60)
    other = TokenCodec("another-secret", ttl_seconds=60)
    assert codec.resolve(None) is None
    assert codec.resolve("") is None
    assert codec.resolve("not.a.token") is None
    assert codec.resolve(other.issue("alice")) is None


def test_password_hashing():
    hashed = hash_password("password123")
    assert hashed != "password123"
    assert verify_password("password123", hashed)
    assert not verify_password("wrong", hashed)
    # Legacy or corrupt hashes count as a mismatch
    assert not verify_password("password123", "plain-text")


def test_role_for_reserved_username():
    assert role_for_username("admin", "admin") is UserRole.ADMIN
    assert role_for_username("Admin", "admin") is UserRole.USER
    assert role_for_username("alice", "admin") is UserRole.USER


def test_authenticate_user_messages(db_session, make_user):
    make_user("alice")
    user, error = authenticate_user(db_session, "alice", "password123")
    assert user is not None and error is None
    assert authenticate_user(db_session, "nobody", "password123") == (None, "No user found!")
    assert authenticate_user(db_session, "alice", "nope") == (None, "Bad pass!")


def test_identity_for_unknown_username_is_anonymous(db_session, make_user):
    make_user("alice")
    assert load_identity(db_session, "ghost") is None
    assert load_identity(db_session, None) is None
    assert load_identity(db_session, "alice").Username == "alice"


def test_long_passwords_hash_and_verify():
    # bcrypt only reads 72 bytes; longer input must still round-trip
    long_pwd = "T3qu1la!?!" * 20
    assert verify_password(long_pwd, hash_password(long_pwd))
