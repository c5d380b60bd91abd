import io
import os

# Configure before any project module reads settings
os.environ.setdefault("TEST_SQLITE", "1")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_FILE", "")
os.environ.setdefault("LOG_JSON", "false")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from PIL import Image as PILImage  # noqa: E402

from photogallery.core.settings import Settings  # noqa: E402
from photogallery.models import User, UserRole  # noqa: E402
from photogallery.services.auth import hash_password, role_for_username  # noqa: E402
from photogallery.services.stores import UserStore  # noqa: E402

PASSWORD = "password123"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        UPLOAD_DIR=str(tmp_path / "uploads"),
        LOG_FILE="",
        DB_AUTO_CREATE=True,
    )


@pytest.fixture
def app(settings):
    # Import here so the environment above is in place first
    from main import create_app

    application = create_app(settings)
    yield application
    application.state.context.engine.dispose()


@pytest.fixture
def ctx(app):
    return app.state.context


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db_session(ctx):
    """A session on the same in-memory database the app uses.

    Call ``expire_all()`` before reading rows a request has just changed.
    """
    session = ctx.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db_session, settings):
    def _make(username, name="Test", surname="User", password=PASSWORD, role=None):
        user = User(
            Username=username,
            Name=name,
            Surname=surname,
            HashedPassword=hash_password(password),
            Role=role or role_for_username(username, settings.ADMIN_USERNAME),
        )
        UserStore(db_session).create(user)
        return user

    return _make


@pytest.fixture
def admin(make_user):
    return make_user("admin", role=UserRole.ADMIN)


@pytest.fixture
def login(client):
    def _login(username, password=PASSWORD):
        resp = client.post(
            "/users/user_login",
            data={"username": username, "password": password},
            follow_redirects=False,
        )
        assert resp.status_code == 302, resp.text
        return resp

    return _login


def png_bytes(size=(4, 4), color=(200, 30, 30), fmt="PNG"):
    buf = io.BytesIO()
    PILImage.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def image_bytes():
    return png_bytes()
