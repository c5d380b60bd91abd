import json
import logging

from photogallery.core.logging_utils import JsonFormatter, scrub
from photogallery.core.settings import Settings, load_settings


def test_json_formatter_includes_extra_and_hides_secrets():
    record = logging.makeLogRecord(
        {"name": "audit", "levelname": "INFO", "msg": "auth.login.failed", "username": "alice", "password": "x"}
    )
    payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == "auth.login.failed"
    assert payload["username"] == "alice"
    assert payload["password"] == "***"


def test_scrub():
    assert scrub({"token": "abc", "user_id": 1}) == {"token": "***", "user_id": 1}


def test_cookie_secure_follows_https_base_url(monkeypatch):
    monkeypatch.setenv("BASE_URL", "https://gallery.example.com")
    assert load_settings().COOKIE_SECURE is True


def test_defaults():
    s = Settings()
    assert s.AUTH_COOKIE_NAME == "gallery_token"
    assert s.AUTH_COOKIE_MAX_AGE_SECONDS == 600
    assert s.TOKEN_TTL_SECONDS == 3600
    assert s.ADMIN_USERNAME == "admin"
