from datetime import date, datetime, timedelta

from photogallery.core.templates import _datefmt, _relativetime
from photogallery.models import AppErrorLog, Gallery
from photogallery.services.stores import GalleryStore


def test_home_page(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert "Gallery App" in resp.text
    assert resp.headers["X-Request-ID"]
    assert resp.headers["X-Frame-Options"] == "DENY"


def test_request_id_is_echoed(client):
    resp = client.get("/", headers={"X-Request-ID": "abc-123"})
    assert resp.headers["X-Request-ID"] == "abc-123"


def test_stats_counts_everything(client, make_user, login, db_session):
    alice = make_user("alice")
    login("alice")
    GalleryStore(db_session).create(
        Gallery(Name="Trip", Description="", Date=date(2024, 7, 1), OwnerID=alice.UserID)
    )
    resp = client.get("/stats/")
    assert resp.status_code == 200
    assert "<dt>Users</dt><dd>1</dd>" in resp.text
    assert "<dt>Galleries</dt><dd>1</dd>" in resp.text
    assert "<dt>Images</dt><dd>0</dd>" in resp.text


def test_stats_send_anonymous_visitors_home(client, make_user):
    make_user("alice")
    resp = client.get("/stats/")
    assert resp.status_code == 200
    assert "Gallery App" in resp.text
    assert "<dt>Users</dt>" not in resp.text


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["db"]["ok"] is True
    assert body["db"]["dialect"] == "sqlite"


def test_unknown_route_renders_error_page_and_is_recorded(client, db_session):
    resp = client.get("/no/such/page")
    assert resp.status_code == 404
    assert "Page not found." in resp.text
    row = db_session.query(AppErrorLog).one()
    assert row.StatusCode == 404
    assert row.Path == "/no/such/page"


def test_docs_are_served(client):
    assert client.get("/docs").status_code == 200


def test_template_filters():
    assert _datefmt(date(2024, 7, 1)) == "2024-07-01"
    assert _datefmt(None) == ""
    now = datetime(2024, 7, 1, 12, 0, 0)
    assert _relativetime(now - timedelta(seconds=3), now=now) == "just now"
    assert _relativetime(now - timedelta(minutes=5), now=now) == "5 minutes ago"
    assert _relativetime(now - timedelta(days=1), now=now) == "1 day ago"
