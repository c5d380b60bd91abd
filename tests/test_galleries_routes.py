from datetime import date

from photogallery.models import Gallery, Image
from photogallery.services.stores import GalleryStore, ImageStore

FORM = {"name": "Trip", "description": "Summer", "date": "2024-07-01"}


def _gallery(db_session, owner, name="Trip"):
    return GalleryStore(db_session).create(
        Gallery(Name=name, Description="", Date=date(2024, 7, 1), OwnerID=owner.UserID)
    )


def test_anonymous_gallery_list_is_empty_with_message(client, make_user, db_session):
    _gallery(db_session, make_user("alice"), "Secret trip")
    resp = client.get("/galleries/")
    assert resp.status_code == 200
    assert "Unauthorized: You must be logged in." in resp.text
    assert "Secret trip" not in resp.text


def test_list_shows_own_galleries_and_admin_sees_all(client, make_user, admin, login, db_session):
    _gallery(db_session, make_user("alice"), "Alice trip")
    _gallery(db_session, make_user("bob"), "Bob trip")

    login("alice")
    resp = client.get("/galleries/")
    assert "Alice trip" in resp.text
    assert "Bob trip" not in resp.text

    login("admin")
    resp = client.get("/galleries/")
    assert "Alice trip" in resp.text and "Bob trip" in resp.text


def test_add_gallery_and_duplicate(client, make_user, login):
    make_user("alice")
    login("alice")
    resp = client.post("/galleries/gallery_add", data=FORM)
    assert resp.status_code == 200
    assert 'Gallery "Trip" added' in resp.text

    dup = client.post("/galleries/gallery_add", data={**FORM, "name": "TRIP"})
    assert dup.status_code == 409
    assert 'Gallery "TRIP" already exists!' in dup.text


def test_add_gallery_validation(client, make_user, login):
    make_user("alice")
    login("alice")
    resp = client.post("/galleries/gallery_add", data={"name": "T", "description": "", "date": ""})
    assert resp.status_code == 400
    assert "Name too short." in resp.text
    assert "Date cannot be empty." in resp.text


def test_add_gallery_rejects_name_too_long_once_escaped(client, make_user, login, db_session):
    make_user("alice")
    login("alice")
    resp = client.post("/galleries/gallery_add", data={**FORM, "name": "&" * 90})
    assert resp.status_code == 400
    assert "Name too long." in resp.text
    assert db_session.query(Gallery).count() == 0


def test_anonymous_cannot_add_gallery(client, db_session):
    resp = client.post("/galleries/gallery_add", data=FORM)
    assert resp.status_code == 401
    assert db_session.query(Gallery).count() == 0


def test_admin_adds_gallery_for_another_user(client, make_user, admin, login, db_session):
    bob = make_user("bob")
    login("admin")
    resp = client.post("/galleries/gallery_add", data={**FORM, "owner_id": str(bob.UserID)})
    assert resp.status_code == 200
    gallery = db_session.query(Gallery).one()
    assert gallery.OwnerID == bob.UserID


def test_owner_deletes_empty_gallery(client, make_user, login, db_session):
    gallery_id = _gallery(db_session, make_user("alice"))
    login("alice")
    resp = client.post(f"/galleries/gallery_delete/{gallery_id}")
    assert resp.status_code == 200
    assert "Gallery deleted successfully." in resp.text
    db_session.expire_all()
    assert db_session.get(Gallery, gallery_id) is None


def test_non_owner_cannot_delete_gallery(client, make_user, login, db_session):
    gallery_id = _gallery(db_session, make_user("alice"))
    make_user("bob")
    login("bob")
    resp = client.post(f"/galleries/gallery_delete/{gallery_id}")
    assert resp.status_code == 403
    assert "Forbidden: you can only delete your own galleries." in resp.text
    db_session.expire_all()
    assert db_session.get(Gallery, gallery_id) is not None


def test_non_empty_gallery_is_kept_even_for_admin(client, make_user, admin, login, db_session):
    gallery_id = _gallery(db_session, make_user("alice"))
    ImageStore(db_session).create(
        Image(Name="Sunset", Description="Red sky", Path="a.png", GalleryID=gallery_id)
    )
    login("admin")
    resp = client.post(f"/galleries/gallery_delete/{gallery_id}")
    assert resp.status_code == 409
    assert "Cannot delete gallery: gallery is not empty." in resp.text


def test_delete_missing_gallery(client, make_user, login):
    make_user("alice")
    login("alice")
    resp = client.post("/galleries/gallery_delete/424242")
    assert resp.status_code == 404
    assert "Gallery not found." in resp.text


def test_update_gallery(client, make_user, login, db_session):
    alice = make_user("alice")
    gallery_id = _gallery(db_session, alice, "Trip")
    _gallery(db_session, alice, "Home")
    login("alice")

    page = client.get(f"/galleries/gallery_update/{gallery_id}")
    assert page.status_code == 200
    assert 'value="Trip"' in page.text

    conflict = client.post(f"/galleries/gallery_update/{gallery_id}", data={**FORM, "name": "home"})
    assert conflict.status_code == 409
    assert 'Gallery "home" already exists for this user.' in conflict.text

    resp = client.post(
        f"/galleries/gallery_update/{gallery_id}",
        data={**FORM, "name": "Road trip"},
        follow_redirects=False,
    )
    assert resp.status_code == 302
    assert resp.headers["location"] == "/galleries/"
    db_session.expire_all()
    assert db_session.get(Gallery, gallery_id).Name == "Road trip"


def test_admin_reassigns_gallery_owner(client, make_user, admin, login, db_session):
    alice = make_user("alice")
    bob = make_user("bob")
    gallery_id = _gallery(db_session, alice, "Trip")
    _gallery(db_session, bob, "Home")
    login("admin")

    page = client.get(f"/galleries/gallery_update/{gallery_id}")
    assert 'name="owner_id"' in page.text

    # Name clashes are checked against the new owner
    conflict = client.post(
        f"/galleries/gallery_update/{gallery_id}",
        data={**FORM, "name": "HOME", "owner_id": str(bob.UserID)},
    )
    assert conflict.status_code == 409

    resp = client.post(
        f"/galleries/gallery_update/{gallery_id}",
        data={**FORM, "owner_id": str(bob.UserID)},
        follow_redirects=False,
    )
    assert resp.status_code == 302
    db_session.expire_all()
    assert db_session.get(Gallery, gallery_id).OwnerID == bob.UserID


def test_owner_cannot_hand_gallery_to_someone_else(client, make_user, login, db_session):
    alice = make_user("alice")
    bob = make_user("bob")
    gallery_id = _gallery(db_session, alice)
    login("alice")

    page = client.get(f"/galleries/gallery_update/{gallery_id}")
    assert 'name="owner_id"' not in page.text

    resp = client.post(
        f"/galleries/gallery_update/{gallery_id}",
        data={**FORM, "owner_id": str(bob.UserID)},
        follow_redirects=False,
    )
    assert resp.status_code == 302
    db_session.expire_all()
    assert db_session.get(Gallery, gallery_id).OwnerID == alice.UserID


def test_non_owner_cannot_update_gallery(client, make_user, login, db_session):
    gallery_id = _gallery(db_session, make_user("alice"))
    make_user("bob")
    login("bob")
    resp = client.post(f"/galleries/gallery_update/{gallery_id}", data={**FORM, "name": "Mine now"})
    assert resp.status_code == 403
    db_session.expire_all()
    assert db_session.get(Gallery, gallery_id).Name == "Trip"


def test_browse_shows_images_of_visible_gallery_only(client, make_user, login, db_session):
    alice = make_user("alice")
    gallery_id = _gallery(db_session, alice)
    other_id = _gallery(db_session, make_user("bob"), "Bob trip")
    ImageStore(db_session).create(
        Image(Name="Sunset", Description="Red sky", Path="sunset.png", GalleryID=gallery_id)
    )

    anon = client.get("/galleries/gallery_browse")
    assert anon.status_code == 200
    assert "Unauthorized: You must be logged in." in anon.text

    login("alice")
    resp = client.post("/galleries/gallery_browse", data={"s_gallery": str(gallery_id)})
    assert resp.status_code == 200
    assert "/storage/sunset.png" in resp.text

    hidden = client.post("/galleries/gallery_browse", data={"s_gallery": str(other_id)})
    assert hidden.status_code == 404
    assert "Gallery not found." in hidden.text
