from datetime import date

from photogallery.services.validation import (
    parse_date,
    validate_comment,
    validate_gallery_form,
    validate_image_form,
    validate_user_form,
)


def test_user_form_collects_every_problem():
    _, messages = validate_user_form("A", "B", "ab", "short")
    assert messages == [
        "First name too short.",
        "Lastname too short.",
        "Username must be at least 3 characters long.",
        "Password to short!",
    ]


def test_username_must_be_alphanumeric():
    _, messages = validate_user_form("Alice", "Smith", "alice smith", "password123")
    assert messages == ["Username must contain only letters and numbers."]


def test_user_form_trims_and_escapes():
    cleaned, messages = validate_user_form("  <b>Al</b> ", " Smith ", " alice ", "password123")
    assert messages == []
    assert cleaned["name"] == "&lt;b&gt;Al&lt;/b&gt;"
    assert cleaned["surname"] == "Smith"
    assert cleaned["username"] == "alice"


def test_gallery_form():
    cleaned, messages = validate_gallery_form(" Trip ", "Summer", "2024-07-01")
    assert messages == []
    assert cleaned["name"] == "Trip"
    assert cleaned["date"] == date(2024, 7, 1)

    _, messages = validate_gallery_form("T", "", "")
    assert messages == ["Name too short.", "Date cannot be empty."]


def test_parse_date_accepts_timestamps_and_rejects_junk():
    assert parse_date("2024-07-01T10:00:00Z") == date(2024, 7, 1)
    assert parse_date("yesterday") is None
    assert parse_date(None) is None


def test_image_form():
    _, messages = validate_image_form("Sunset", "x", "")
    assert messages == ["Description too short.", "Path is required."]
    _, messages = validate_image_form("Sunset", "Red sky", require_path=False)
    assert messages == []


def test_comment_bounds():
    assert validate_comment("   ")[1] == ["Comment cannot be empty."]
    assert validate_comment("x" * 251)[1] == ["Comment cannot be longer than 250 characters."]
    text, messages = validate_comment(" <i>nice</i> ")
    assert messages == []
    assert text == "&lt;i&gt;nice&lt;/i&gt;"


def test_length_bounds_count_the_escaped_text():
    _, messages = validate_gallery_form("&" * 90, "<" * 190, "2024-07-01")
    assert messages == ["Name too long.", "Description too long."]
    _, messages = validate_image_form("Sunset", '"' * 50, "x.png")
    assert messages == ["Description too long."]
    assert validate_comment("&" * 60)[1] == ["Comment cannot be longer than 250 characters."]
    # Exactly at the bound once escaped
    cleaned, messages = validate_gallery_form("&" * 20, "", "2024-07-01")
    assert messages == []
    assert len(cleaned["name"]) == 100
