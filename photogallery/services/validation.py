"""Form validation for every entity form.

Each validator trims its input, checks required fields and length bounds,
HTML-escapes free text for storage and returns ``(cleaned, messages)``.
Handlers re-render the form with the messages when the list is not empty.
"""

from datetime import date
from typing import Dict, List, Optional, Tuple

from markupsafe import escape

from photogallery.models.comment import MAX_COMMENT_LENGTH

NAME_MAX = 100
DESCRIPTION_MAX = 200
PATH_MAX = 200
PASSWORD_MIN = 8


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def _stored(value: str) -> str:
    return str(escape(value))


def _bounded(messages: List[str], value: str, low: int, high: int, short: str, long: str) -> None:
    # Upper bound applies to the escaped text, which is what the column holds
    if len(value) < low:
        messages.append(short)
    elif len(_stored(value)) > high:
        messages.append(long)


def validate_user_form(
    name: Optional[str], surname: Optional[str], username: Optional[str], password: Optional[str]
) -> Tuple[Dict[str, str], List[str]]:
    messages: List[str] = []
    name, surname, username = _clean(name), _clean(surname), _clean(username)
    password = password or ""

    _bounded(messages, name, 2, NAME_MAX, "First name too short.", "First name too long.")
    _bounded(messages, surname, 2, NAME_MAX, "Lastname too short.", "Lastname too long.")
    if len(username) < 3:
        messages.append("Username must be at least 3 characters long.")
    elif len(username) > NAME_MAX:
        messages.append("Username too long.")
    if username and not username.isalnum():
        messages.append("Username must contain only letters and numbers.")
    if len(password) < PASSWORD_MIN:
        messages.append("Password to short!")

    cleaned = {
        "name": _stored(name),
        "surname": _stored(surname),
        "username": _stored(username),
        "password": password,
    }
    return cleaned, messages


def parse_date(value: Optional[str]) -> Optional[date]:
    """ISO 8601 calendar date (a full timestamp is accepted, its date kept)."""
    value = _clean(value)
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def validate_gallery_form(
    name: Optional[str], description: Optional[str], date_value: Optional[str]
) -> Tuple[Dict[str, object], List[str]]:
    messages: List[str] = []
    name, description = _clean(name), _clean(description)
    _bounded(messages, name, 2, NAME_MAX, "Name too short.", "Name too long.")
    if len(_stored(description)) > DESCRIPTION_MAX:
        messages.append("Description too long.")
    parsed = parse_date(date_value)
    if parsed is None:
        messages.append("Date cannot be empty.")
    cleaned = {
        "name": _stored(name),
        "description": _stored(description),
        "date": parsed,
        "date_raw": _clean(date_value),
    }
    return cleaned, messages


def validate_image_form(
    name: Optional[str], description: Optional[str], path: Optional[str] = None, require_path: bool = True
) -> Tuple[Dict[str, str], List[str]]:
    messages: List[str] = []
    name, description, path = _clean(name), _clean(description), _clean(path)
    _bounded(messages, name, 2, NAME_MAX, "Name too short.", "Name too long.")
    _bounded(
        messages, description, 2, DESCRIPTION_MAX, "Description too short.", "Description too long."
    )
    if require_path:
        if not path:
            messages.append("Path is required.")
        elif len(path) > PATH_MAX:
            messages.append("Path too long.")
    return {"name": _stored(name), "description": _stored(description), "path": path}, messages


def validate_comment(content: Optional[str]) -> Tuple[str, List[str]]:
    content = _clean(content)
    messages: List[str] = []
    if not content:
        messages.append("Comment cannot be empty.")
    elif len(_stored(content)) > MAX_COMMENT_LENGTH:
        messages.append(f"Comment cannot be longer than {MAX_COMMENT_LENGTH} characters.")
    return _stored(content), messages
