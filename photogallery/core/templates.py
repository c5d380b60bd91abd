from datetime import date, datetime, timezone

from fastapi.templating import Jinja2Templates
from starlette.requests import Request


def _datefmt(value, fmt: str = "%Y-%m-%d") -> str:
    """
    Jinja filter: Format a date/datetime using YYYY-MM-DD by default.
    - If value has strftime, use it.
    - If value is a string, return as-is (avoid guessing formats).
    - On None, return empty string.
    """
    if value is None:
        return ""
    if hasattr(value, "strftime"):
        return value.strftime(fmt)
    return str(value)


def _dtfmt(value, fmt: str = "%Y-%m-%d %H:%M") -> str:
    """Format a datetime with time; falls back to datefmt if not datetime-like."""
    return _datefmt(value, fmt)


def _relativetime(value, now: datetime | None = None) -> str:
    """
    Human-friendly relative time for comment timestamps, e.g. "just now",
    "5 minutes ago", "2 days ago". Naive datetimes are taken as UTC.
    """
    if value is None:
        return ""
    if isinstance(value, date) and not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if not isinstance(value, datetime):
        return str(value)
    if now is None:
        now = datetime.now(timezone.utc)
        if value.tzinfo is None:
            now = now.replace(tzinfo=None)
    seconds = int((now - value).total_seconds())
    future = seconds < 0
    seconds = abs(seconds)

    def unit(n, w):
        return f"{n} {w}{'' if n == 1 else 's'}" + (" from now" if future else " ago")

    if seconds < 10:
        return "just now"
    if seconds < 60:
        return unit(seconds, "second")
    mins = seconds // 60
    if mins < 60:
        return unit(mins, "minute")
    hrs = mins // 60
    if hrs < 24:
        return unit(hrs, "hour")
    days = hrs // 24
    if days < 30:
        return unit(days, "day")
    if days < 365:
        return unit(days // 30, "month")
    return unit(days // 365, "year")


def _identity(request: Request) -> dict:
    # Every page shows who is logged in; get_actor stores it on request.state
    actor = getattr(request.state, "actor", None)
    return {
        "logged_user": getattr(actor, "Username", None) if actor is not None else None,
        "is_admin": bool(actor is not None and getattr(actor, "is_admin", False)),
    }


def build_templates(directory: str) -> Jinja2Templates:
    templates = Jinja2Templates(directory=directory, context_processors=[_identity])
    templates.env.filters["datefmt"] = _datefmt
    templates.env.filters["dtfmt"] = _dtfmt
    templates.env.filters["relativetime"] = _relativetime
    # Expose a callable that returns a datetime object so templates can use .strftime('%Y')
    templates.env.globals["now"] = lambda: datetime.now()
    return templates
