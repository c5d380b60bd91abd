"""Create or update a gallery account from the command line.

    python scripts/create_user.py --username admin --name Site --surname Admin --password ...

The reserved ADMIN_USERNAME always gets the admin role; ``--admin`` grants it
to any other account.
"""

import argparse
import sys
from pathlib import Path

# Run from anywhere: the project root holds db.py and the photogallery package
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from markupsafe import escape  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from db import make_engine, make_session_factory  # noqa: E402
from photogallery.core.errors import ConflictError, ValidationError  # noqa: E402
from photogallery.core.settings import settings  # noqa: E402
from photogallery.models import Base, User, UserRole  # noqa: E402
from photogallery.services.auth import hash_password, role_for_username  # noqa: E402
from photogallery.services.stores import UserStore  # noqa: E402
from photogallery.services.validation import validate_user_form  # noqa: E402


def upsert_user(
    s: Session, username: str, name: str, surname: str, password: str | None, make_admin: bool
) -> tuple[bool, int]:
    users = UserStore(s)
    user = users.find_by_username(username)
    role = role_for_username(username, settings.ADMIN_USERNAME)
    if make_admin:
        role = UserRole.ADMIN

    if user is None:
        cleaned, messages = validate_user_form(name, surname, username, password)
        if messages:
            raise ValidationError(messages)
        user_id = users.create(
            User(
                Username=cleaned["username"],
                Name=cleaned["name"],
                Surname=cleaned["surname"],
                HashedPassword=hash_password(cleaned["password"]),
                Role=role,
            )
        )
        return True, user_id

    patch = {"Role": UserRole.ADMIN if role == UserRole.ADMIN else user.Role}
    if name:
        patch["Name"] = str(escape(name))
    if surname:
        patch["Surname"] = str(escape(surname))
    if password:
        patch["HashedPassword"] = hash_password(password)
    users.update(user.UserID, **patch)
    return False, user.UserID


def main():
    parser = argparse.ArgumentParser(description="Create or update a user (optionally admin).")
    parser.add_argument("--username", required=True)
    parser.add_argument("--name", default="")
    parser.add_argument("--surname", default="")
    parser.add_argument("--password", default=None)
    parser.add_argument("--admin", action="store_true", help="Grant admin role")
    args = parser.parse_args()

    engine = make_engine(settings.DATABASE_URL)
    if settings.DB_AUTO_CREATE:
        Base.metadata.create_all(bind=engine)
    s = make_session_factory(engine)()
    try:
        created, user_id = upsert_user(
            s,
            username=args.username.strip(),
            name=args.name.strip(),
            surname=args.surname.strip(),
            password=args.password,
            make_admin=bool(args.admin),
        )
    except (ValidationError, ConflictError) as e:
        sys.exit("; ".join(e.messages))
    finally:
        s.close()
    status = "created" if created else "updated"
    print(f"User {status}: id={user_id} username={args.username} admin={args.admin}")


if __name__ == "__main__":
    main()
