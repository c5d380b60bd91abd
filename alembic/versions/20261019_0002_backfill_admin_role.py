"""
Grant the admin role to the reserved username.

Accounts imported from the old deployment all arrive with Role='user'; the
account named exactly ADMIN_USERNAME (default "admin") becomes the administrator.

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19
"""

from __future__ import annotations

import os

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None


def _admin_username() -> str:
    return (os.getenv("ADMIN_USERNAME") or "admin").strip()


def upgrade() -> None:
    op.get_bind().execute(
        sa.text("UPDATE Users SET Role = 'admin' WHERE Username = :name"),
        {"name": _admin_username()},
    )


def downgrade() -> None:
    op.get_bind().execute(
        sa.text("UPDATE Users SET Role = 'user' WHERE Username = :name"),
        {"name": _admin_username()},
    )
