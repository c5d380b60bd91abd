"""
Initial schema: users, galleries, images, comments and the error log.

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None

user_role = sa.Enum("admin", "user", name="user_role")


def upgrade() -> None:
    op.create_table(
        "Users",
        sa.Column("UserID", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("Username", sa.String(100), nullable=False),
        sa.Column("UsernameKey", sa.String(100), nullable=False, unique=True),
        sa.Column("Name", sa.String(100), nullable=False),
        sa.Column("Surname", sa.String(100), nullable=False),
        sa.Column("HashedPassword", sa.String(255), nullable=False),
        sa.Column("Role", user_role, nullable=False, server_default="user"),
        sa.Column("DateCreated", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_table(
        "Gallery",
        sa.Column("GalleryID", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("Name", sa.String(100), nullable=False),
        sa.Column("NameKey", sa.String(100), nullable=False),
        sa.Column("Description", sa.String(200), nullable=True),
        sa.Column("Date", sa.Date(), nullable=False),
        sa.Column("OwnerID", sa.Integer(), sa.ForeignKey("Users.UserID"), nullable=False),
        sa.UniqueConstraint("NameKey", "OwnerID", name="uq_gallery_name_owner"),
    )
    op.create_index("ix_Gallery_OwnerID", "Gallery", ["OwnerID"])
    op.create_table(
        "Image",
        sa.Column("ImageID", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("Name", sa.String(100), nullable=False),
        sa.Column("NameKey", sa.String(100), nullable=False),
        sa.Column("Description", sa.String(200), nullable=True),
        sa.Column("Path", sa.String(200), nullable=False),
        sa.Column("GalleryID", sa.Integer(), sa.ForeignKey("Gallery.GalleryID"), nullable=False),
        sa.UniqueConstraint("NameKey", "GalleryID", name="uq_image_name_gallery"),
    )
    op.create_index("ix_Image_GalleryID", "Image", ["GalleryID"])
    op.create_table(
        "Comment",
        sa.Column("CommentID", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("ImageID", sa.Integer(), sa.ForeignKey("Image.ImageID"), nullable=False),
        sa.Column("GalleryID", sa.Integer(), sa.ForeignKey("Gallery.GalleryID"), nullable=False),
        sa.Column("AuthorID", sa.Integer(), sa.ForeignKey("Users.UserID"), nullable=False),
        sa.Column("Content", sa.String(250), nullable=False),
        sa.Column("CreatedAt", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_Comment_ImageID", "Comment", ["ImageID"])
    op.create_table(
        "AppErrorLog",
        sa.Column("ErrorID", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("OccurredAt", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("RequestID", sa.String(64), nullable=True),
        sa.Column("Path", sa.String(500), nullable=True),
        sa.Column("Method", sa.String(16), nullable=True),
        sa.Column("StatusCode", sa.Integer(), nullable=True),
        sa.Column("Username", sa.String(100), nullable=True),
        sa.Column("ClientIP", sa.String(45), nullable=True),
        sa.Column("Message", sa.Text(), nullable=True),
        sa.Column("StackTrace", sa.Text(), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("AppErrorLog")
    op.drop_index("ix_Comment_ImageID", table_name="Comment")
    op.drop_table("Comment")
    op.drop_index("ix_Image_GalleryID", table_name="Image")
    op.drop_table("Image")
    op.drop_index("ix_Gallery_OwnerID", table_name="Gallery")
    op.drop_table("Gallery")
    op.drop_table("Users")
    user_role.drop(op.get_bind(), checkfirst=True)
