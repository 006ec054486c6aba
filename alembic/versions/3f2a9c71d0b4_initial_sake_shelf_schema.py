"""initial sake shelf schema

Revision ID: 3f2a9c71d0b4
Revises:
Create Date: 2026-10-17 09:12:44.518203

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f2a9c71d0b4"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_id"), "users", ["id"], unique=False)
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "profiles",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=True),
        sa.Column("avatar_url", sa.String(length=1024), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "alcohols",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("subtype", sa.String(length=255), nullable=True),
        sa.Column("brand", sa.String(length=255), nullable=True),
        sa.Column("producer", sa.String(length=255), nullable=True),
        sa.Column("origin_country", sa.String(length=100), nullable=True),
        sa.Column("origin_region", sa.String(length=100), nullable=True),
        sa.Column("alcohol_percentage", sa.Float(), nullable=True),
        sa.Column("price_range", sa.String(length=100), nullable=True),
        sa.Column("characteristics", sa.JSON(), nullable=True),
        sa.Column("raw_llm_response", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_alcohols_id"), "alcohols", ["id"], unique=False)
    op.create_index(op.f("ix_alcohols_type"), "alcohols", ["type"], unique=False)

    op.create_table(
        "collection_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("alcohol_id", sa.Integer(), nullable=False),
        sa.Column("photo_url", sa.String(length=1024), nullable=True),
        sa.Column("drinking_date", sa.Date(), nullable=True),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("memo", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_collection_entries_rating"),
        sa.ForeignKeyConstraint(["alcohol_id"], ["alcohols.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_collection_entries_id"), "collection_entries", ["id"], unique=False)
    op.create_index(
        op.f("ix_collection_entries_user_id"), "collection_entries", ["user_id"], unique=False
    )
    op.create_index(
        op.f("ix_collection_entries_alcohol_id"), "collection_entries", ["alcohol_id"], unique=False
    )

    op.create_table(
        "shelf_shares",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("shared_with_id", sa.Integer(), nullable=True),
        sa.Column("invite_code", sa.String(length=16), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "shared_with_id IS NULL OR owner_id <> shared_with_id",
            name="ck_shelf_shares_not_self",
        ),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["shared_with_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("invite_code"),
    )
    op.create_index(op.f("ix_shelf_shares_id"), "shelf_shares", ["id"], unique=False)
    op.create_index(op.f("ix_shelf_shares_owner_id"), "shelf_shares", ["owner_id"], unique=False)
    op.create_index(
        op.f("ix_shelf_shares_shared_with_id"), "shelf_shares", ["shared_with_id"], unique=False
    )
    op.create_index(op.f("ix_shelf_shares_status"), "shelf_shares", ["status"], unique=False)
    # At most one unused invite per owner
    op.create_index(
        "uq_shelf_shares_open_invite",
        "shelf_shares",
        ["owner_id"],
        unique=True,
        postgresql_where=sa.text("status = 'pending' AND shared_with_id IS NULL"),
    )


def downgrade() -> None:
    op.drop_index("uq_shelf_shares_open_invite", table_name="shelf_shares")
    op.drop_index(op.f("ix_shelf_shares_status"), table_name="shelf_shares")
    op.drop_index(op.f("ix_shelf_shares_shared_with_id"), table_name="shelf_shares")
    op.drop_index(op.f("ix_shelf_shares_owner_id"), table_name="shelf_shares")
    op.drop_index(op.f("ix_shelf_shares_id"), table_name="shelf_shares")
    op.drop_table("shelf_shares")
    op.drop_index(op.f("ix_collection_entries_alcohol_id"), table_name="collection_entries")
    op.drop_index(op.f("ix_collection_entries_user_id"), table_name="collection_entries")
    op.drop_index(op.f("ix_collection_entries_id"), table_name="collection_entries")
    op.drop_table("collection_entries")
    op.drop_index(op.f("ix_alcohols_type"), table_name="alcohols")
    op.drop_index(op.f("ix_alcohols_id"), table_name="alcohols")
    op.drop_table("alcohols")
    op.drop_table("profiles")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_index(op.f("ix_users_id"), table_name="users")
    op.drop_table("users")
