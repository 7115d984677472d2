"""Create users, listings and bookings tables

Revision ID: 001
Revises: None
Create Date: 2026-03-14 00:00:00.000000+00:00

What:  Initial schema: identities, listings owned by identities, and
       bookings made by identities against listings.
How:   Generic column types (Uuid, JSON, DateTime with time zone) so the same
       migration runs on PostgreSQL and SQLite.

Rollback: downgrade() drops all three tables (destructive).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column(
            "email",
            sa.String(320),
            nullable=False,
            comment="Login name; unique across all identities",
        ),
        sa.Column(
            "password_hash",
            sa.String(255),
            nullable=False,
            comment="pbkdf2_sha256 hash; plaintext is never stored",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "listings",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "owner_id",
            sa.Uuid(),
            nullable=False,
            comment="Creating identity; the only one allowed to modify the row",
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("address", sa.String(500), nullable=False, server_default=""),
        sa.Column("photos", sa.JSON(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("perks", sa.JSON(), nullable=False),
        sa.Column("extra_info", sa.Text(), nullable=False, server_default=""),
        sa.Column("check_in", sa.String(20), nullable=False, server_default=""),
        sa.Column("check_out", sa.String(20), nullable=False, server_default=""),
        sa.Column("max_guests", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("price", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "version",
            sa.Integer(),
            nullable=False,
            server_default="1",
            comment="Optimistic concurrency counter, bumped on every update",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], name="fk_listings_owner_id_users"),
        sa.PrimaryKeyConstraint("id", name="pk_listings"),
    )
    op.create_index("idx_listings_owner_id", "listings", ["owner_id"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("listing_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("check_in", sa.Date(), nullable=False),
        sa.Column("check_out", sa.Date(), nullable=False),
        sa.Column("guests", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("phone", sa.String(40), nullable=False),
        sa.Column(
            "price",
            sa.Integer(),
            nullable=False,
            comment="nights * listing price at booking time",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.CheckConstraint("check_out > check_in", name="ck_bookings_date_range"),
        sa.ForeignKeyConstraint(["listing_id"], ["listings.id"], name="fk_bookings_listing_id_listings"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_bookings_user_id_users"),
        sa.PrimaryKeyConstraint("id", name="pk_bookings"),
    )
    op.create_index("idx_bookings_user_id", "bookings", ["user_id"])


def downgrade() -> None:
    op.drop_index("idx_bookings_user_id", table_name="bookings")
    op.drop_table("bookings")
    op.drop_index("idx_listings_owner_id", table_name="listings")
    op.drop_table("listings")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
