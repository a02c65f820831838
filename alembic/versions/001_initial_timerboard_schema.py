"""Initial timerboard schema.

Revision ID: 001
Revises:
Create Date: 2026-10-17

Creates ping formats and fields, fleet categories with their channels and
ping roles, fleets with custom field values, fleet message records and the
per-channel upcoming fleet lists.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


fleet_message_type = postgresql.ENUM(
    "creation", "reminder", "formup", name="fleet_message_type", create_type=False
)
ping_format_field_type = postgresql.ENUM(
    "text", "boolean", name="ping_format_field_type", create_type=False
)


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        postgresql.TIMESTAMP(timezone=True),
        server_default=sa.text("now()"),
        nullable=True,
    )


def upgrade() -> None:
    fleet_message_type.create(op.get_bind(), checkfirst=True)
    ping_format_field_type.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "ping_formats",
        sa.Column("ping_format_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("guild_id", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("ping_format_id", name=op.f("pk_ping_formats")),
    )
    op.create_index("idx_ping_formats_guild_id", "ping_formats", ["guild_id"])

    op.create_table(
        "ping_format_fields",
        sa.Column("field_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("ping_format_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("priority", sa.Integer(), server_default="0", nullable=False),
        sa.Column("field_type", ping_format_field_type, nullable=False),
        sa.Column("show_in_ping", sa.Boolean(), server_default="true", nullable=False),
        sa.ForeignKeyConstraint(
            ["ping_format_id"],
            ["ping_formats.ping_format_id"],
            name=op.f("fk_ping_format_fields_ping_format_id_ping_formats"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("field_id", name=op.f("pk_ping_format_fields")),
    )
    op.create_index(
        "idx_ping_format_fields_ping_format_id", "ping_format_fields", ["ping_format_id"]
    )

    op.create_table(
        "fleet_categories",
        sa.Column("category_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("guild_id", sa.Text(), nullable=False),
        sa.Column("ping_format_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("ping_lead_time_seconds", sa.Integer(), nullable=True),
        sa.Column("ping_cooldown_seconds", sa.Integer(), nullable=True),
        sa.Column("max_pre_ping_seconds", sa.Integer(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(
            ["ping_format_id"],
            ["ping_formats.ping_format_id"],
            name=op.f("fk_fleet_categories_ping_format_id_ping_formats"),
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("category_id", name=op.f("pk_fleet_categories")),
    )
    op.create_index("idx_fleet_categories_guild_id", "fleet_categories", ["guild_id"])

    op.create_table(
        "fleet_category_channels",
        sa.Column("category_id", sa.Integer(), nullable=False),
        sa.Column("channel_id", sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(
            ["category_id"],
            ["fleet_categories.category_id"],
            name=op.f("fk_fleet_category_channels_category_id_fleet_categories"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint(
            "category_id", "channel_id", name=op.f("pk_fleet_category_channels")
        ),
    )
    op.create_index(
        "idx_fleet_category_channels_channel_id",
        "fleet_category_channels",
        ["channel_id"],
    )

    op.create_table(
        "fleet_category_ping_roles",
        sa.Column("category_id", sa.Integer(), nullable=False),
        sa.Column("role_id", sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(
            ["category_id"],
            ["fleet_categories.category_id"],
            name=op.f("fk_fleet_category_ping_roles_category_id_fleet_categories"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint(
            "category_id", "role_id", name=op.f("pk_fleet_category_ping_roles")
        ),
    )

    op.create_table(
        "fleets",
        sa.Column("fleet_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("commander_id", sa.Text(), nullable=False),
        sa.Column("fleet_time", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("hidden", sa.Boolean(), server_default="false", nullable=False),
        sa.Column(
            "disable_reminder", sa.Boolean(), server_default="false", nullable=False
        ),
        _created_at(),
        sa.ForeignKeyConstraint(
            ["category_id"],
            ["fleet_categories.category_id"],
            name=op.f("fk_fleets_category_id_fleet_categories"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("fleet_id", name=op.f("pk_fleets")),
    )
    op.create_index("idx_fleets_fleet_time", "fleets", ["fleet_time"])
    op.create_index("idx_fleets_category_id", "fleets", ["category_id"])

    op.create_table(
        "fleet_field_values",
        sa.Column("fleet_id", sa.Integer(), nullable=False),
        sa.Column("field_id", sa.Integer(), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(
            ["fleet_id"],
            ["fleets.fleet_id"],
            name=op.f("fk_fleet_field_values_fleet_id_fleets"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["field_id"],
            ["ping_format_fields.field_id"],
            name=op.f("fk_fleet_field_values_field_id_ping_format_fields"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint(
            "fleet_id", "field_id", name=op.f("pk_fleet_field_values")
        ),
    )

    op.create_table(
        "fleet_messages",
        sa.Column("fleet_message_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("fleet_id", sa.Integer(), nullable=False),
        sa.Column("channel_id", sa.Text(), nullable=False),
        sa.Column("message_id", sa.Text(), nullable=True),
        sa.Column("message_type", fleet_message_type, nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(
            ["fleet_id"],
            ["fleets.fleet_id"],
            name=op.f("fk_fleet_messages_fleet_id_fleets"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("fleet_message_id", name=op.f("pk_fleet_messages")),
        sa.UniqueConstraint(
            "fleet_id",
            "channel_id",
            "message_type",
            name="uq_fleet_messages_fleet_channel_type",
        ),
    )
    op.create_index("idx_fleet_messages_fleet_id", "fleet_messages", ["fleet_id"])

    op.create_table(
        "channel_fleet_lists",
        sa.Column("channel_id", sa.Text(), nullable=False),
        sa.Column("message_id", sa.Text(), nullable=False),
        sa.Column(
            "last_message_at", postgresql.TIMESTAMP(timezone=True), nullable=False
        ),
        _created_at(),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("channel_id", name=op.f("pk_channel_fleet_lists")),
    )


def downgrade() -> None:
    op.drop_table("channel_fleet_lists")
    op.drop_index("idx_fleet_messages_fleet_id", table_name="fleet_messages")
    op.drop_table("fleet_messages")
    op.drop_table("fleet_field_values")
    op.drop_index("idx_fleets_category_id", table_name="fleets")
    op.drop_index("idx_fleets_fleet_time", table_name="fleets")
    op.drop_table("fleets")
    op.drop_table("fleet_category_ping_roles")
    op.drop_index(
        "idx_fleet_category_channels_channel_id", table_name="fleet_category_channels"
    )
    op.drop_table("fleet_category_channels")
    op.drop_index("idx_fleet_categories_guild_id", table_name="fleet_categories")
    op.drop_table("fleet_categories")
    op.drop_index(
        "idx_ping_format_fields_ping_format_id", table_name="ping_format_fields"
    )
    op.drop_table("ping_format_fields")
    op.drop_index("idx_ping_formats_guild_id", table_name="ping_formats")
    op.drop_table("ping_formats")
    ping_format_field_type.drop(op.get_bind(), checkfirst=True)
    fleet_message_type.drop(op.get_bind(), checkfirst=True)
