"""SQLAlchemy Core table definitions for the database schema.

Discord snowflakes (guilds, channels, roles, users, messages) are stored as
text and parsed at the edges where they are handed to Discord.
"""

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP

from .enums import fleet_message_type_enum, ping_format_field_type_enum

# Naming convention for constraints (helps Alembic generate better names)
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}
metadata = MetaData(naming_convention=convention)


# =====================================================
# 1. PING FORMATS (custom field templates)
# =====================================================
ping_formats = Table(
    "ping_formats",
    metadata,
    Column("ping_format_id", Integer, primary_key=True, autoincrement=True),
    Column("guild_id", Text, nullable=False),
    Column("name", Text, nullable=False),
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Index("idx_ping_formats_guild_id", "guild_id"),
)

ping_format_fields = Table(
    "ping_format_fields",
    metadata,
    Column("field_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "ping_format_id",
        Integer,
        ForeignKey("ping_formats.ping_format_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("name", Text, nullable=False),
    Column("priority", Integer, nullable=False, server_default="0"),
    Column("field_type", ping_format_field_type_enum, nullable=False),
    Column("show_in_ping", Boolean, nullable=False, server_default="true"),
    Index("idx_ping_format_fields_ping_format_id", "ping_format_id"),
)


# =====================================================
# 2. FLEET CATEGORIES
# =====================================================
fleet_categories = Table(
    "fleet_categories",
    metadata,
    Column("category_id", Integer, primary_key=True, autoincrement=True),
    Column("guild_id", Text, nullable=False),
    Column(
        "ping_format_id",
        Integer,
        ForeignKey("ping_formats.ping_format_id", ondelete="RESTRICT"),
        nullable=False,
    ),
    Column("name", Text, nullable=False),
    # Reminder fires this many seconds before fleet time; NULL disables reminders
    Column("ping_lead_time_seconds", Integer),
    Column("ping_cooldown_seconds", Integer),
    Column("max_pre_ping_seconds", Integer),
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Index("idx_fleet_categories_guild_id", "guild_id"),
)

fleet_category_channels = Table(
    "fleet_category_channels",
    metadata,
    Column(
        "category_id",
        Integer,
        ForeignKey("fleet_categories.category_id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("channel_id", Text, primary_key=True),
    Index("idx_fleet_category_channels_channel_id", "channel_id"),
)

fleet_category_ping_roles = Table(
    "fleet_category_ping_roles",
    metadata,
    Column(
        "category_id",
        Integer,
        ForeignKey("fleet_categories.category_id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("role_id", Text, primary_key=True),
)


# =====================================================
# 3. FLEETS
# =====================================================
fleets = Table(
    "fleets",
    metadata,
    Column("fleet_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "category_id",
        Integer,
        ForeignKey("fleet_categories.category_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("name", Text, nullable=False),
    Column("commander_id", Text, nullable=False),
    Column("fleet_time", TIMESTAMP(timezone=True), nullable=False),
    Column("description", Text),
    Column("hidden", Boolean, nullable=False, server_default="false"),
    Column("disable_reminder", Boolean, nullable=False, server_default="false"),
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Index("idx_fleets_fleet_time", "fleet_time"),
    Index("idx_fleets_category_id", "category_id"),
)

fleet_field_values = Table(
    "fleet_field_values",
    metadata,
    Column(
        "fleet_id",
        Integer,
        ForeignKey("fleets.fleet_id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "field_id",
        Integer,
        ForeignKey("ping_format_fields.field_id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("value", Text, nullable=False),
)


# =====================================================
# 4. FLEET MESSAGES (one per fleet, channel and message type)
# =====================================================
fleet_messages = Table(
    "fleet_messages",
    metadata,
    Column("fleet_message_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "fleet_id",
        Integer,
        ForeignKey("fleets.fleet_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("channel_id", Text, nullable=False),
    # NULL while the slot is reserved and the Discord send is in flight
    Column("message_id", Text),
    Column("message_type", fleet_message_type_enum, nullable=False),
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    UniqueConstraint(
        "fleet_id",
        "channel_id",
        "message_type",
        name="uq_fleet_messages_fleet_channel_type",
    ),
    Index("idx_fleet_messages_fleet_id", "fleet_id"),
)


# =====================================================
# 5. CHANNEL FLEET LISTS (rolling "upcoming events" summary)
# =====================================================
channel_fleet_lists = Table(
    "channel_fleet_lists",
    metadata,
    Column("channel_id", Text, primary_key=True),
    Column("message_id", Text, nullable=False),
    Column("last_message_at", TIMESTAMP(timezone=True), nullable=False),
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Column("updated_at", TIMESTAMP(timezone=True), server_default=func.now()),
)
