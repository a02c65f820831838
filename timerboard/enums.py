"""SQLAlchemy enum definitions for the database schema."""

import enum

from sqlalchemy import Enum as SQLEnum


class FleetMessageType(str, enum.Enum):
    """Kind of announcement a fleet message record points at."""

    creation = "creation"
    reminder = "reminder"
    formup = "formup"


class PingFormatFieldType(str, enum.Enum):
    text = "text"
    boolean = "boolean"


# These reference PostgreSQL types created by the migrations (create_type=False)
fleet_message_type_enum = SQLEnum(
    FleetMessageType, name="fleet_message_type", create_type=False, native_enum=True
)
ping_format_field_type_enum = SQLEnum(
    PingFormatFieldType,
    name="ping_format_field_type",
    create_type=False,
    native_enum=True,
)
