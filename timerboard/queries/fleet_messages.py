"""
Database queries for fleet message records.

A record is reserved (message_id NULL) before the Discord send and confirmed
with the message id afterwards. The unique constraint on
(fleet_id, channel_id, message_type) makes the reservation the single point
where duplicate posts are prevented.
"""

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncConnection

from ..enums import FleetMessageType
from ..tables import fleet_messages


async def reserve_fleet_message(
    conn: AsyncConnection,
    fleet_id: int,
    channel_id: str,
    message_type: FleetMessageType,
) -> int | None:
    """
    Reserve the (fleet, channel, type) slot.

    Returns:
        The reservation's fleet_message_id, or None if the slot is already taken
    """
    result = await conn.execute(
        pg_insert(fleet_messages)
        .values(
            fleet_id=fleet_id,
            channel_id=channel_id,
            message_type=message_type,
        )
        .on_conflict_do_nothing(
            index_elements=["fleet_id", "channel_id", "message_type"]
        )
        .returning(fleet_messages.c.fleet_message_id)
    )
    return result.scalar_one_or_none()


async def confirm_fleet_message(
    conn: AsyncConnection,
    fleet_message_id: int,
    message_id: str,
) -> None:
    """Attach the sent Discord message to a reservation."""
    await conn.execute(
        update(fleet_messages)
        .where(fleet_messages.c.fleet_message_id == fleet_message_id)
        .values(message_id=message_id, created_at=func.now())
    )


async def release_fleet_message(conn: AsyncConnection, fleet_message_id: int) -> None:
    """Drop a reservation whose send failed so a later tick can retry."""
    await conn.execute(
        delete(fleet_messages).where(
            and_(
                fleet_messages.c.fleet_message_id == fleet_message_id,
                fleet_messages.c.message_id.is_(None),
            )
        )
    )


async def get_fleet_messages(conn: AsyncConnection, fleet_id: int) -> list[dict]:
    """Get all sent messages of a fleet, oldest first."""
    result = await conn.execute(
        select(fleet_messages)
        .where(
            fleet_messages.c.fleet_id == fleet_id,
            fleet_messages.c.message_id.is_not(None),
        )
        .order_by(fleet_messages.c.created_at, fleet_messages.c.fleet_message_id)
    )
    return [dict(row._mapping) for row in result]


async def get_fleet_messages_for_channel(
    conn: AsyncConnection,
    fleet_id: int,
    channel_id: str,
) -> list[dict]:
    """Get the sent messages of a fleet in one channel, oldest first."""
    result = await conn.execute(
        select(fleet_messages)
        .where(
            fleet_messages.c.fleet_id == fleet_id,
            fleet_messages.c.channel_id == channel_id,
            fleet_messages.c.message_id.is_not(None),
        )
        .order_by(fleet_messages.c.created_at, fleet_messages.c.fleet_message_id)
    )
    return [dict(row._mapping) for row in result]


async def fleet_message_exists(
    conn: AsyncConnection,
    fleet_id: int,
    message_type: FleetMessageType,
) -> bool:
    """Check whether any record (sent or in flight) of this type exists."""
    result = await conn.execute(
        select(fleet_messages.c.fleet_message_id)
        .where(
            fleet_messages.c.fleet_id == fleet_id,
            fleet_messages.c.message_type == message_type,
        )
        .limit(1)
    )
    return result.first() is not None
