"""Database queries for the per-channel upcoming fleets list."""

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncConnection

from ..tables import channel_fleet_lists


async def get_channel_fleet_list(conn: AsyncConnection, channel_id: str) -> dict | None:
    result = await conn.execute(
        select(channel_fleet_lists).where(
            channel_fleet_lists.c.channel_id == channel_id
        )
    )
    row = result.mappings().first()
    return dict(row) if row else None


async def save_posted_list(
    conn: AsyncConnection,
    channel_id: str,
    message_id: str,
    now: datetime,
) -> None:
    """
    Record a freshly posted list message.

    The new message is the latest in the channel, so last_message_at moves
    together with updated_at.
    """
    stmt = pg_insert(channel_fleet_lists).values(
        channel_id=channel_id,
        message_id=message_id,
        last_message_at=now,
        created_at=now,
        updated_at=now,
    )
    await conn.execute(
        stmt.on_conflict_do_update(
            index_elements=["channel_id"],
            set_={
                "message_id": stmt.excluded.message_id,
                "last_message_at": stmt.excluded.last_message_at,
                "updated_at": stmt.excluded.updated_at,
            },
        )
    )


async def mark_list_edited(conn: AsyncConnection, channel_id: str, now: datetime) -> None:
    """Record an in-place edit (only updated_at moves)."""
    await conn.execute(
        update(channel_fleet_lists)
        .where(channel_fleet_lists.c.channel_id == channel_id)
        .values(updated_at=now)
    )


async def record_channel_activity(
    conn: AsyncConnection,
    channel_id: str,
    message_id: str,
    at: datetime,
) -> bool:
    """
    Record that a message was posted in a tracked channel.

    Ignored for channels without a list and for the list message itself.

    Returns:
        True if a list record was updated
    """
    result = await conn.execute(
        update(channel_fleet_lists)
        .where(
            channel_fleet_lists.c.channel_id == channel_id,
            channel_fleet_lists.c.message_id != message_id,
        )
        .values(last_message_at=at)
    )
    return result.rowcount > 0
