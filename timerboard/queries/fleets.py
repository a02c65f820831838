"""Database queries for fleets and their custom field values."""

from datetime import datetime, timedelta

from sqlalchemy import delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncConnection

from ..tables import fleet_categories, fleet_field_values, fleets


async def get_fleet(conn: AsyncConnection, fleet_id: int) -> dict | None:
    """Get a single fleet by ID."""
    result = await conn.execute(select(fleets).where(fleets.c.fleet_id == fleet_id))
    row = result.first()
    return dict(row._mapping) if row else None


async def get_fleet_field_values(conn: AsyncConnection, fleet_id: int) -> dict[int, str]:
    """Get a fleet's custom field values keyed by field_id."""
    result = await conn.execute(
        select(fleet_field_values.c.field_id, fleet_field_values.c.value).where(
            fleet_field_values.c.fleet_id == fleet_id
        )
    )
    return {row.field_id: row.value for row in result}


async def create_fleet(
    conn: AsyncConnection,
    category_id: int,
    name: str,
    commander_id: str,
    fleet_time: datetime,
    description: str | None = None,
    hidden: bool = False,
    disable_reminder: bool = False,
) -> dict:
    """
    Create a fleet record.

    Returns:
        The new fleet row
    """
    result = await conn.execute(
        insert(fleets)
        .values(
            category_id=category_id,
            name=name,
            commander_id=commander_id,
            fleet_time=fleet_time,
            description=description,
            hidden=hidden,
            disable_reminder=disable_reminder,
        )
        .returning(fleets)
    )
    return dict(result.mappings().one())


async def update_fleet(conn: AsyncConnection, fleet_id: int, **values) -> dict | None:
    """Update the given fleet columns and return the updated row."""
    if not values:
        return await get_fleet(conn, fleet_id)
    result = await conn.execute(
        update(fleets)
        .where(fleets.c.fleet_id == fleet_id)
        .values(**values)
        .returning(fleets)
    )
    row = result.mappings().first()
    return dict(row) if row else None


async def replace_fleet_field_values(
    conn: AsyncConnection,
    fleet_id: int,
    values: dict[int, str],
) -> None:
    """Replace all custom field values of a fleet."""
    await conn.execute(
        delete(fleet_field_values).where(fleet_field_values.c.fleet_id == fleet_id)
    )
    if values:
        await conn.execute(
            insert(fleet_field_values),
            [
                {"fleet_id": fleet_id, "field_id": field_id, "value": value}
                for field_id, value in values.items()
            ],
        )


async def delete_fleet(conn: AsyncConnection, fleet_id: int) -> bool:
    """Delete a fleet (field values and message records cascade)."""
    result = await conn.execute(delete(fleets).where(fleets.c.fleet_id == fleet_id))
    return result.rowcount > 0


async def get_reminder_candidates(conn: AsyncConnection, now: datetime) -> list[dict]:
    """
    Get fleets that could still receive a reminder.

    Only not-yet-started, visible fleets with reminders enabled in a category
    that has a lead time. Each row carries the category's
    ``ping_lead_time_seconds``; the exact window is decided by the policy.
    """
    result = await conn.execute(
        select(fleets, fleet_categories.c.ping_lead_time_seconds)
        .select_from(
            fleets.join(
                fleet_categories,
                fleets.c.category_id == fleet_categories.c.category_id,
            )
        )
        .where(
            fleets.c.hidden.is_(False),
            fleets.c.disable_reminder.is_(False),
            fleet_categories.c.ping_lead_time_seconds.is_not(None),
            fleets.c.fleet_time > now,
        )
        .order_by(fleets.c.fleet_time)
    )
    return [dict(row._mapping) for row in result]


async def get_formup_candidates(
    conn: AsyncConnection,
    now: datetime,
    max_age: timedelta,
) -> list[dict]:
    """Get fleets whose time has passed by at most ``max_age``."""
    result = await conn.execute(
        select(fleets)
        .where(
            fleets.c.fleet_time <= now,
            fleets.c.fleet_time >= now - max_age,
        )
        .order_by(fleets.c.fleet_time)
    )
    return [dict(row._mapping) for row in result]


async def get_upcoming_fleets(
    conn: AsyncConnection,
    category_ids: list[int],
    now: datetime,
) -> list[dict]:
    """Get non-hidden future fleets for the given categories, soonest first."""
    if not category_ids:
        return []
    result = await conn.execute(
        select(fleets)
        .where(
            fleets.c.category_id.in_(category_ids),
            fleets.c.hidden.is_(False),
            fleets.c.fleet_time > now,
        )
        .order_by(fleets.c.fleet_time, fleets.c.fleet_id)
    )
    return [dict(row._mapping) for row in result]
