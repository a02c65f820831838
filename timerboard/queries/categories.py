"""Database queries for fleet categories and their ping configuration."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncConnection

from ..tables import (
    fleet_categories,
    fleet_category_channels,
    fleet_category_ping_roles,
    ping_format_fields,
)


async def get_category(conn: AsyncConnection, category_id: int) -> dict | None:
    """
    Get a category with everything needed to announce its fleets.

    Returns:
        Category row plus ``channel_ids``, ``ping_role_ids`` and ``fields``
        (ping format fields ordered by priority), or None if not found.
    """
    result = await conn.execute(
        select(fleet_categories).where(fleet_categories.c.category_id == category_id)
    )
    row = result.mappings().first()
    if not row:
        return None
    category = dict(row)

    channels = await conn.execute(
        select(fleet_category_channels.c.channel_id)
        .where(fleet_category_channels.c.category_id == category_id)
        .order_by(fleet_category_channels.c.channel_id)
    )
    category["channel_ids"] = [r.channel_id for r in channels]

    roles = await conn.execute(
        select(fleet_category_ping_roles.c.role_id)
        .where(fleet_category_ping_roles.c.category_id == category_id)
        .order_by(fleet_category_ping_roles.c.role_id)
    )
    category["ping_role_ids"] = [r.role_id for r in roles]

    fields = await conn.execute(
        select(ping_format_fields)
        .where(ping_format_fields.c.ping_format_id == category["ping_format_id"])
        .order_by(ping_format_fields.c.priority, ping_format_fields.c.field_id)
    )
    category["fields"] = [dict(r._mapping) for r in fields]

    return category


async def get_category_ids_for_channel(
    conn: AsyncConnection, channel_id: str
) -> list[int]:
    """Get the ids of every category that posts into a channel."""
    result = await conn.execute(
        select(fleet_category_channels.c.category_id)
        .where(fleet_category_channels.c.channel_id == channel_id)
        .order_by(fleet_category_channels.c.category_id)
    )
    return [row.category_id for row in result]


async def get_categories_by_ids(
    conn: AsyncConnection, category_ids: list[int]
) -> dict[int, dict]:
    """Get category rows keyed by category_id."""
    if not category_ids:
        return {}
    result = await conn.execute(
        select(fleet_categories).where(
            fleet_categories.c.category_id.in_(category_ids)
        )
    )
    return {row.category_id: dict(row._mapping) for row in result}


async def get_configured_channel_ids(conn: AsyncConnection) -> list[str]:
    """Get every channel that at least one category posts into."""
    result = await conn.execute(
        select(fleet_category_channels.c.channel_id)
        .distinct()
        .order_by(fleet_category_channels.c.channel_id)
    )
    return [row.channel_id for row in result]
