"""
Fleet management service.

Coordinates database writes with Discord announcements. The data mutation is
committed first; announcements and upcoming lists are then maintained on a
best-effort basis, so a Discord failure never fails the mutation.
"""

import logging
from datetime import datetime, timezone

import sentry_sdk

from timerboard.database import get_connection, get_transaction
from timerboard.errors import NotFoundError
from timerboard.notifications.dispatcher import (
    DispatchReport,
    cancel_all,
    post_creation,
    update_all,
)
from timerboard.notifications.upcoming import (
    refresh_upcoming_list,
    update_upcoming_list,
)
from timerboard.queries.categories import get_category
from timerboard.queries.fleets import (
    create_fleet as db_create_fleet,
    delete_fleet as db_delete_fleet,
    get_fleet,
    get_fleet_field_values,
    replace_fleet_field_values,
    update_fleet as db_update_fleet,
)
from timerboard.snowflake import parse_snowflake

logger = logging.getLogger(__name__)


FLEET_TIME_FORMAT = "%Y-%m-%d %H:%M"

UPDATABLE_COLUMNS = (
    "category_id",
    "name",
    "commander_id",
    "fleet_time",
    "description",
    "hidden",
    "disable_reminder",
)


def parse_fleet_time(value, now: datetime | None = None) -> datetime:
    """
    Parse a fleet time given as ``YYYY-MM-DD HH:MM`` (UTC), ``now`` or a datetime.

    Raises:
        ValueError: If the value is not in a supported format
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    text = str(value).strip()
    if text.lower() == "now":
        return (now or datetime.now(timezone.utc)).replace(second=0, microsecond=0)
    try:
        return datetime.strptime(text, FLEET_TIME_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        raise ValueError(
            f"Invalid fleet time {value!r}, expected 'YYYY-MM-DD HH:MM' or 'now'"
        ) from None


def _validate_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise ValueError("Fleet name must not be empty")
    return name


def _normalize_field_values(field_values: dict | None) -> dict[int, str]:
    """Coerce field ids to int (JSON object keys arrive as strings)."""
    return {int(k): str(v) for k, v in (field_values or {}).items()}


def _summarize(report: DispatchReport | None) -> dict | None:
    if report is None:
        return None
    return {
        "attempted": report.attempted,
        "succeeded": report.succeeded,
        "failed": report.failed,
    }


async def _best_effort(action: str, fleet_id: int, coro):
    """Await a notification step, logging instead of raising on failure."""
    try:
        return await coro
    except Exception as e:
        logger.error(f"Failed to {action} for fleet {fleet_id}: {e}")
        sentry_sdk.capture_exception(e)
        return None


async def _maintain_lists(channel_ids, maintain) -> list[dict]:
    results = []
    for channel_id in channel_ids:
        try:
            result = await maintain(channel_id)
            results.append({"channel_id": str(result.channel_id), "action": result.action.value})
        except Exception as e:
            logger.error(f"Failed to maintain upcoming list in channel {channel_id}: {e}")
            results.append({"channel_id": str(channel_id), "action": "failed"})
    return results


async def create_fleet(
    category_id: int,
    name: str,
    commander_id: str,
    fleet_time,
    description: str | None = None,
    hidden: bool = False,
    disable_reminder: bool = False,
    field_values: dict | None = None,
) -> dict:
    """
    Create a fleet, announce it and refresh the upcoming lists.

    Returns:
        Dict with the new "fleet" row, a "notifications" summary and "lists"

    Raises:
        ValueError: Invalid name, commander id or fleet time
        NotFoundError: Category does not exist
    """
    name = _validate_name(name)
    commander_id = str(parse_snowflake(commander_id, "commander id"))
    fleet_time = parse_fleet_time(fleet_time)
    values = _normalize_field_values(field_values)

    async with get_transaction() as conn:
        category = await get_category(conn, category_id)
        if category is None:
            raise NotFoundError(f"Fleet category {category_id} not found")
        fleet = await db_create_fleet(
            conn,
            category_id=category_id,
            name=name,
            commander_id=commander_id,
            fleet_time=fleet_time,
            description=description,
            hidden=hidden,
            disable_reminder=disable_reminder,
        )
        await replace_fleet_field_values(conn, fleet["fleet_id"], values)

    logger.info(f"Created fleet {fleet['fleet_id']} ({name}) at {fleet_time}")

    report = await _best_effort(
        "announce creation", fleet["fleet_id"], post_creation(fleet, values)
    )
    lists = []
    if not fleet["hidden"]:
        lists = await _maintain_lists(category["channel_ids"], refresh_upcoming_list)

    return {"fleet": fleet, "notifications": _summarize(report), "lists": lists}


async def update_fleet(
    fleet_id: int,
    changes: dict,
    field_values: dict | None = None,
) -> dict:
    """
    Update a fleet, edit its announcements and its channels' upcoming lists.

    Args:
        fleet_id: Fleet to update
        changes: Column values to change (subset of UPDATABLE_COLUMNS)
        field_values: Full replacement of custom field values, or None to keep

    Raises:
        ValueError: Invalid column or value
        NotFoundError: Fleet or new category does not exist
    """
    unknown = set(changes) - set(UPDATABLE_COLUMNS)
    if unknown:
        raise ValueError(f"Cannot update fleet columns: {', '.join(sorted(unknown))}")

    values = dict(changes)
    if "name" in values:
        values["name"] = _validate_name(values["name"])
    if "commander_id" in values:
        values["commander_id"] = str(parse_snowflake(values["commander_id"], "commander id"))
    if "fleet_time" in values:
        values["fleet_time"] = parse_fleet_time(values["fleet_time"])

    async with get_transaction() as conn:
        old = await get_fleet(conn, fleet_id)
        if old is None:
            raise NotFoundError(f"Fleet {fleet_id} not found")
        old_category = await get_category(conn, old["category_id"])

        new_category = old_category
        if values.get("category_id", old["category_id"]) != old["category_id"]:
            new_category = await get_category(conn, values["category_id"])
            if new_category is None:
                raise NotFoundError(f"Fleet category {values['category_id']} not found")

        fleet = await db_update_fleet(conn, fleet_id, **values)
        if field_values is not None:
            current_values = _normalize_field_values(field_values)
            await replace_fleet_field_values(conn, fleet_id, current_values)
        else:
            current_values = await get_fleet_field_values(conn, fleet_id)

    logger.info(f"Updated fleet {fleet_id}")

    report = await _best_effort(
        "update announcements", fleet_id, update_all(fleet, current_values)
    )

    channel_ids = []
    for category in (old_category, new_category):
        for channel_id in (category or {}).get("channel_ids", []):
            if channel_id not in channel_ids:
                channel_ids.append(channel_id)
    lists = await _maintain_lists(channel_ids, update_upcoming_list)

    return {"fleet": fleet, "notifications": _summarize(report), "lists": lists}


async def delete_fleet(fleet_id: int, cancelled_by: str | None = None) -> dict:
    """
    Cancel every announcement of a fleet, delete it and update the lists.

    Raises:
        NotFoundError: Fleet does not exist
    """
    async with get_connection() as conn:
        fleet = await get_fleet(conn, fleet_id)
        if fleet is None:
            raise NotFoundError(f"Fleet {fleet_id} not found")
        category = await get_category(conn, fleet["category_id"])

    # Cancel first: deleting the fleet removes its message records
    report = await _best_effort(
        "cancel announcements", fleet_id, cancel_all(fleet, cancelled_by)
    )

    async with get_transaction() as conn:
        await db_delete_fleet(conn, fleet_id)
    logger.info(f"Deleted fleet {fleet_id}")

    lists = await _maintain_lists(
        (category or {}).get("channel_ids", []), update_upcoming_list
    )

    return {"fleet": fleet, "notifications": _summarize(report), "lists": lists}
