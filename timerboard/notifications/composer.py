"""
Builds the Discord payload for fleet announcements.

A notification is a ping line (bold title plus role mentions) and an embed
describing the fleet. Cancellation and upcoming-list embeds are built here
too so all wording and colors live in one place.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

import discord

from timerboard.discord_outbound import resolve_display_name
from timerboard.enums import FleetMessageType, PingFormatFieldType
from timerboard.notifications.templates import get_message
from timerboard.notifications.urls import build_app_url
from timerboard.snowflake import parse_snowflake

logger = logging.getLogger(__name__)


CREATION_COLOR = 0x3498DB
REMINDER_COLOR = 0xF39C12
FORMUP_COLOR = 0xE74C3C
CANCEL_COLOR = 0x95A5A6
UPCOMING_LIST_COLOR = 0x5865F2

KIND_COLORS = {
    FleetMessageType.creation: CREATION_COLOR,
    FleetMessageType.reminder: REMINDER_COLOR,
    FleetMessageType.formup: FORMUP_COLOR,
}

KIND_TEMPLATES = {
    FleetMessageType.creation: "fleet_creation",
    FleetMessageType.reminder: "fleet_reminder",
    FleetMessageType.formup: "fleet_formup",
}

EVERYONE_MENTION = "@everyone"


@dataclass
class ComposedMessage:
    """Ping text plus embed, ready to be sent."""

    content: str
    embed: discord.Embed


def _utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _time_context(fleet_time: datetime) -> dict:
    fleet_time = _utc(fleet_time)
    return {
        "fleet_time_utc": fleet_time.strftime("%Y-%m-%d %H:%M"),
        "timestamp": int(fleet_time.timestamp()),
    }


def build_title(kind: FleetMessageType, category_name: str) -> str:
    return get_message(KIND_TEMPLATES[kind], "title", {"category": category_name})


def build_ping_content(title: str, ping_role_ids: list, guild_id: int) -> str:
    """
    Title followed by one mention per configured role.

    A role whose id equals the guild id is the guild's @everyone role.

    Raises:
        InvalidIdError: If a stored role id is malformed
    """
    content = f"{title}\n\n"
    for raw_role_id in ping_role_ids:
        role_id = parse_snowflake(raw_role_id, "role id")
        if role_id == guild_id:
            content += f"{EVERYONE_MENTION} "
        else:
            content += f"<@&{role_id}> "
    return content


def format_field_value(field: dict, value: str) -> str:
    """Render a custom field value according to its declared type."""
    if field["field_type"] == PingFormatFieldType.boolean:
        if value == "true":
            return "Yes"
        if value == "false":
            return "No"
    return value


def build_fleet_embed(
    fleet: dict,
    fields: list[dict],
    field_values: dict[int, str],
    color: int,
    commander_name: str,
    now: datetime | None = None,
) -> discord.Embed:
    """
    Build the fleet description embed.

    Fields in order: FC, start time (UTC and local), custom fields by
    priority, then the fleet description.
    """
    now = now or datetime.now(timezone.utc)
    time_context = _time_context(fleet["fleet_time"])

    embed = discord.Embed(
        title=fleet["name"],
        url=build_app_url(),
        color=color,
        timestamp=now,
    )
    embed.add_field(name="FC", value=f"<@{fleet['commander_id']}>", inline=False)
    embed.add_field(
        name="Start Time (UTC)",
        value=get_message("fleet_embed", "start_time_utc", time_context),
        inline=False,
    )
    embed.add_field(
        name="Start Time (Local)",
        value=get_message("fleet_embed", "start_time_local", time_context),
        inline=False,
    )

    for field in sorted(fields, key=lambda f: (f["priority"], f["field_id"])):
        if not field.get("show_in_ping", True):
            continue
        value = field_values.get(field["field_id"])
        if not value:
            continue
        embed.add_field(
            name=field["name"], value=format_field_value(field, value), inline=False
        )

    if fleet.get("description"):
        embed.add_field(
            name="Additional Information", value=fleet["description"], inline=False
        )

    embed.set_footer(
        text=get_message("fleet_embed", "footer", {"commander_name": commander_name})
    )
    return embed


def build_cancel_embed(
    fleet: dict,
    category_name: str,
    cancelled_by: str,
    now: datetime | None = None,
) -> discord.Embed:
    """Embed that replaces every announcement of a cancelled fleet."""
    now = now or datetime.now(timezone.utc)
    context = {
        "category": category_name,
        "commander_id": fleet["commander_id"],
        "fleet_name": fleet["name"],
        "cancelled_by": cancelled_by,
        **_time_context(fleet["fleet_time"]),
    }
    embed = discord.Embed(
        title=get_message("fleet_cancelled", "title", context),
        url=build_app_url(),
        description=get_message("fleet_cancelled", "description", context),
        color=CANCEL_COLOR,
        timestamp=now,
    )
    embed.set_footer(text=get_message("fleet_cancelled", "footer", context))
    return embed


async def get_commander_name(commander_id, guild_id: int) -> str:
    """
    Display name of the fleet commander.

    Lookup failures are logged and replaced by a placeholder so they never
    abort composing a message.
    """
    try:
        user_id = parse_snowflake(commander_id, "commander id")
        return await resolve_display_name(user_id, guild_id)
    except Exception as e:
        logger.warning(
            f"Could not resolve commander {commander_id} in guild {guild_id}: {e}"
        )
        return f"User {commander_id}"


async def compose_notification(
    kind: FleetMessageType,
    fleet: dict,
    category: dict,
    field_values: dict[int, str],
    guild_id: int,
) -> ComposedMessage:
    """Build ping text and embed for a creation, reminder or formup post."""
    title = build_title(kind, category["name"])
    content = build_ping_content(title, category.get("ping_role_ids", []), guild_id)
    commander_name = await get_commander_name(fleet["commander_id"], guild_id)
    embed = build_fleet_embed(
        fleet,
        category.get("fields", []),
        field_values,
        KIND_COLORS[kind],
        commander_name,
    )
    return ComposedMessage(content=content, embed=embed)


async def compose_update_embed(
    fleet: dict,
    category: dict,
    field_values: dict[int, str],
    guild_id: int,
) -> discord.Embed:
    """Embed used to edit every existing announcement after a fleet edit."""
    commander_name = await get_commander_name(fleet["commander_id"], guild_id)
    return build_fleet_embed(
        fleet,
        category.get("fields", []),
        field_values,
        CREATION_COLOR,
        commander_name,
    )


def build_upcoming_list_embed(lines: list[str], now: datetime | None = None) -> discord.Embed:
    """Summary embed; an empty ``lines`` renders the explicit empty state."""
    now = now or datetime.now(timezone.utc)
    if lines:
        description = "\n".join(lines)
    else:
        description = get_message("upcoming_list", "empty")
    return discord.Embed(
        title=get_message("upcoming_list", "title"),
        url=build_app_url(),
        description=description,
        color=UPCOMING_LIST_COLOR,
        timestamp=now,
    )


def build_upcoming_list_line(
    category_name: str, fleet: dict, link: str
) -> str:
    return get_message(
        "upcoming_list",
        "line",
        {
            "category": category_name,
            "fleet_name": fleet["name"],
            "link": link,
            "timestamp": _time_context(fleet["fleet_time"])["timestamp"],
        },
    )
