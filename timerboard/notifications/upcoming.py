"""
Per-channel "upcoming events" list.

Each channel that categories post into keeps one rolling summary message.
``refresh_upcoming_list`` may post, edit or repost it (used after creations,
scheduled posts and by the periodic job). ``update_upcoming_list`` only
edits in place (used after fleets are edited or cancelled) and renders an
explicit empty state instead of leaving stale lines visible.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable

import discord

from timerboard.database import get_connection, get_transaction
from timerboard.discord_outbound import (
    delete_channel_message,
    edit_channel_message,
    send_channel_message,
)
from timerboard.enums import FleetMessageType
from timerboard.notifications.composer import (
    build_upcoming_list_embed,
    build_upcoming_list_line,
)
from timerboard.notifications.urls import build_discord_message_url
from timerboard.queries.categories import (
    get_categories_by_ids,
    get_category_ids_for_channel,
)
from timerboard.queries.channel_fleet_lists import (
    get_channel_fleet_list,
    mark_list_edited,
    save_posted_list,
)
from timerboard.queries.fleet_messages import get_fleet_messages_for_channel
from timerboard.queries.fleets import get_upcoming_fleets
from timerboard.snowflake import parse_snowflake

logger = logging.getLogger(__name__)


# A list buried under newer messages for this long is reposted instead of edited
REPOST_AFTER = timedelta(minutes=10)

LINKABLE_TYPES = (FleetMessageType.creation, FleetMessageType.reminder)

# (channel_id, stored list record) -> time of the latest message in the channel
LastMessageLookup = Callable[[int, dict], Awaitable[datetime | None]]


class ListAction(str, enum.Enum):
    skipped = "skipped"
    posted = "posted"
    edited = "edited"
    reposted = "reposted"
    failed = "failed"


@dataclass
class UpcomingListResult:
    channel_id: int
    action: ListAction
    message_id: int | None = None
    error: str | None = None


async def stored_last_message_at(channel_id: int, record: dict) -> datetime | None:
    """Default lookup: the activity timestamp kept by the bot's message listener."""
    return record.get("last_message_at")


def should_repost(updated_at: datetime, last_message_at: datetime | None) -> bool:
    """
    Repost when other messages arrived at least REPOST_AFTER after the list
    was last touched. A list that is still the newest message is edited.
    """
    if last_message_at is None:
        return False
    return last_message_at - updated_at >= REPOST_AFTER


async def build_upcoming_lines(channel_id: int, now: datetime) -> list[str] | None:
    """
    One line per upcoming fleet that has a linkable message in the channel.

    Returns:
        The lines, or None if no category posts into the channel
    """
    lines = []
    async with get_connection() as conn:
        category_ids = await get_category_ids_for_channel(conn, str(channel_id))
        if not category_ids:
            return None
        categories = await get_categories_by_ids(conn, category_ids)
        fleets = await get_upcoming_fleets(conn, category_ids, now)

        for fleet in fleets:
            messages = await get_fleet_messages_for_channel(
                conn, fleet["fleet_id"], str(channel_id)
            )
            linkable = [m for m in messages if m["message_type"] in LINKABLE_TYPES]
            if not linkable:
                continue
            latest = max(linkable, key=lambda m: m["created_at"])
            category = categories[fleet["category_id"]]
            link = build_discord_message_url(
                category["guild_id"], channel_id, latest["message_id"]
            )
            lines.append(build_upcoming_list_line(category["name"], fleet, link))

    return lines


async def _post_new(
    channel_id: int, embed: discord.Embed, now: datetime, action: ListAction
) -> UpcomingListResult:
    try:
        message_id = await send_channel_message(channel_id, embed=embed)
    except Exception as e:
        logger.error(f"Failed to post upcoming list in channel {channel_id}: {e}")
        return UpcomingListResult(channel_id, ListAction.failed, error=str(e))

    async with get_transaction() as conn:
        await save_posted_list(conn, str(channel_id), str(message_id), now)
    logger.info(f"Posted upcoming list in channel {channel_id} (message {message_id})")
    return UpcomingListResult(channel_id, action, message_id=message_id)


async def _edit_existing(
    channel_id: int,
    message_id: int,
    embed: discord.Embed,
    now: datetime,
) -> UpcomingListResult:
    try:
        await edit_channel_message(channel_id, message_id, embed=embed)
    except discord.NotFound:
        # Deleted in Discord; the stored id is replaced by the new post
        logger.info(
            f"Upcoming list {message_id} in channel {channel_id} is gone, posting a new one"
        )
        return await _post_new(channel_id, embed, now, ListAction.posted)
    except Exception as e:
        logger.error(
            f"Failed to edit upcoming list {message_id} in channel {channel_id}: {e}"
        )
        return UpcomingListResult(
            channel_id, ListAction.failed, message_id=message_id, error=str(e)
        )

    async with get_transaction() as conn:
        await mark_list_edited(conn, str(channel_id), now)
    logger.info(f"Edited upcoming list in channel {channel_id} (message {message_id})")
    return UpcomingListResult(channel_id, ListAction.edited, message_id=message_id)


async def _repost(
    channel_id: int, old_message_id: int, embed: discord.Embed, now: datetime
) -> UpcomingListResult:
    try:
        await delete_channel_message(channel_id, old_message_id)
    except Exception as e:
        # Still post the new list; the old one is left behind
        logger.warning(
            f"Failed to delete old upcoming list {old_message_id} in channel {channel_id}: {e}"
        )
    return await _post_new(channel_id, embed, now, ListAction.reposted)


async def refresh_upcoming_list(
    channel_id,
    now: datetime | None = None,
    last_message_lookup: LastMessageLookup | None = None,
) -> UpcomingListResult:
    """
    Post, edit or repost the channel's upcoming list.

    Does nothing when the channel has no upcoming fleets. Otherwise edits the
    existing list in place unless it has been buried by channel activity for
    REPOST_AFTER, in which case it is deleted and posted again.

    Raises:
        InvalidIdError: If channel_id (or the stored list message id) is malformed
    """
    channel_id = parse_snowflake(channel_id, "channel id")
    now = now or datetime.now(timezone.utc)
    lookup = last_message_lookup or stored_last_message_at

    lines = await build_upcoming_lines(channel_id, now)
    if not lines:
        logger.debug(f"No upcoming fleets for channel {channel_id}, skipping list")
        return UpcomingListResult(channel_id, ListAction.skipped)

    async with get_connection() as conn:
        existing = await get_channel_fleet_list(conn, str(channel_id))

    embed = build_upcoming_list_embed(lines, now)
    if existing is None:
        return await _post_new(channel_id, embed, now, ListAction.posted)

    message_id = parse_snowflake(existing["message_id"], "message id")
    last_message_at = await lookup(channel_id, existing)
    repost = should_repost(existing["updated_at"], last_message_at)
    logger.debug(
        f"Channel {channel_id}: updated_at={existing['updated_at']}, "
        f"last_message_at={last_message_at}, repost={repost}"
    )
    if repost:
        return await _repost(channel_id, message_id, embed, now)
    return await _edit_existing(channel_id, message_id, embed, now)


async def update_upcoming_list(
    channel_id,
    now: datetime | None = None,
) -> UpcomingListResult:
    """
    Edit the channel's upcoming list in place, never reposting.

    Renders "no upcoming events" when nothing is left. Creates the list if
    the channel does not have one yet, or if the old message is gone.

    Raises:
        InvalidIdError: If channel_id (or the stored list message id) is malformed
    """
    channel_id = parse_snowflake(channel_id, "channel id")
    now = now or datetime.now(timezone.utc)

    lines = await build_upcoming_lines(channel_id, now)
    async with get_connection() as conn:
        existing = await get_channel_fleet_list(conn, str(channel_id))

    if lines is None and existing is None:
        logger.debug(f"Channel {channel_id} has no categories and no list, skipping")
        return UpcomingListResult(channel_id, ListAction.skipped)

    embed = build_upcoming_list_embed(lines or [], now)
    if existing is None:
        return await _post_new(channel_id, embed, now, ListAction.posted)

    message_id = parse_snowflake(existing["message_id"], "message id")
    return await _edit_existing(channel_id, message_id, embed, now)
