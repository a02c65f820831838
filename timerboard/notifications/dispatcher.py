"""
Notification dispatcher - posts, threads and edits fleet announcements.

Every operation loops over channels (or existing messages) and isolates
failures per item: a failed Discord call is logged, recorded in the returned
DispatchReport and the loop moves on. Setup failures (unknown category,
malformed guild/channel/role id, database errors) propagate to the caller.
"""

import logging
from dataclasses import dataclass, field

from timerboard.database import get_connection, get_transaction
from timerboard.discord_outbound import edit_channel_message, send_channel_message
from timerboard.enums import FleetMessageType
from timerboard.errors import NotFoundError
from timerboard.notifications.composer import (
    ComposedMessage,
    build_cancel_embed,
    compose_notification,
    compose_update_embed,
    get_commander_name,
)
from timerboard.queries.categories import get_category
from timerboard.queries.fleet_messages import (
    confirm_fleet_message,
    get_fleet_messages,
    release_fleet_message,
    reserve_fleet_message,
)
from timerboard.snowflake import parse_snowflake

logger = logging.getLogger(__name__)


# Message types a new post of each kind may reply to
REPLY_TARGET_TYPES = {
    FleetMessageType.creation: (),
    FleetMessageType.reminder: (FleetMessageType.creation,),
    FleetMessageType.formup: (FleetMessageType.reminder, FleetMessageType.creation),
}


@dataclass
class DispatchOutcome:
    """Result of one Discord call (or a skipped slot)."""

    channel_id: int
    message_id: int | None = None
    success: bool = False
    skipped: bool = False
    error: str | None = None


@dataclass
class DispatchReport:
    kind: str
    fleet_id: int
    outcomes: list[DispatchOutcome] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return sum(1 for o in self.outcomes if not o.skipped)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.success and not o.skipped)

    @property
    def channel_ids(self) -> list[int]:
        """Channels where a message was posted or edited."""
        return [o.channel_id for o in self.outcomes if o.success]


async def load_category(category_id: int) -> tuple[dict, int]:
    """
    Fetch a fleet's category and its parsed guild id.

    Raises:
        NotFoundError: If the category does not exist
        InvalidIdError: If the stored guild id is malformed
    """
    async with get_connection() as conn:
        category = await get_category(conn, category_id)
    if category is None:
        raise NotFoundError(f"Fleet category {category_id} not found")
    guild_id = parse_snowflake(category["guild_id"], "guild id")
    return category, guild_id


def select_reply_target(
    records: list[dict],
    channel_id: int,
    message_types: tuple[FleetMessageType, ...],
) -> int | None:
    """
    Most recently created sent message of the given types in a channel.

    Returns:
        The Discord message id to reply to, or None to post standalone
    """
    candidates = [
        r
        for r in records
        if r["message_type"] in message_types
        and r["message_id"] is not None
        and str(r["channel_id"]) == str(channel_id)
    ]
    if not candidates:
        return None
    latest = max(candidates, key=lambda r: r["created_at"])
    return parse_snowflake(latest["message_id"], "message id")


async def _post_to_channel(
    kind: FleetMessageType,
    fleet_id: int,
    channel_id: int,
    composed: ComposedMessage,
    reply_to: int | None,
) -> DispatchOutcome:
    async with get_transaction() as conn:
        reservation_id = await reserve_fleet_message(
            conn, fleet_id, str(channel_id), kind
        )
    if reservation_id is None:
        logger.debug(
            f"{kind.value} for fleet {fleet_id} already recorded in channel {channel_id}, skipping"
        )
        return DispatchOutcome(channel_id=channel_id, skipped=True)

    try:
        message_id = await send_channel_message(
            channel_id,
            content=composed.content,
            embed=composed.embed,
            reply_to=reply_to,
        )
    except Exception as e:
        logger.error(
            f"Failed to post {kind.value} for fleet {fleet_id} to channel {channel_id}: {e}"
        )
        async with get_transaction() as conn:
            await release_fleet_message(conn, reservation_id)
        return DispatchOutcome(channel_id=channel_id, error=str(e))

    async with get_transaction() as conn:
        await confirm_fleet_message(conn, reservation_id, str(message_id))

    logger.info(
        f"Posted {kind.value} for fleet {fleet_id} to channel {channel_id} "
        f"(message {message_id}, reply_to={reply_to})"
    )
    return DispatchOutcome(channel_id=channel_id, message_id=message_id, success=True)


async def _post(
    kind: FleetMessageType,
    fleet: dict,
    field_values: dict[int, str],
) -> DispatchReport:
    fleet_id = fleet["fleet_id"]
    report = DispatchReport(kind=kind.value, fleet_id=fleet_id)

    category, guild_id = await load_category(fleet["category_id"])
    channel_ids = [parse_snowflake(c, "channel id") for c in category["channel_ids"]]
    if not channel_ids:
        logger.debug(f"Category {category['category_id']} has no channels configured")
        return report

    composed = await compose_notification(kind, fleet, category, field_values, guild_id)

    reply_types = REPLY_TARGET_TYPES[kind]
    records = []
    if reply_types:
        async with get_connection() as conn:
            records = await get_fleet_messages(conn, fleet_id)

    for channel_id in channel_ids:
        try:
            reply_to = select_reply_target(records, channel_id, reply_types)
        except Exception as e:
            logger.warning(
                f"Ignoring unusable reply target for fleet {fleet_id} in channel {channel_id}: {e}"
            )
            reply_to = None
        report.outcomes.append(
            await _post_to_channel(kind, fleet_id, channel_id, composed, reply_to)
        )

    return report


async def post_creation(fleet: dict, field_values: dict[int, str]) -> DispatchReport:
    """Announce a new fleet in every category channel (never for hidden fleets)."""
    if fleet["hidden"]:
        logger.debug(f"Fleet {fleet['fleet_id']} is hidden, not announcing creation")
        return DispatchReport(kind=FleetMessageType.creation.value, fleet_id=fleet["fleet_id"])
    return await _post(FleetMessageType.creation, fleet, field_values)


async def post_reminder(fleet: dict, field_values: dict[int, str]) -> DispatchReport:
    """Post the reminder, replying to each channel's creation message if any."""
    return await _post(FleetMessageType.reminder, fleet, field_values)


async def post_formup(fleet: dict, field_values: dict[int, str]) -> DispatchReport:
    """Post the formup, replying to each channel's latest reminder or creation."""
    return await _post(FleetMessageType.formup, fleet, field_values)


async def _edit_all(
    kind: str,
    fleet_id: int,
    records: list[dict],
    embed,
    clear_content: bool,
) -> DispatchReport:
    report = DispatchReport(kind=kind, fleet_id=fleet_id)
    for record in records:
        channel_id = record["channel_id"]
        message_id = record["message_id"]
        try:
            channel_id = parse_snowflake(channel_id, "channel id")
            message_id = parse_snowflake(message_id, "message id")
            await edit_channel_message(
                channel_id, message_id, embed=embed, clear_content=clear_content
            )
        except Exception as e:
            logger.error(
                f"Failed to {kind} message {message_id} of fleet {fleet_id} "
                f"in channel {channel_id}: {e}"
            )
            report.outcomes.append(
                DispatchOutcome(channel_id=channel_id, message_id=message_id, error=str(e))
            )
            continue
        logger.info(
            f"Applied {kind} to message {message_id} of fleet {fleet_id} in channel {channel_id}"
        )
        report.outcomes.append(
            DispatchOutcome(channel_id=channel_id, message_id=message_id, success=True)
        )
    return report


async def update_all(fleet: dict, field_values: dict[int, str]) -> DispatchReport:
    """Edit every sent announcement of a fleet with a freshly built embed."""
    fleet_id = fleet["fleet_id"]
    async with get_connection() as conn:
        records = await get_fleet_messages(conn, fleet_id)
    if not records:
        logger.debug(f"No messages for fleet {fleet_id}, nothing to update")
        return DispatchReport(kind="update", fleet_id=fleet_id)

    category, guild_id = await load_category(fleet["category_id"])
    embed = await compose_update_embed(fleet, category, field_values, guild_id)
    return await _edit_all("update", fleet_id, records, embed, clear_content=False)


async def cancel_all(fleet: dict, cancelled_by: str | None = None) -> DispatchReport:
    """
    Replace every sent announcement of a fleet with the cancellation embed.

    Args:
        fleet: The fleet row
        cancelled_by: Display name for the footer (defaults to the commander)
    """
    fleet_id = fleet["fleet_id"]
    async with get_connection() as conn:
        records = await get_fleet_messages(conn, fleet_id)
    if not records:
        logger.debug(f"No messages for fleet {fleet_id}, nothing to cancel")
        return DispatchReport(kind="cancel", fleet_id=fleet_id)

    category, guild_id = await load_category(fleet["category_id"])
    if cancelled_by is None:
        cancelled_by = await get_commander_name(fleet["commander_id"], guild_id)
    embed = build_cancel_embed(fleet, category["name"], cancelled_by)
    return await _edit_all("cancel", fleet_id, records, embed, clear_content=True)
