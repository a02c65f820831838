"""Channel activity tracking for the upcoming-list repost heuristic."""

from datetime import datetime

from timerboard.database import get_transaction
from timerboard.queries.channel_fleet_lists import record_channel_activity


async def record_channel_message(
    channel_id: str,
    message_id: str,
    created_at: datetime,
) -> bool:
    """
    Record a message posted in a channel that has an upcoming list.

    Returns:
        True if the channel is tracked and its last_message_at was updated
    """
    async with get_transaction() as conn:
        return await record_channel_activity(conn, channel_id, message_id, created_at)
