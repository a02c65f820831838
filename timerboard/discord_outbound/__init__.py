# timerboard/discord_outbound/__init__.py
"""Discord outbound operations - all Discord API calls go through here."""

from .bot import get_bot, get_or_fetch_guild, get_or_fetch_member, require_bot, set_bot
from .members import resolve_display_name
from .messages import delete_channel_message, edit_channel_message, send_channel_message

__all__ = [
    "set_bot",
    "get_bot",
    "require_bot",
    "get_or_fetch_guild",
    "get_or_fetch_member",
    "resolve_display_name",
    "send_channel_message",
    "edit_channel_message",
    "delete_channel_message",
]
