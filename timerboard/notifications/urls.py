"""URL builder utilities for notification embeds."""

from timerboard.config import get_app_url


def build_app_url() -> str:
    """Link target for every fleet embed."""
    return get_app_url()


def build_discord_message_url(guild_id, channel_id, message_id) -> str:
    """Build a jump link to a Discord message."""
    return f"https://discord.com/channels/{guild_id}/{channel_id}/{message_id}"
