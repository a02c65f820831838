# timerboard/discord_outbound/bot.py
import discord
from discord import Client, Guild, Member

from ..errors import MessagingUnavailableError

_bot: Client | None = None


def set_bot(bot: Client | None) -> None:
    """Set the Discord bot instance. Called by main.py on startup."""
    global _bot
    _bot = bot


def get_bot() -> Client | None:
    """Get the Discord bot instance."""
    return _bot


def require_bot() -> Client:
    """Get the bot or raise if it has not been configured."""
    if _bot is None:
        raise MessagingUnavailableError("Discord bot not configured")
    return _bot


async def get_or_fetch_guild(bot: Client, guild_id: int) -> Guild | None:
    """Get guild from cache, falling back to API fetch."""
    guild = bot.get_guild(guild_id)
    if guild:
        return guild
    try:
        return await bot.fetch_guild(guild_id)
    except discord.NotFound:
        return None


async def get_or_fetch_member(guild: Guild, discord_id: int) -> Member | None:
    """Get member from cache, falling back to API fetch."""
    member = guild.get_member(discord_id)
    if member:
        return member
    try:
        return await guild.fetch_member(discord_id)
    except discord.NotFound:
        return None
