# timerboard/discord_outbound/members.py
from ..errors import NotFoundError
from .bot import get_or_fetch_guild, get_or_fetch_member, require_bot


async def resolve_display_name(user_id: int, guild_id: int) -> str:
    """
    Resolve a member's display name in a guild (nickname, else username).

    Raises:
        NotFoundError: If the guild or member cannot be found
        MessagingUnavailableError: If the bot is not configured
    """
    bot = require_bot()
    guild = await get_or_fetch_guild(bot, guild_id)
    if guild is None:
        raise NotFoundError(f"Guild {guild_id} not found")

    member = await get_or_fetch_member(guild, user_id)
    if member is None:
        raise NotFoundError(f"Member {user_id} not found in guild {guild_id}")

    return member.nick or member.name
