"""Channel activity cog - tracks the latest message time in list channels."""

import logging

import discord
from discord.ext import commands

from timerboard.activity import record_channel_message

logger = logging.getLogger(__name__)


class ActivityCog(commands.Cog):
    def __init__(self, bot):
        self.bot = bot

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message):
        """Record guild channel messages so buried upcoming lists get reposted."""
        # Ignore DMs
        if message.guild is None:
            return

        try:
            updated = await record_channel_message(
                channel_id=str(message.channel.id),
                message_id=str(message.id),
                created_at=message.created_at,
            )
            if updated:
                logger.debug(
                    f"Updated last_message_at for channel {message.channel.id} "
                    f"to {message.created_at}"
                )
        except Exception:
            logger.exception(
                f"Error recording activity for message {message.id} in {message.channel.id}"
            )


async def setup(bot):
    await bot.add_cog(ActivityCog(bot))
