"""
Timerboard Discord bot.

The bot only needs to post and edit fleet announcements and to watch channel
activity for the upcoming lists; all business logic lives in timerboard/.
"""

import logging
import os

import discord
from discord.ext import commands
from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def create_bot() -> commands.Bot:
    """Create and configure the bot instance."""
    intents = discord.Intents.default()
    intents.guild_messages = True  # on_message for channel activity
    intents.members = True  # Commander nickname lookup

    bot = commands.Bot(command_prefix="!", intents=intents)
    return bot


bot = create_bot()


COGS = [
    "discord_bot.cogs.activity_cog",
]


@bot.event
async def on_ready():
    """Called when the bot is ready and connected to Discord."""
    logger.info(f"Bot is ready! Logged in as {bot.user}")

    for cog in COGS:
        try:
            if cog not in bot.extensions:
                await bot.load_extension(cog)
                logger.info(f"Loaded {cog}")
        except Exception:
            logger.exception(f"Error loading {cog}")


def main():
    """Run the bot on its own (without the web API and scheduler)."""
    load_dotenv()
    logging.basicConfig(level=logging.INFO)

    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        print("Error: DISCORD_BOT_TOKEN environment variable not set!")
        raise SystemExit(1)

    from timerboard.discord_outbound import set_bot

    set_bot(bot)
    bot.run(token)


if __name__ == "__main__":
    main()
