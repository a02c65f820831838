# timerboard/discord_outbound/messages.py
"""
Channel message operations used by the notification dispatcher.

Every function raises on failure (discord.HTTPException,
MessagingUnavailableError); callers decide whether a failure is fatal.
"""

import discord

from .bot import require_bot


def _reply_reference(channel_id: int, message_id: int) -> discord.MessageReference:
    # A deleted reply target should not block the new message
    return discord.MessageReference(
        message_id=message_id,
        channel_id=channel_id,
        fail_if_not_exists=False,
    )


async def send_channel_message(
    channel_id: int,
    content: str | None = None,
    embed: discord.Embed | None = None,
    reply_to: int | None = None,
) -> int:
    """
    Send a message to a channel, optionally as a reply.

    Returns:
        The new message's id
    """
    bot = require_bot()
    channel = bot.get_partial_messageable(channel_id)

    kwargs = {}
    if content:
        kwargs["content"] = content
    if embed is not None:
        kwargs["embed"] = embed
    if reply_to is not None:
        kwargs["reference"] = _reply_reference(channel_id, reply_to)
        kwargs["mention_author"] = False

    message = await channel.send(**kwargs)
    return message.id


async def edit_channel_message(
    channel_id: int,
    message_id: int,
    embed: discord.Embed,
    clear_content: bool = False,
) -> None:
    """Replace the embed of a sent message, optionally removing its text."""
    bot = require_bot()
    message = bot.get_partial_messageable(channel_id).get_partial_message(message_id)

    if clear_content:
        await message.edit(content=None, embed=embed)
    else:
        await message.edit(embed=embed)


async def delete_channel_message(channel_id: int, message_id: int) -> None:
    """Delete a sent message."""
    bot = require_bot()
    message = bot.get_partial_messageable(channel_id).get_partial_message(message_id)
    await message.delete()
