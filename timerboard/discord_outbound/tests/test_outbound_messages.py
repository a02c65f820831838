# timerboard/discord_outbound/tests/test_outbound_messages.py
"""Tests for Discord message and member operations."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

import discord

from timerboard.errors import MessagingUnavailableError, NotFoundError


def make_bot():
    mock_bot = MagicMock()
    mock_channel = MagicMock()
    mock_message = MagicMock()
    mock_message.id = 900000000000000001
    mock_channel.send = AsyncMock(return_value=mock_message)
    mock_partial = MagicMock()
    mock_partial.edit = AsyncMock()
    mock_partial.delete = AsyncMock()
    mock_channel.get_partial_message.return_value = mock_partial
    mock_bot.get_partial_messageable.return_value = mock_channel
    return mock_bot, mock_channel, mock_partial


class TestSendChannelMessage:
    @pytest.mark.asyncio
    async def test_sends_content_and_embed(self):
        from timerboard.discord_outbound.messages import send_channel_message

        mock_bot, mock_channel, _ = make_bot()
        embed = discord.Embed(title="Fleet")

        with patch("timerboard.discord_outbound.bot._bot", mock_bot):
            message_id = await send_channel_message(123, content="ping", embed=embed)

        assert message_id == 900000000000000001
        mock_bot.get_partial_messageable.assert_called_once_with(123)
        mock_channel.send.assert_called_once_with(content="ping", embed=embed)

    @pytest.mark.asyncio
    async def test_reply_does_not_fail_if_target_deleted(self):
        from timerboard.discord_outbound.messages import send_channel_message

        mock_bot, mock_channel, _ = make_bot()

        with patch("timerboard.discord_outbound.bot._bot", mock_bot):
            await send_channel_message(123, content="ping", reply_to=456)

        kwargs = mock_channel.send.call_args.kwargs
        reference = kwargs["reference"]
        assert reference.message_id == 456
        assert reference.channel_id == 123
        assert reference.fail_if_not_exists is False
        assert kwargs["mention_author"] is False

    @pytest.mark.asyncio
    async def test_raises_when_bot_not_configured(self):
        from timerboard.discord_outbound.messages import send_channel_message

        with patch("timerboard.discord_outbound.bot._bot", None):
            with pytest.raises(MessagingUnavailableError):
                await send_channel_message(123, content="ping")

    @pytest.mark.asyncio
    async def test_propagates_http_errors(self):
        from timerboard.discord_outbound.messages import send_channel_message

        mock_bot, mock_channel, _ = make_bot()
        mock_channel.send.side_effect = discord.Forbidden(MagicMock(), "Missing Access")

        with patch("timerboard.discord_outbound.bot._bot", mock_bot):
            with pytest.raises(discord.Forbidden):
                await send_channel_message(123, content="ping")


class TestEditChannelMessage:
    @pytest.mark.asyncio
    async def test_replaces_embed_only(self):
        from timerboard.discord_outbound.messages import edit_channel_message

        mock_bot, mock_channel, mock_partial = make_bot()
        embed = discord.Embed(title="Updated")

        with patch("timerboard.discord_outbound.bot._bot", mock_bot):
            await edit_channel_message(123, 456, embed=embed)

        mock_channel.get_partial_message.assert_called_once_with(456)
        mock_partial.edit.assert_called_once_with(embed=embed)

    @pytest.mark.asyncio
    async def test_clear_content_removes_ping_text(self):
        from timerboard.discord_outbound.messages import edit_channel_message

        mock_bot, _, mock_partial = make_bot()
        embed = discord.Embed(title="Cancelled")

        with patch("timerboard.discord_outbound.bot._bot", mock_bot):
            await edit_channel_message(123, 456, embed=embed, clear_content=True)

        mock_partial.edit.assert_called_once_with(content=None, embed=embed)


class TestDeleteChannelMessage:
    @pytest.mark.asyncio
    async def test_deletes_message(self):
        from timerboard.discord_outbound.messages import delete_channel_message

        mock_bot, _, mock_partial = make_bot()

        with patch("timerboard.discord_outbound.bot._bot", mock_bot):
            await delete_channel_message(123, 456)

        mock_partial.delete.assert_called_once_with()


class TestResolveDisplayName:
    @pytest.mark.asyncio
    async def test_prefers_nickname(self):
        from timerboard.discord_outbound.members import resolve_display_name

        mock_member = MagicMock()
        mock_member.nick = "Jita Jim"
        mock_member.name = "jim"
        mock_guild = MagicMock()
        mock_guild.get_member.return_value = mock_member
        mock_bot = MagicMock()
        mock_bot.get_guild.return_value = mock_guild

        with patch("timerboard.discord_outbound.bot._bot", mock_bot):
            assert await resolve_display_name(1, 2) == "Jita Jim"

    @pytest.mark.asyncio
    async def test_falls_back_to_username_and_fetches_uncached(self):
        from timerboard.discord_outbound.members import resolve_display_name

        mock_member = MagicMock()
        mock_member.nick = None
        mock_member.name = "jim"
        mock_guild = MagicMock()
        mock_guild.get_member.return_value = None
        mock_guild.fetch_member = AsyncMock(return_value=mock_member)
        mock_bot = MagicMock()
        mock_bot.get_guild.return_value = mock_guild

        with patch("timerboard.discord_outbound.bot._bot", mock_bot):
            assert await resolve_display_name(1, 2) == "jim"

        mock_guild.fetch_member.assert_called_once_with(1)

    @pytest.mark.asyncio
    async def test_unknown_member_raises(self):
        from timerboard.discord_outbound.members import resolve_display_name

        mock_guild = MagicMock()
        mock_guild.get_member.return_value = None
        mock_guild.fetch_member = AsyncMock(
            side_effect=discord.NotFound(MagicMock(), "Unknown Member")
        )
        mock_bot = MagicMock()
        mock_bot.get_guild.return_value = mock_guild

        with patch("timerboard.discord_outbound.bot._bot", mock_bot):
            with pytest.raises(NotFoundError):
                await resolve_display_name(1, 2)
