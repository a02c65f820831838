"""Root pytest configuration."""

from pathlib import Path

import pytest
from dotenv import load_dotenv

# Load environment variables before tests run
_root = Path(__file__).parent
load_dotenv(_root / ".env")
load_dotenv(_root / ".env.local", override=True)


@pytest.fixture(scope="session")
def event_loop_policy():
    """Use default event loop policy for all async tests."""
    import asyncio

    return asyncio.DefaultEventLoopPolicy()


@pytest.fixture(autouse=True)
def no_live_discord(monkeypatch):
    """
    Tests never talk to Discord: clear the bot singleton and the scheduler.

    Tests that need a bot patch ``timerboard.discord_outbound.bot._bot``.
    """
    monkeypatch.setattr("timerboard.discord_outbound.bot._bot", None)
    monkeypatch.setattr("timerboard.notifications.scheduler._scheduler", None)
