"""
Unified backend entry point.

Architecture:
- One Python process, one asyncio event loop
- Three peer services running concurrently:
  1. FastAPI (HTTP API for fleet management)
  2. Discord bot (WebSocket connection to Discord)
  3. APScheduler (minute tick for reminders/formups, upcoming lists at second 30)

We use FastAPI's lifespan to manage startup/shutdown, but at runtime
all services are equal peers in the event loop.

Run with: python main.py [--no-bot] [--no-scheduler] [--port PORT]
"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv

project_root = Path(__file__).parent

# Load .env.local first (if exists), then .env as fallback
load_dotenv(project_root / ".env.local")
load_dotenv()

import sentry_sdk
from fastapi import FastAPI

from discord_bot.main import bot
from timerboard.config import (
    check_required_env_vars,
    get_api_port,
    get_discord_bot_token,
    get_sentry_dsn,
    is_discord_bot_disabled,
    is_scheduler_disabled,
)
from timerboard.database import close_engine
from timerboard.discord_outbound import set_bot
from timerboard.notifications import init_scheduler, shutdown_scheduler
from web_api.routes.fleets import router as fleets_router

logger = logging.getLogger(__name__)

# Track bot task for cleanup
_bot_task: asyncio.Task | None = None


async def start_bot():
    """
    Start Discord bot (non-blocking).

    Uses bot.start() instead of bot.run() so it can run
    alongside FastAPI in the same event loop.
    """
    if is_discord_bot_disabled():
        logger.info("Discord bot disabled (--no-bot flag or DISABLE_DISCORD_BOT=true)")
        return

    token = get_discord_bot_token()
    if not token:
        logger.warning("DISCORD_BOT_TOKEN not set, Discord bot will not start")
        return

    set_bot(bot)
    try:
        await bot.start(token)
    except Exception as e:
        logger.error(f"Discord bot error: {e}")
        sentry_sdk.capture_exception(e)
        raise


async def stop_bot():
    """Stop Discord bot gracefully."""
    if bot and not bot.is_closed():
        await bot.close()
        logger.info("Discord bot stopped")
    set_bot(None)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan context manager.

    Starts peer services (Discord bot, scheduler) alongside FastAPI.
    """
    global _bot_task

    ok, warnings = check_required_env_vars()
    for warning in warnings:
        logger.warning(warning)
    if not ok:
        raise RuntimeError("Missing required environment variables")

    logger.info("Starting Discord bot...")
    _bot_task = asyncio.create_task(start_bot())

    if is_scheduler_disabled():
        logger.info("Scheduler disabled (--no-scheduler flag or DISABLE_SCHEDULER=true)")
    else:
        init_scheduler()

    yield  # FastAPI runs here, bot and scheduler run alongside it

    logger.info("Shutting down peer services...")
    shutdown_scheduler()
    await stop_bot()
    await close_engine()
    if _bot_task:
        _bot_task.cancel()
        try:
            await _bot_task
        except asyncio.CancelledError:
            pass


if get_sentry_dsn():
    sentry_sdk.init(dsn=get_sentry_dsn(), traces_sample_rate=0.0)


app = FastAPI(
    title="Timerboard API",
    lifespan=lifespan,
)

app.include_router(fleets_router)


@app.get("/health")
async def health():
    """Health check endpoint with detailed status."""
    return {
        "status": "healthy",
        "bot_connected": bot.is_ready() if bot else False,
        "bot_latency_ms": round(bot.latency * 1000) if bot and bot.is_ready() else None,
    }


if __name__ == "__main__":
    import argparse

    import uvicorn

    parser = argparse.ArgumentParser(description="Timerboard Server")
    parser.add_argument(
        "--no-bot",
        action="store_true",
        help="Disable Discord bot (useful for running multiple dev servers)",
    )
    parser.add_argument(
        "--no-scheduler",
        action="store_true",
        help="Disable the notification scheduler (only one process may own it)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=get_api_port(),
        help="Port to run the server on (default: 8000)",
    )
    args = parser.parse_args()

    # Set env vars so they persist across uvicorn reloads
    if args.no_bot:
        os.environ["DISABLE_DISCORD_BOT"] = "true"
    if args.no_scheduler:
        os.environ["DISABLE_SCHEDULER"] = "true"

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=args.port,
    )
