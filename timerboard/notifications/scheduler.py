"""
APScheduler-based driver for scheduled fleet notifications.

Two cron jobs run in memory (nothing is persisted, so windows missed while
the process is down are skipped rather than replayed):

- ``fleet_notifications`` fires at second 0 of every minute and runs the
  reminder pass, then the formup pass. Eligibility is recomputed from the
  database on every tick.
- ``upcoming_lists`` fires at second 30 of every minute and refreshes the
  upcoming list of every configured channel.
"""

import logging
from datetime import datetime, timezone

import sentry_sdk
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from timerboard.database import get_connection
from timerboard.enums import FleetMessageType
from timerboard.notifications.dispatcher import (
    DispatchReport,
    load_category,
    post_formup,
    post_reminder,
)
from timerboard.notifications.policy import (
    FORMUP_MAX_AGE,
    get_lead_time,
    is_formup_due,
    is_reminder_due,
)
from timerboard.notifications.upcoming import refresh_upcoming_list
from timerboard.queries.categories import get_configured_channel_ids
from timerboard.queries.fleet_messages import fleet_message_exists
from timerboard.queries.fleets import (
    get_fleet_field_values,
    get_formup_candidates,
    get_reminder_candidates,
)

logger = logging.getLogger(__name__)


_scheduler: AsyncIOScheduler | None = None

NOTIFICATIONS_JOB_ID = "fleet_notifications"
UPCOMING_LISTS_JOB_ID = "upcoming_lists"


# =============================================================================
# Scheduler initialization and shutdown
# =============================================================================


def init_scheduler() -> AsyncIOScheduler:
    """
    Create the scheduler, register the cron jobs and start it.

    Call this during app startup (in FastAPI lifespan).
    """
    global _scheduler

    if _scheduler is not None:
        return _scheduler

    _scheduler = AsyncIOScheduler(
        timezone=timezone.utc,
        job_defaults={
            "coalesce": True,  # Combine missed runs into one
            "max_instances": 1,  # Ticks never overlap
            "misfire_grace_time": 30,
        },
    )
    _scheduler.add_job(
        run_notification_tick,
        trigger=CronTrigger(second=0, timezone=timezone.utc),
        id=NOTIFICATIONS_JOB_ID,
        replace_existing=True,
    )
    _scheduler.add_job(
        refresh_all_upcoming_lists,
        trigger=CronTrigger(second=30, timezone=timezone.utc),
        id=UPCOMING_LISTS_JOB_ID,
        replace_existing=True,
    )
    _scheduler.start()
    logger.info("Fleet notification scheduler started")

    return _scheduler


def shutdown_scheduler() -> None:
    """
    Shutdown the scheduler gracefully.

    Call this during app shutdown.
    """
    global _scheduler
    if _scheduler:
        _scheduler.shutdown(wait=True)
        _scheduler = None
        logger.info("Fleet notification scheduler stopped")


def get_scheduler() -> AsyncIOScheduler | None:
    return _scheduler


# =============================================================================
# Tick
# =============================================================================


async def run_notification_tick(now: datetime | None = None) -> dict:
    """
    One scheduler tick: reminder pass, then formup pass.

    A failing pass is logged and reported to Sentry; the other pass still runs.

    Returns:
        Dict mapping pass name to its list of DispatchReports (None if the
        pass failed)
    """
    now = now or datetime.now(timezone.utc)
    results: dict[str, list[DispatchReport] | None] = {}

    for name, run_pass in (
        ("reminders", run_reminder_pass),
        ("formups", run_formup_pass),
    ):
        try:
            results[name] = await run_pass(now)
        except Exception as e:
            logger.error(f"Error processing {name}: {e}")
            sentry_sdk.capture_exception(e)
            results[name] = None

    return results


async def run_reminder_pass(now: datetime) -> list[DispatchReport]:
    """Send reminders for every fleet inside its reminder window."""
    async with get_connection() as conn:
        candidates = await get_reminder_candidates(conn, now)
    logger.debug(f"Checking {len(candidates)} fleets for reminders")

    reports = []
    for fleet in candidates:
        fleet_id = fleet["fleet_id"]
        try:
            async with get_connection() as conn:
                reminder_exists = await fleet_message_exists(
                    conn, fleet_id, FleetMessageType.reminder
                )
            if not is_reminder_due(fleet, get_lead_time(fleet), now, reminder_exists):
                continue

            logger.debug(
                f"Sending reminder for fleet {fleet_id} ({fleet['name']}) "
                f"scheduled for {fleet['fleet_time']}"
            )
            report = await _dispatch(post_reminder, fleet)
            reports.append(report)
            await _refresh_lists_for(fleet, now)
        except Exception as e:
            logger.error(f"Failed to send reminder for fleet {fleet_id}: {e}")
            sentry_sdk.capture_exception(e)

    return reports


async def run_formup_pass(now: datetime) -> list[DispatchReport]:
    """Send formups for fleets whose time arrived at most FORMUP_MAX_AGE ago."""
    async with get_connection() as conn:
        candidates = await get_formup_candidates(conn, now, FORMUP_MAX_AGE)
    logger.debug(f"Checking {len(candidates)} fleets for formups")

    reports = []
    for fleet in candidates:
        fleet_id = fleet["fleet_id"]
        try:
            async with get_connection() as conn:
                formup_exists = await fleet_message_exists(
                    conn, fleet_id, FleetMessageType.formup
                )
            if not is_formup_due(fleet, now, formup_exists):
                if not formup_exists:
                    logger.debug(f"Skipping formup for old fleet {fleet_id}")
                continue

            logger.debug(
                f"Sending formup for fleet {fleet_id} ({fleet['name']}) "
                f"scheduled for {fleet['fleet_time']}"
            )
            report = await _dispatch(post_formup, fleet)
            reports.append(report)
            await _refresh_lists_for(fleet, now)
        except Exception as e:
            logger.error(f"Failed to send formup for fleet {fleet_id}: {e}")
            sentry_sdk.capture_exception(e)

    return reports


async def _dispatch(post, fleet: dict) -> DispatchReport:
    async with get_connection() as conn:
        field_values = await get_fleet_field_values(conn, fleet["fleet_id"])
    report = await post(fleet, field_values)
    logger.info(
        f"{report.kind} for fleet {fleet['fleet_id']}: "
        f"{report.succeeded}/{report.attempted} channels succeeded"
    )
    return report


async def _refresh_lists_for(fleet: dict, now: datetime) -> None:
    """Refresh the upcoming lists of the fleet's channels after a new post."""
    category, _guild_id = await load_category(fleet["category_id"])
    for channel_id in category["channel_ids"]:
        try:
            await refresh_upcoming_list(channel_id, now=now)
        except Exception as e:
            logger.error(f"Failed to refresh upcoming list in channel {channel_id}: {e}")


# =============================================================================
# Periodic upcoming list refresh
# =============================================================================


async def refresh_all_upcoming_lists() -> int:
    """
    Refresh the upcoming list of every channel a category posts into.

    Returns:
        Number of channels processed without error
    """
    try:
        async with get_connection() as conn:
            channel_ids = await get_configured_channel_ids(conn)
    except Exception as e:
        logger.error(f"Error loading channels for upcoming lists: {e}")
        sentry_sdk.capture_exception(e)
        return 0

    refreshed = 0
    for channel_id in channel_ids:
        try:
            await refresh_upcoming_list(channel_id)
            refreshed += 1
        except Exception as e:
            logger.error(f"Failed to refresh upcoming list in channel {channel_id}: {e}")
            sentry_sdk.capture_exception(e)

    logger.info(f"Refreshed upcoming lists in {refreshed}/{len(channel_ids)} channels")
    return refreshed
