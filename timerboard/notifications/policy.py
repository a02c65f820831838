"""
Eligibility rules for scheduled fleet notifications.

Pure functions: callers supply the fleet row, the current time and whether a
record of the relevant type already exists.
"""

from datetime import datetime, timedelta

# Formups for fleets older than this are skipped for good (e.g. after downtime)
FORMUP_MAX_AGE = timedelta(minutes=5)


def get_lead_time(category_or_row: dict) -> timedelta | None:
    """Reminder lead time configured on a category, or None."""
    seconds = category_or_row.get("ping_lead_time_seconds")
    if seconds is None:
        return None
    return timedelta(seconds=seconds)


def is_reminder_due(
    fleet: dict,
    lead_time: timedelta | None,
    now: datetime,
    reminder_exists: bool,
) -> bool:
    """
    A reminder is due when the fleet is visible, reminders are enabled, the
    category has a lead time, ``now`` is inside
    ``[fleet_time - lead_time, fleet_time)`` and no reminder was sent yet.
    """
    if fleet["hidden"] or fleet["disable_reminder"]:
        return False
    if lead_time is None or reminder_exists:
        return False
    fleet_time = fleet["fleet_time"]
    return fleet_time - lead_time <= now < fleet_time


def is_formup_due(fleet: dict, now: datetime, formup_exists: bool) -> bool:
    """
    A formup is due once fleet time has arrived, unless one was already sent
    or the fleet is more than FORMUP_MAX_AGE overdue.
    """
    if formup_exists:
        return False
    fleet_time = fleet["fleet_time"]
    return now - FORMUP_MAX_AGE <= fleet_time <= now
