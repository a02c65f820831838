"""
Fleet announcement lifecycle for Discord.

Public API:
    post_creation(fleet, field_values) - Announce a new fleet
    post_reminder(fleet, field_values) - Reminder, threaded onto the creation post
    post_formup(fleet, field_values) - Forming now, threaded onto the latest post
    update_all(fleet, field_values) - Edit every announcement in place
    cancel_all(fleet, cancelled_by) - Replace every announcement with a cancellation
    refresh_upcoming_list(channel_id) - Post, edit or repost a channel's list
    update_upcoming_list(channel_id) - Edit a channel's list in place

Scheduling:
    init_scheduler() / shutdown_scheduler() - Minute tick and list refresh
"""

from .dispatcher import (
    DispatchOutcome,
    DispatchReport,
    cancel_all,
    post_creation,
    post_formup,
    post_reminder,
    update_all,
)
from .scheduler import init_scheduler, run_notification_tick, shutdown_scheduler
from .upcoming import (
    ListAction,
    UpcomingListResult,
    refresh_upcoming_list,
    update_upcoming_list,
)

__all__ = [
    "DispatchOutcome",
    "DispatchReport",
    "post_creation",
    "post_reminder",
    "post_formup",
    "update_all",
    "cancel_all",
    "ListAction",
    "UpcomingListResult",
    "refresh_upcoming_list",
    "update_upcoming_list",
    "init_scheduler",
    "shutdown_scheduler",
    "run_notification_tick",
]
