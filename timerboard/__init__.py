"""
Timerboard core - platform-agnostic fleet scheduling and announcements.
Used by the Discord bot, the web API and the scheduler.
"""

# Database (SQLAlchemy)
from .database import close_engine, get_connection, get_engine, get_transaction, is_configured

# Errors
from .errors import InvalidIdError, MessagingUnavailableError, NotFoundError, TimerboardError

# Fleet management
from .fleets import create_fleet, delete_fleet, parse_fleet_time, update_fleet

__all__ = [
    "get_connection",
    "get_transaction",
    "get_engine",
    "close_engine",
    "is_configured",
    "TimerboardError",
    "InvalidIdError",
    "NotFoundError",
    "MessagingUnavailableError",
    "create_fleet",
    "update_fleet",
    "delete_fleet",
    "parse_fleet_time",
]
