"""
Centralized configuration for the timerboard service.

Settings are read from environment variables (loaded from .env / .env.local
by the entry points) through small accessor functions.
"""

import os


def _is_truthy(value: str | None) -> bool:
    return (value or "").lower() in ("true", "1", "yes")


def get_database_url() -> str | None:
    """Raw DATABASE_URL as configured (driver not yet rewritten)."""
    return os.environ.get("DATABASE_URL")


def get_discord_bot_token() -> str | None:
    return os.getenv("DISCORD_BOT_TOKEN")


def get_app_url() -> str:
    """Base URL of the timerboard web app, used as the link on every embed."""
    return os.getenv("APP_URL", f"http://localhost:{get_api_port()}").rstrip("/")


def get_api_port() -> int:
    """Get API server port from env or default."""
    return int(os.getenv("API_PORT", "8000"))


def get_sentry_dsn() -> str | None:
    return os.getenv("SENTRY_DSN") or None


def is_discord_bot_disabled() -> bool:
    return _is_truthy(os.getenv("DISABLE_DISCORD_BOT"))


def is_scheduler_disabled() -> bool:
    return _is_truthy(os.getenv("DISABLE_SCHEDULER"))


def is_sql_echo_enabled() -> bool:
    return _is_truthy(os.getenv("SQL_ECHO"))


# Format: (name, description, required)
REQUIRED_ENV_VARS = [
    ("DATABASE_URL", "PostgreSQL connection string", True),
    ("DISCORD_BOT_TOKEN", "Discord bot token", False),
    ("APP_URL", "Public URL of the timerboard web app", False),
]


def check_required_env_vars() -> tuple[bool, list[str]]:
    """
    Check that required environment variables are set.

    Returns:
        (all_ok, warnings): Tuple of success flag and list of warning messages
    """
    warnings = []
    errors = []

    for name, description, required in REQUIRED_ENV_VARS:
        if os.environ.get(name):
            continue
        if required:
            errors.append(f"  ✗ {name}: Not set ({description})")
        else:
            warnings.append(f"  ⚠ {name}: Not set ({description})")

    if errors:
        for error in errors:
            print(error)
        return False, warnings

    return True, warnings
