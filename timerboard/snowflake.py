"""Parsing of Discord snowflake ids stored as text."""

from .errors import InvalidIdError

# Snowflakes are unsigned 64-bit integers
_MAX_SNOWFLAKE = 2**64 - 1


def parse_snowflake(value, kind: str = "id") -> int:
    """
    Parse a stored Discord id into an int.

    Args:
        value: The stored id (str or int)
        kind: Human readable id kind used in the error message

    Raises:
        InvalidIdError: If the value is not a positive 64-bit integer
    """
    if isinstance(value, bool):
        raise InvalidIdError(kind, value)
    if isinstance(value, int):
        parsed = value
    else:
        text = str(value).strip() if value is not None else ""
        if not (text.isascii() and text.isdigit()):
            raise InvalidIdError(kind, value)
        parsed = int(text)

    if parsed <= 0 or parsed > _MAX_SNOWFLAKE:
        raise InvalidIdError(kind, value)
    return parsed
