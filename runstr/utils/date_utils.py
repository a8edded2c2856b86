"""Date helpers for UTC calendar days and window boundaries."""

from datetime import date, datetime, timezone
from typing import Optional
import bittensor as bt


def utc_date(timestamp_sec: int) -> date:
    """Calendar date of an epoch timestamp in UTC."""
    return datetime.fromtimestamp(timestamp_sec, tz=timezone.utc).date()


def parse_window_date(date_str: Optional[str], end_of_day: bool = False) -> Optional[int]:
    """
    Parse a date string to epoch seconds (UTC).

    Handles both full ISO timestamps and simple date formats.
    For simple date formats (YYYY-MM-DD), the result is the start of that day,
    or the start of the following day when end_of_day is True, so it can be
    used directly as an exclusive window end.

    Args:
        date_str: Date string in format 'YYYY-MM-DD' or ISO format with time
        end_of_day: If True and date_str is a simple date, return the
                    exclusive end of that day

    Returns:
        Epoch seconds, or None if date_str is None/empty/unparseable

    Examples:
        >>> parse_window_date('2025-11-25')
        1764028800

        >>> parse_window_date('2025-11-25', end_of_day=True)
        1764115200

        >>> parse_window_date('2025-11-25T14:30:00Z')
        1764081000
    """
    if not date_str:
        return None

    try:
        # Check if date string has time component (ISO format or timestamp)
        if 'T' in date_str or ':' in date_str:
            dt = datetime.fromisoformat(date_str.replace('Z', '+00:00'))
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)
            return int(dt.astimezone(timezone.utc).timestamp())

        dt = datetime.strptime(date_str, '%Y-%m-%d').replace(tzinfo=timezone.utc)
        start = int(dt.timestamp())
        return start + 24 * 60 * 60 if end_of_day else start

    except (ValueError, AttributeError) as e:
        bt.logging.warning(f"Failed to parse date '{date_str}': {e}")
        return None


def format_timestamp(timestamp_sec: int) -> str:
    """Format epoch seconds as an ISO-8601 UTC string."""
    return datetime.fromtimestamp(timestamp_sec, tz=timezone.utc).isoformat()
