"""Trading session windows.

Sessions are defined on New York wall-clock time:

    Asia    18:00 - 02:59
    London  03:00 - 08:29
    NY AM   08:30 - 11:59
    NY PM   12:00 - 17:59
"""

from datetime import date, datetime, time
from typing import Optional

import pytz


SESSION_TIMEZONE = "America/New_York"

# (start, session) pairs in ascending order; each window ends where the next begins.
SESSION_WINDOWS: list[tuple[time, str]] = [
    (time(3, 0), "London"),
    (time(8, 30), "NY AM"),
    (time(12, 0), "NY PM"),
    (time(18, 0), "Asia"),
]


def parse_time(value: str) -> time:
    """Parse an ``HH:MM`` string."""
    try:
        return datetime.strptime(value.strip(), "%H:%M").time()
    except ValueError:
        raise ValueError(f"Invalid time '{value}', expected HH:MM") from None


def session_for(clock: time) -> str:
    """Map a New York wall-clock time to its session."""
    current = "Asia"
    for start, session in SESSION_WINDOWS:
        if clock >= start:
            current = session
    return current


def infer_session(
    time_str: str,
    tz: str = SESSION_TIMEZONE,
    on_date: Optional[date] = None,
) -> str:
    """Infer the trading session for an entry time.

    Args:
        time_str: Entry time as ``HH:MM`` in the ``tz`` zone.
        tz: Time zone the entry time was recorded in.
        on_date: Trade date, used for daylight-saving conversion. Defaults
            to today.

    Returns:
        Session name.
    """
    clock = parse_time(time_str)

    if tz == SESSION_TIMEZONE:
        return session_for(clock)

    local = pytz.timezone(tz).localize(datetime.combine(on_date or date.today(), clock))
    new_york = local.astimezone(pytz.timezone(SESSION_TIMEZONE))
    return session_for(new_york.time())
