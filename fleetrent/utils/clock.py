"""Business-timezone helpers: what day it is, and how timestamps are shown."""
from datetime import datetime, date, timezone

import pytz

DEFAULT_TZ = "Pacific/Auckland"


def local_now(tz_name: str = DEFAULT_TZ) -> datetime:
    """Aware datetime in the business timezone."""
    return datetime.now(pytz.utc).astimezone(pytz.timezone(tz_name))


def local_today(tz_name: str = DEFAULT_TZ) -> date:
    """
    The calendar day at the rental office. Pickup checks and late-return
    billing are decided against this, not against the server's local date.
    """
    return local_now(tz_name).date()


def make_today(tz_name: str = DEFAULT_TZ):
    """Return a zero-argument ``today`` callable bound to ``tz_name``."""
    pytz.timezone(tz_name)  # fail fast on a bad name

    def _today() -> date:
        return local_today(tz_name)

    return _today


def fmt_iso_local(value, tz_name: str = DEFAULT_TZ) -> str:
    """
    Format a date/datetime (or its ISO string) for API output.
    Supports:
      - date objects and 'YYYY-MM-DD'       -> 'YYYY-MM-DD'
      - datetimes, naive or aware, and ISO strings with 'T', 'Z' or offsets
    Naive values are taken as UTC and converted to the business timezone.
    On parse error, returns the original value.
    """
    if value is None:
        return ""

    if isinstance(value, date) and not isinstance(value, datetime):
        return value.isoformat()

    if isinstance(value, datetime):
        dt = value
    else:
        s = str(value).strip()
        if not s:
            return ""
        s_norm = s.replace("T", " ")
        if s_norm.endswith("Z"):
            s_norm = s_norm[:-1] + "+00:00"
        if ":" not in s_norm:
            try:
                return datetime.strptime(s_norm, "%Y-%m-%d").date().isoformat()
            except ValueError:
                return s
        try:
            dt = datetime.fromisoformat(s_norm)
        except ValueError:
            return s

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(pytz.timezone(tz_name)).strftime("%Y-%m-%d %H:%M")
