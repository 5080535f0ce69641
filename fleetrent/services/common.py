"""Shared service helpers: dates, ranges, rounding and id factories."""

import itertools
import threading
import uuid
from datetime import date, datetime, timedelta

from fleetrent.exceptions import ValidationError


def as_date(x) -> date:
    """Coerce any date-like to a naive date (supports 'YYYY-MM-DD' or ISO with T)."""
    if isinstance(x, datetime):
        return x.date()
    if isinstance(x, date):
        return x
    if isinstance(x, str):
        base = x.split("T", 1)[0].strip()
        try:
            return date.fromisoformat(base)
        except ValueError:
            raise ValidationError(f"Invalid date {x!r} (expected YYYY-MM-DD)") from None
    raise ValidationError(f"Unsupported date: {x!r}")


def check_range(start: date, end: date) -> None:
    if end < start:
        raise ValidationError(f"End date {end} is before start date {start}")


def overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """
    Check overlap between closed ranges [a_start, a_end] and [b_start, b_end].
    Ranges that share a single day overlap.
    """
    return not a_start > b_end and not b_start > a_end


def adjacent(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """True when one range starts the day after the other ends."""
    return a_start == b_end + timedelta(days=1) or a_end == b_start - timedelta(days=1)


def round2(x: float) -> float:
    return round(float(x), 2)


def uuid_ids():
    """Default id factory."""
    return lambda: str(uuid.uuid4())


def sequence_ids(prefix: str = "", start: int = 1):
    """Deterministic id factory owned by one catalog (thread-safe)."""
    counter = itertools.count(start)
    lock = threading.Lock()

    def _next() -> str:
        with lock:
            return f"{prefix}{next(counter)}"

    return _next


def ticket_ids(now):
    """Ticket ids in the pickup-desk format: TKT-<yyyyMMddHHmmss>-<8 hex>."""

    def _next() -> str:
        stamp = now().strftime("%Y%m%d%H%M%S")
        return f"TKT-{stamp}-{uuid.uuid4().hex[:8].upper()}"

    return _next
