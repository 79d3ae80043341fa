"""Date range utilities.

Every range ends "yesterday" in UTC: the npm downloads API reports the
current day incompletely, so it is never part of a window.
"""

from datetime import date, datetime, timedelta, timezone

from npmtraffic.types.traffic import DateRange

ALLOWED_DAYS = (7, 14, 30, 90, 180, 365)
DEFAULT_DAYS = 30


def clamp_days(raw: int | float | str | None = None) -> int:
    """Coerce a requested day count into the allowed set.

    Accepts ints, whole floats (as decoded from JSON) and numeric strings.
    Missing or disallowed values fall back to DEFAULT_DAYS. The result is
    always an int.
    """
    if raw is None or isinstance(raw, bool):
        return DEFAULT_DAYS
    if isinstance(raw, str):
        try:
            value = int(raw.strip())
        except ValueError:
            return DEFAULT_DAYS
    elif isinstance(raw, float):
        if not raw.is_integer():
            return DEFAULT_DAYS
        value = int(raw)
    elif isinstance(raw, int):
        value = raw
    else:
        return DEFAULT_DAYS
    return value if value in ALLOWED_DAYS else DEFAULT_DAYS


def to_iso_date(value: date | datetime) -> str:
    """Format a date (or the UTC date of a datetime) as YYYY-MM-DD."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        value = value.date()
    return value.isoformat()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def range_for_days(days: int | str | None, now: datetime | None = None) -> DateRange:
    """Compute the inclusive range of `days` days ending yesterday (UTC).

    Args:
        days: Requested day count, clamped to ALLOWED_DAYS
        now: Reference time (default: current time). Naive values are read as UTC.

    Returns:
        DateRange with ISO start/end dates
    """
    count = clamp_days(days)
    if now is None:
        now = utc_now()
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    end = now.astimezone(timezone.utc).date() - timedelta(days=1)
    start = end - timedelta(days=count - 1)

    return DateRange(
        days=count,
        label=f"last-{count}-days",
        start_date=start.isoformat(),
        end_date=end.isoformat(),
    )


def parse_iso_date(value: str) -> date | None:
    """Parse YYYY-MM-DD, returning None on anything else."""
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        return None


def list_dates_between(start: str, end: str) -> list[str]:
    """List every ISO date from start to end inclusive.

    Returns an empty list when either bound is unparsable.
    """
    start_date = parse_iso_date(start)
    end_date = parse_iso_date(end)
    if start_date is None or end_date is None:
        return []

    result = []
    cursor = start_date
    while cursor <= end_date:
        result.append(cursor.isoformat())
        cursor += timedelta(days=1)
    return result
