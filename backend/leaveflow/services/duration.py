from __future__ import annotations

from datetime import date, datetime

from leaveflow.exceptions import InvalidDateRangeError

DateInput = date | datetime | str


def parse_leave_date(value: DateInput) -> date:
    """Coerce a date, datetime or ISO-8601 string to a calendar date.

    The time of day is dropped: leave is counted in whole calendar days.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            raise InvalidDateRangeError(f"Invalid date: {value!r}") from None
    raise InvalidDateRangeError(f"Invalid date: {value!r}")


def inclusive_day_count(start: DateInput, end: DateInput) -> int:
    """Number of calendar days covered by start..end, both ends included.

    The distance is taken in absolute value, so a reversed or zero-length
    range still counts as at least one day.
    """
    start_date = parse_leave_date(start)
    end_date = parse_leave_date(end)
    return abs((end_date - start_date).days) + 1


def parse_leave_range(start: DateInput, end: DateInput) -> tuple[date, date]:
    """Parse both ends of a leave request. Raises if the range runs backwards."""
    start_date = parse_leave_date(start)
    end_date = parse_leave_date(end)
    if end_date < start_date:
        msg = f"End date {end_date.isoformat()} is before start date {start_date.isoformat()}"
        raise InvalidDateRangeError(msg)
    return start_date, end_date
