"""Date keys and Saturday-to-Friday game weeks.

Every date is handled in UTC and represented as a ``YYYY-MM-DD`` key.
"""
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone

DATE_KEY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
DAYS_PER_WEEK = 7
MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


@dataclass(frozen=True)
class WeekRange:
    start: str
    end: str
    dates: tuple[str, ...] = field(default_factory=tuple)

    @property
    def label(self) -> str:
        return week_label(self.start, self.end)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def format_date_key(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def today_key() -> str:
    return format_date_key(utc_today())


def parse_date_key(key: str) -> date:
    if not isinstance(key, str) or not DATE_KEY_PATTERN.match(key):
        raise ValueError("Dates must be formatted as YYYY-MM-DD.")
    return datetime.strptime(key, "%Y-%m-%d").date()


def week_range(value: date) -> WeekRange:
    # weekday(): Monday == 0 ... Saturday == 5, Sunday == 6
    days_since_saturday = (value.weekday() + 2) % DAYS_PER_WEEK
    saturday = value - timedelta(days=days_since_saturday)
    dates = tuple(format_date_key(saturday + timedelta(days=offset)) for offset in range(DAYS_PER_WEEK))
    return WeekRange(start=dates[0], end=dates[-1], dates=dates)


def week_range_for_key(key: str) -> WeekRange:
    return week_range(parse_date_key(key))


def previous_weeks(count: int, today: date | None = None) -> list[WeekRange]:
    """Current week first, then ``count - 1`` weeks going back."""
    anchor = today or utc_today()
    weeks: list[WeekRange] = []
    for index in range(max(0, count)):
        week = week_range(anchor - timedelta(days=index * DAYS_PER_WEEK))
        if not any(existing.start == week.start for existing in weeks):
            weeks.append(week)
    return weeks


def week_label(start: str, end: str) -> str:
    first = parse_date_key(start)
    last = parse_date_key(end)
    return (
        f"{MONTH_NAMES[first.month - 1]} {first.day} - "
        f"{MONTH_NAMES[last.month - 1]} {last.day}, {last.year}"
    )


def day_name(key: str) -> str:
    return DAY_NAMES[parse_date_key(key).weekday()]
