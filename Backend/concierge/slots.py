"""
Slot and date candidates for the WhatsApp booking flow.

The chat flow does not check stylist calendars: every slot inside the
day-part window is offered and staff sort out clashes when they review the
pending request.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from .navigation import DateToken, DayPart, TimeToken

# (start, end) per day-part, local salon time
DAY_PART_WINDOWS: dict[DayPart, tuple[time, time]] = {
    DayPart.MORNING: (time(10, 0), time(12, 0)),
    DayPart.AFTERNOON: (time(12, 0), time(17, 0)),
    DayPart.EVENING: (time(17, 0), time(21, 0)),
}

# WhatsApp list messages accept at most 10 rows
MAX_LIST_ROWS = 10
SLOT_INTERVAL_MINUTES = 30
AVAILABLE_LABEL = "Available"


@dataclass(frozen=True)
class SlotCandidate:
    id: str
    title: str
    description: str


def format_time_12h(value: time) -> str:
    """10:30 -> "10:30 AM", 13:00 -> "1:00 PM"."""
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{hour}:{value.minute:02d} {suffix}"


def window_times(
    period: DayPart,
    interval_minutes: int = SLOT_INTERVAL_MINUTES,
    inclusive_end: bool = False,
) -> list[time]:
    """
    Start times inside a day-part window.

    The window is half-open [start, end) unless ``inclusive_end`` is set, in
    which case a slot exactly on the end boundary is emitted as well.
    """
    if interval_minutes <= 0:
        raise ValueError("interval_minutes must be positive")

    start, end = DAY_PART_WINDOWS[period]
    anchor = date(2000, 1, 1)
    cursor = datetime.combine(anchor, start)
    stop = datetime.combine(anchor, end)
    step = timedelta(minutes=interval_minutes)

    times = []
    while cursor < stop or (inclusive_end and cursor == stop):
        times.append(cursor.time())
        cursor += step
    return times


def generate_slots(
    period: DayPart,
    day: date,
    service_id: str,
    *,
    interval_minutes: int = SLOT_INTERVAL_MINUTES,
    max_slots: int = MAX_LIST_ROWS,
    inclusive_end: bool = False,
) -> list[SlotCandidate]:
    """Time-slot rows for one day-part, chronological and capped at ``max_slots``."""
    slots = [
        SlotCandidate(
            id=TimeToken(time=slot_time, date=day, service_id=service_id).encode(),
            title=format_time_12h(slot_time),
            description=AVAILABLE_LABEL,
        )
        for slot_time in window_times(period, interval_minutes, inclusive_end)
    ]
    return slots[:max_slots]


def local_today(timezone_name: str) -> date:
    """Today's date in the salon's timezone."""
    return datetime.now(ZoneInfo(timezone_name)).date()


def upcoming_dates(today: date, days: int = 7) -> list[date]:
    """The next ``days`` calendar days, starting tomorrow."""
    return [today + timedelta(days=offset) for offset in range(1, days + 1)]


def date_candidates(today: date, service_id: str, days: int = 7) -> list[SlotCandidate]:
    """Date rows ("Tue, 10 Jun" / "Tuesday, June 10, 2025") for the date picker."""
    return [
        SlotCandidate(
            id=DateToken(date=day, service_id=service_id).encode(),
            title=_date_title(day, today),
            description=day.strftime("%A, %B %d, %Y"),
        )
        for day in upcoming_dates(today, min(days, MAX_LIST_ROWS))
    ]


def _date_title(day: date, today: date) -> str:
    if day == today + timedelta(days=1):
        return f"Tomorrow, {day.strftime('%d %b')}"
    return day.strftime("%a, %d %b")
