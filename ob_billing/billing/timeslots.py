"""Quarter-hour slot arithmetic and time-of-day classification.

All fee-schedule windows use the same boundaries:

  night    before 07:00 or from 22:00
  evening  weekdays 17:00-22:00
  weekend  Saturday/Sunday 07:00-22:00
"""
from __future__ import annotations

from datetime import date, datetime, timedelta

SLOT_MINUTES = 15
NIGHT_END_HOUR = 7
EVENING_START_HOUR = 17
NIGHT_START_HOUR = 22


def slot_delta(minutes: int = SLOT_MINUTES) -> timedelta:
    return timedelta(minutes=minutes)


def floor_to_quarter(moment: datetime) -> datetime:
    """Round down to the enclosing quarter hour, dropping seconds."""
    return moment.replace(minute=(moment.minute // 15) * 15, second=0, microsecond=0)


def slot_key(moment: datetime) -> datetime:
    """Minute-precision key used to match slots against each other."""
    return moment.replace(second=0, microsecond=0)


def generate_slots(start: datetime, end: datetime, minutes: int = SLOT_MINUTES) -> list[datetime]:
    """Every slot start in ``[start, end)`` stepping by *minutes*."""
    slots: list[datetime] = []
    step = slot_delta(minutes)
    cursor = start
    while cursor < end:
        slots.append(cursor)
        cursor += step
    return slots


def hour_of_day(moment: datetime) -> float:
    return moment.hour + moment.minute / 60


def is_weekend(moment: datetime) -> bool:
    return moment.weekday() >= 5


def is_night(moment: datetime) -> bool:
    hm = hour_of_day(moment)
    return hm < NIGHT_END_HOUR or hm >= NIGHT_START_HOUR


def is_evening(moment: datetime) -> bool:
    """Weekday 17:00-22:00."""
    hm = hour_of_day(moment)
    return not is_weekend(moment) and EVENING_START_HOUR <= hm < NIGHT_START_HOUR


def is_weekday_daytime(moment: datetime) -> bool:
    hm = hour_of_day(moment)
    return not is_weekend(moment) and NIGHT_END_HOUR <= hm < EVENING_START_HOUR


def is_same_date(a: datetime | None, b: datetime | None) -> bool:
    return a is not None and b is not None and a.date() == b.date()


def is_listed_date(moment: datetime, dates: list[date] | tuple[date, ...]) -> bool:
    return moment.date() in dates


def format_display(moment: datetime | None) -> str:
    """``Jan 01, 2024 08:00 AM`` style display used in reports."""
    if moment is None:
        return ""
    return moment.strftime("%b %d, %Y %I:%M %p")
