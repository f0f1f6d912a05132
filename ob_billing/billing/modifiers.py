"""Fee-schedule modifier and code classifiers.

Pure functions of a timestamp (or a duration). ``time_modifier`` carries a
weight used to rank 13.99JA slots: night 3, evening/weekend 2, otherwise 1.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import NamedTuple, Sequence

from ob_billing.billing.timeslots import (
    EVENING_START_HOUR,
    NIGHT_END_HOUR,
    hour_of_day,
    is_evening,
    is_listed_date,
    is_night,
    is_weekend,
)


class TimeModifier(NamedTuple):
    modifier: str
    weight: int


# Fixed dollar values used to weigh a callback against ghost 13.99JA lines.
CALLBACK_VALUES: dict[str, int] = {
    "03.03KA": 80,
    "03.03LA": 120,
    "03.03MC": 160,
    "03.03MD": 160,
    "03.05P": 159,
    "03.05QA": 197,
    "03.05QB": 197,
}

# (minimum minutes, modifier), longest first
TRIAGE_VISIT_TIERS: tuple[tuple[int, str], ...] = (
    (85, "CMGP08"),
    (75, "CMGP07"),
    (65, "CMGP06"),
    (55, "CMGP05"),
    (45, "CMGP04"),
    (35, "CMGP03"),
    (25, "CMGP02"),
    (15, "CMGP01"),
)


def time_modifier(moment: datetime) -> TimeModifier:
    """13.99JA modifier and its ranking weight."""
    hm = hour_of_day(moment)
    if hm < NIGHT_END_HOUR:
        return TimeModifier("NTAM", 3)
    if is_night(moment):
        return TimeModifier("NTPM", 3)
    if is_weekend(moment):
        return TimeModifier("WK", 2)
    if is_evening(moment):
        return TimeModifier("EV", 2)
    return TimeModifier("", 1)


def after_hours_modifier(moment: datetime) -> str:
    """Modifier for induction, monitoring, delivery and tongue-tie codes."""
    return time_modifier(moment).modifier


def after_hours_premium_modifier(
    moment: datetime,
    stat_holidays: Sequence[date] = (),
    designated_stat_holidays: Sequence[date] = (),
) -> str:
    """Modifier for the 03.01AA after-hours premium."""
    if not is_night(moment):
        if is_listed_date(moment, tuple(stat_holidays)):
            return "TST"
        if is_listed_date(moment, tuple(designated_stat_holidays)):
            return "TDES"
    hm = hour_of_day(moment)
    if hm < NIGHT_END_HOUR:
        return "TNTA"
    if is_night(moment):
        return "TNTP"
    if is_weekend(moment):
        return "TWK"
    if hm >= EVENING_START_HOUR:
        return "TEV"
    return ""


def callback_code_for_triage(moment: datetime) -> str:
    hm = hour_of_day(moment)
    if hm < NIGHT_END_HOUR:
        return "03.03MD"
    if is_night(moment):
        return "03.03MC"
    if is_weekend(moment):
        return "03.03LA"
    if hm < EVENING_START_HOUR:
        return "03.03KA"
    return "03.03LA"


def callback_code_for_inpatient(moment: datetime) -> str:
    hm = hour_of_day(moment)
    if hm < NIGHT_END_HOUR:
        return "03.05QB"
    if is_night(moment):
        return "03.05QA"
    return "03.05P"


def callback_value(code: str) -> int:
    return CALLBACK_VALUES.get(code, 0)


def triage_visit_modifier(total_minutes: int) -> str:
    """Duration modifier for 03.03BZ, in 10-minute tiers from 15 minutes."""
    for minimum, modifier in TRIAGE_VISIT_TIERS:
        if total_minutes >= minimum:
            return modifier
    return ""


def reassessment_base_code(moment: datetime) -> str:
    if is_night(moment):
        return "03.05FB"
    if is_weekend(moment) or hour_of_day(moment) >= EVENING_START_HOUR:
        return "03.05FA"
    return "03.05F"


def reassessment_duration_modifier(minutes: int) -> str:
    if minutes > 35:
        return "CMXV35"
    if minutes > 20:
        return "CMXV20"
    return ""


def append_modifier(base: str, extra: str) -> str:
    """Comma-join two modifiers, skipping empties."""
    if not extra:
        return base or ""
    if not base:
        return extra
    return f"{base},{extra}"
