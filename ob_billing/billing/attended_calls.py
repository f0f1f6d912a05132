"""Attended-call billing for OB and VBAC deliveries.

When an obstetrician or VBAC delivery is billed, 13.99JA does not apply.
Each attended slot becomes an 03.03AR visit instead, and the first pair
of visits one slot apart inside the primary shift window is marked
COINPT.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional, Sequence

from ob_billing.billing.timeslots import slot_key
from ob_billing.models.billing import BillingEntry, BillingKind
from ob_billing.models.shift import Doctor, ShiftSlot, ShiftWindow, SlotAction

ATTENDED_CALL_CODE = "03.03AR"
COINPT = "COINPT"

MIN_PAIR_GAP = timedelta(minutes=14)
MAX_PAIR_GAP = timedelta(minutes=16)


def attended_call_slots(
    scoped_slots: Sequence[ShiftSlot],
    delivered_time: Optional[datetime],
) -> list[ShiftSlot]:
    """Doctor-assigned, non-delivery slots in time order."""
    return [
        s for s in sorted(scoped_slots, key=lambda s: s.start_time)
        if s.doctor_id
        and s.action_key != SlotAction.DELIVERY.value
        and (delivered_time is None or s.start_time != delivered_time)
    ]


def find_coinpt_pair(
    slots: Sequence[ShiftSlot],
    window: Optional[ShiftWindow],
) -> set[datetime]:
    """Slot keys of the first consecutive pair 14-16 minutes apart.

    With a primary window both slots must fall inside it.
    """
    for first, second in zip(slots, slots[1:]):
        gap = second.start_time - first.start_time
        if not MIN_PAIR_GAP <= gap <= MAX_PAIR_GAP:
            continue
        if window is not None and not (window.contains(first.start_time) and window.contains(second.start_time)):
            continue
        return {slot_key(first.start_time), slot_key(second.start_time)}
    return set()


def build_attended_call_billings(
    slots: Sequence[ShiftSlot],
    window: Optional[ShiftWindow],
    doctors: dict[int, Doctor],
) -> list[BillingEntry]:
    """One 03.03AR per attended slot; *slots* from :func:`attended_call_slots`."""
    coinpt = find_coinpt_pair(slots, window)
    return [
        BillingEntry(
            time=slot.start_time,
            code=ATTENDED_CALL_CODE,
            modifier=COINPT if slot_key(slot.start_time) in coinpt else "",
            doctor=doctors.get(slot.doctor_id),
            kind=BillingKind.ATTENDED_CALL,
        )
        for slot in slots
    ]
