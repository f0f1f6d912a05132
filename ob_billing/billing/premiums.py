"""After-hours premium (03.01AA) and supportive care (03.05M) billing."""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from typing import Optional, Sequence

from ob_billing.billing.modifiers import after_hours_premium_modifier
from ob_billing.billing.timeslots import slot_key
from ob_billing.config import Settings, get_settings
from ob_billing.core.repository import PatientRepository, ShiftRepository
from ob_billing.models.billing import BillingEntry, BillingKind
from ob_billing.models.patient import Patient
from ob_billing.models.shift import Doctor, ShiftWindow, SlotAction

logger = logging.getLogger(__name__)

PREMIUM_CODE = "03.01AA"
SUPPORTIVE_CARE_CODE = "03.05M"

PREMIUM_ACTIONS = frozenset({
    SlotAction.TRIAGE_VISIT.value,
    SlotAction.TRIAGE_REASSESSMENT.value,
    SlotAction.ATTENDED.value,
})


def build_after_hours_premium_billings(
    patient: Patient,
    start: datetime,
    end: datetime,
    windows: Sequence[ShiftWindow],
    shifts: ShiftRepository,
    doctors: dict[int, Doctor],
    settings: Optional[Settings] = None,
) -> list[BillingEntry]:
    """One 03.01AA per doctor, counting after-hours slots by premium modifier.

    Slots are counted once per doctor and time within each window clipped
    to ``[start, end)``. The modifier lists every premium bucket with its
    count, e.g. ``"TEV 02, TNTP 01"``, and the line is placed at the
    doctor's earliest counted slot.
    """
    settings = settings or get_settings()
    counts: dict[int, Counter] = {}
    earliest: dict[int, datetime] = {}
    seen: dict[int, set[datetime]] = {}

    for window in windows:
        window_start = max(start, window.start_datetime)
        window_end = min(end, window.end_datetime)
        if window_start >= window_end:
            continue
        for slot in shifts.slots_for_doctor(window.doctor_id, window_start, window_end):
            if slot.patient_id != patient.id or slot.action_key not in PREMIUM_ACTIONS:
                continue
            modifier = after_hours_premium_modifier(
                slot.start_time,
                settings.stat_holidays,
                settings.designated_stat_holidays,
            )
            if not modifier:
                continue
            key = slot_key(slot.start_time)
            doctor_seen = seen.setdefault(slot.doctor_id, set())
            if key in doctor_seen:
                continue
            doctor_seen.add(key)
            counts.setdefault(slot.doctor_id, Counter())[modifier] += 1
            if slot.doctor_id not in earliest or slot.start_time < earliest[slot.doctor_id]:
                earliest[slot.doctor_id] = slot.start_time

    billings: list[BillingEntry] = []
    for doctor_id, counter in counts.items():
        modifier = ", ".join(f"{name} {counter[name]:02d}" for name in sorted(counter))
        billings.append(
            BillingEntry(
                time=earliest[doctor_id],
                code=PREMIUM_CODE,
                modifier=modifier,
                doctor=doctors.get(doctor_id),
                kind=BillingKind.AFTER_HOURS_PREMIUM,
            )
        )
    return billings


def build_supportive_care_billings(
    patient: Patient,
    patients: PatientRepository,
    shifts: ShiftRepository,
    doctors: dict[int, Doctor],
) -> list[BillingEntry]:
    """03.05M for every supportive-care slot of the mother or her first baby."""
    if patient.is_baby:
        return []
    ids = [patient.id]
    baby = patients.first_baby_of(patient.id)
    if baby is not None:
        ids.append(baby.id)
    return [
        BillingEntry(
            time=slot.start_time,
            code=SUPPORTIVE_CARE_CODE,
            doctor=doctors.get(slot.doctor_id),
            kind=BillingKind.SUPPORTIVE_CARE,
        )
        for slot in shifts.supportive_care_slots(ids)
    ]
