"""Triage visit and reassessment billing.

Triage visits bill once per patient (03.03BZ) with a modifier from the
total visit time. Reassessments bill once per encounter, where an
encounter is a run of same-doctor slots exactly one slot apart.
Non-stress tests and speculum exams bill per slot.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional, Sequence

from ob_billing.billing.modifiers import (
    reassessment_base_code,
    reassessment_duration_modifier,
    triage_visit_modifier,
)
from ob_billing.billing.timeslots import SLOT_MINUTES, is_same_date, slot_delta
from ob_billing.models.billing import BillingEntry, BillingKind
from ob_billing.models.patient import EventStatus, Patient, PatientStatusEvent
from ob_billing.models.shift import Doctor, ShiftSlot, SlotAction

logger = logging.getLogger(__name__)


def triage_cutoff(
    patient: Patient,
    delivered: datetime,
    events: Iterable[PatientStatusEvent],
) -> datetime:
    """Latest point that still counts toward triage billing.

    Triage that happens after delivery (a return to triage) extends the
    window past the delivery time.
    """
    cutoff = delivered
    candidates = [
        e.occurred_at for e in events
        if e.status == EventStatus.TRIAGE and e.occurred_at is not None
    ]
    if patient.second_triage_at is not None:
        candidates.append(patient.second_triage_at)
    for moment in candidates:
        if moment > cutoff:
            cutoff = moment
    return cutoff


def collect_triage_slots(slots: Iterable[ShiftSlot], cutoff: Optional[datetime]) -> list[ShiftSlot]:
    return [
        s for s in slots
        if s.is_triage and (cutoff is None or s.start_time <= cutoff)
    ]


def _visits(triage_slots: Sequence[ShiftSlot]) -> list[ShiftSlot]:
    return [s for s in triage_slots if s.action_key == SlotAction.TRIAGE_VISIT.value]


def blocking_inductions(
    triage_slots: Sequence[ShiftSlot],
    inductions: Iterable[PatientStatusEvent],
    admitted: Optional[datetime],
) -> list[PatientStatusEvent]:
    """Inductions that prevent the triage visit from being billed.

    An induction blocks when it happened before admission, on the day of
    the first triage visit, by a doctor who also did a triage visit. An
    induction with no doctor blocks whenever any triage-visit doctor is
    known.
    """
    visits = _visits(triage_slots)
    if not visits:
        return []
    first_visit = min(visits, key=lambda s: s.start_time)
    visit_doctors = {s.doctor_id for s in visits if s.doctor_id}

    blocking: list[PatientStatusEvent] = []
    for event in inductions:
        if event.occurred_at is None:
            continue
        if admitted is not None and event.occurred_at >= admitted:
            continue
        if not is_same_date(event.occurred_at, first_visit.start_time):
            continue
        if event.doctor_id:
            same_doctor = event.doctor_id in visit_doctors
        else:
            same_doctor = bool(visit_doctors)
        if same_doctor:
            blocking.append(event)
    return blocking


def _group_reassessments(slots: list[ShiftSlot]) -> list[list[ShiftSlot]]:
    groups: list[list[ShiftSlot]] = []
    step = slot_delta()
    for slot in sorted(slots, key=lambda s: s.start_time):
        if groups:
            last = groups[-1][-1]
            if (slot.doctor_id or None) == (last.doctor_id or None) and slot.start_time - last.start_time == step:
                groups[-1].append(slot)
                continue
        groups.append([slot])
    return groups


def build_triage_billings(
    triage_slots: Sequence[ShiftSlot],
    allow_triage_visit: bool,
    doctors: dict[int, Doctor],
) -> list[BillingEntry]:
    """Bill triage visits, reassessment encounters and per-slot extras."""
    if not triage_slots:
        return []

    billings: list[BillingEntry] = []
    visits = _visits(triage_slots)
    reassessments = [s for s in triage_slots if s.action_key == SlotAction.TRIAGE_REASSESSMENT.value]

    if visits and allow_triage_visit:
        total_minutes = len(visits) * SLOT_MINUTES
        first_visit = min(visits, key=lambda s: s.start_time)
        billings.append(
            BillingEntry(
                time=first_visit.start_time,
                code="03.03BZ",
                modifier=triage_visit_modifier(total_minutes),
                doctor=doctors.get(first_visit.doctor_id),
                kind=BillingKind.TRIAGE,
            )
        )
    elif visits:
        logger.debug(f"Triage visit at {visits[0].start_time} not billed (blocked by induction)")

    for group in _group_reassessments(reassessments):
        start = group[0]
        billings.append(
            BillingEntry(
                time=start.start_time,
                code=reassessment_base_code(start.start_time),
                modifier=reassessment_duration_modifier(len(group) * SLOT_MINUTES),
                doctor=doctors.get(start.doctor_id),
                kind=BillingKind.TRIAGE,
            )
        )

    for slot in triage_slots:
        doctor = doctors.get(slot.doctor_id)
        if slot.triage_non_stress_test:
            billings.append(
                BillingEntry(time=slot.start_time, code="87.54A", doctor=doctor, kind=BillingKind.TRIAGE_EXTRA)
            )
        if slot.triage_speculum_exam:
            billings.append(
                BillingEntry(time=slot.start_time, code="13.99BE", doctor=doctor, kind=BillingKind.TRIAGE_EXTRA)
            )

    return sorted(billings, key=lambda b: b.time)
