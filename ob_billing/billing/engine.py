"""Billing optimization engine.

``build_optimized_billings`` turns one patient's timeline into a
time-sorted list of billing recommendations. ``optimize_patient`` is the
caller-facing wrapper: it selects the slots and shift windows from a
snapshot, reports precondition failures as user-facing errors, and
attaches explanatory notes.

The engine is a pure function of its inputs. It reads the snapshot and
never mutates it.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import NamedTuple, Optional, Sequence

from ob_billing.billing.attended_calls import attended_call_slots, build_attended_call_billings
from ob_billing.billing.callback import arbitrate_callbacks, build_callback_infos
from ob_billing.billing.delivery import (
    build_delivery_billings,
    delivery_moment,
    find_delivery_slot,
    is_ob_or_vbac,
    normalize_delivery_code,
)
from ob_billing.billing.ghost_scheduler import GhostSlotScheduler
from ob_billing.billing.newborn import build_newborn_billings
from ob_billing.billing.notes import build_optimization_notes
from ob_billing.billing.premiums import (
    build_after_hours_premium_billings,
    build_supportive_care_billings,
)
from ob_billing.billing.status_events import build_status_event_billings
from ob_billing.billing.triage import (
    blocking_inductions,
    build_triage_billings,
    collect_triage_slots,
    triage_cutoff,
)
from ob_billing.config import Settings, get_settings
from ob_billing.core.repository import (
    DoctorRepository,
    PatientRepository,
    ShiftRepository,
    StatusEventRepository,
)
from ob_billing.core.snapshot import CareSnapshot
from ob_billing.models.billing import BillingEntry, CallbackInfo, OptimizationResult
from ob_billing.models.patient import EventStatus, Patient, PatientStatusEvent
from ob_billing.models.shift import ShiftSlot, ShiftWindow

logger = logging.getLogger(__name__)

ENGINE_EVENT_STATUSES = (
    EventStatus.TRIAGE,
    EventStatus.INDUCTION,
    EventStatus.CONTINUOUS_MONITORING,
)

ERROR_PATIENT_NOT_FOUND = "Patient not found."
ERROR_MISSING_TIMES = "Set both Admitted and Delivered times to generate billing."
ERROR_INVERTED_TIMES = "Delivered time must be after Admitted time."
ERROR_NO_BILLINGS = "No eligible billing slots found within the Admitted-to-Delivered window."
ERROR_NO_NEWBORN_BILLINGS = "No eligible newborn billing found for this patient."


class BillingRun(NamedTuple):
    """Billings plus the intermediate decisions the notes explain."""

    billings: list[BillingEntry]
    triage_cutoff: datetime
    events: list[PatientStatusEvent]
    blocking_inductions: list[PatientStatusEvent]
    callbacks: list[CallbackInfo]
    skipped_callbacks: list[CallbackInfo]


def _by_time(billings: list[BillingEntry]) -> list[BillingEntry]:
    # sorted() is stable, so equal times keep emission order
    return sorted(billings, key=lambda b: b.time)


def run_billing(
    patient: Patient,
    patient_slots: Sequence[ShiftSlot],
    shift_windows: Sequence[Optional[ShiftWindow]],
    snapshot: CareSnapshot,
    settings: Optional[Settings] = None,
) -> Optional[BillingRun]:
    """Evaluate every rule for *patient*; None when admitted/delivered are unusable."""
    settings = settings or get_settings()
    admitted = patient.care_admitted_at
    delivered = patient.care_delivered_at
    if admitted is None or delivered is None or admitted >= delivered:
        logger.debug(f"Patient {patient.id}: admitted/delivered missing or inverted")
        return None

    doctors = DoctorRepository(snapshot).index()
    patients = PatientRepository(snapshot)
    shifts = ShiftRepository(snapshot)
    windows = [w for w in shift_windows if w is not None]
    primary = windows[0] if windows else None

    events = StatusEventRepository(snapshot).for_patient(patient.id, ENGINE_EVENT_STATUSES)
    cutoff = triage_cutoff(patient, delivered, events)
    triage_slots = collect_triage_slots(patient_slots, cutoff)
    inductions = [e for e in events if e.status == EventStatus.INDUCTION]
    blocking = blocking_inductions(triage_slots, inductions, admitted)

    scoped = sorted(
        (s for s in patient_slots if admitted <= s.start_time <= delivered),
        key=lambda s: s.start_time,
    )
    triage_billings = build_triage_billings(triage_slots, not blocking, doctors)
    premium_billings = build_after_hours_premium_billings(
        patient, admitted, cutoff, windows, shifts, doctors, settings
    )
    supportive_billings = build_supportive_care_billings(patient, patients, shifts, doctors)

    delivery_slot = find_delivery_slot(scoped)
    delivered_time = delivery_moment(delivery_slot)
    delivery_code = normalize_delivery_code(delivery_slot)
    callbacks = build_callback_infos(patient, windows, shifts, doctors)

    if delivery_slot is not None and is_ob_or_vbac(delivery_code):
        logger.debug(f"Patient {patient.id}: {delivery_code} delivery, billing attended calls")
        billings = build_attended_call_billings(
            attended_call_slots(scoped, delivered_time), primary, doctors
        )
        billings.extend(
            build_delivery_billings(delivery_slot, delivered_time, doctors.get(delivery_slot.doctor_id))
        )
        status_billings = build_status_event_billings(events, True, doctors, settings)
        combined = (
            billings
            + triage_billings
            + status_billings
            + [entry for info in callbacks for entry in info.billings]
            + premium_billings
            + supportive_billings
        )
        return BillingRun(_by_time(combined), cutoff, events, blocking, callbacks, [])

    if primary is None:
        logger.debug(f"Patient {patient.id}: no shift window overlaps the care range")
        status_billings = build_status_event_billings(events, True, doctors, settings)
        combined = triage_billings + status_billings + premium_billings + supportive_billings
        return BillingRun(_by_time(combined), cutoff, events, blocking, [], [])

    ob_vbac_ids = shifts.ob_vbac_patient_ids()
    scheduler = GhostSlotScheduler(
        admitted=admitted,
        delivered=delivered,
        scoped_slots=scoped,
        doctors=doctors,
        shifts=shifts,
        other_ranges=[r for r in patients.care_ranges(patient.id) if r.patient_id not in ob_vbac_ids],
        delivered_time=delivered_time,
        settings=settings,
    )
    ja_billings = scheduler.schedule(windows)

    other_billings: list[BillingEntry] = []
    if delivered_time is not None and primary.start_datetime <= delivered_time <= primary.end_datetime:
        other_billings.extend(
            build_delivery_billings(delivery_slot, delivered_time, doctors.get(delivery_slot.doctor_id))
        )

    arbitration = arbitrate_callbacks(other_billings + ja_billings, callbacks, settings)
    has_ja = any(b.is_ja for b in arbitration.billings)
    status_billings = build_status_event_billings(events, not has_ja, doctors, settings)

    combined = (
        arbitration.billings
        + triage_billings
        + status_billings
        + arbitration.callbacks
        + premium_billings
        + supportive_billings
    )
    return BillingRun(_by_time(combined), cutoff, events, blocking, callbacks, arbitration.skipped)


def build_optimized_billings(
    patient: Patient,
    patient_slots: Sequence[ShiftSlot],
    shift_windows: Sequence[Optional[ShiftWindow]],
    snapshot: CareSnapshot,
    settings: Optional[Settings] = None,
) -> list[BillingEntry]:
    """Time-sorted billing recommendations for one patient.

    Args:
        patient: The mother whose episode is billed.
        patient_slots: Her shift slots from triage start to the triage cutoff.
        shift_windows: Active windows overlapping admitted-to-delivered,
            earliest first. The first is the primary window.
        snapshot: Read-only view used for doctor, slot and patient lookups.
        settings: Fee-schedule constants; defaults to :func:`get_settings`.

    Returns:
        Billing entries sorted by time, or an empty list when the admitted
        and delivered times are missing or out of order.
    """
    run = run_billing(patient, patient_slots, shift_windows, snapshot, settings)
    return run.billings if run is not None else []


def optimize_patient(
    snapshot: CareSnapshot,
    patient_id: int,
    settings: Optional[Settings] = None,
) -> OptimizationResult:
    """Select inputs for *patient_id* from *snapshot* and run the engine."""
    settings = settings or get_settings()
    patient = PatientRepository(snapshot).get_by_id(patient_id)
    if patient is None:
        return OptimizationResult(patient_id=patient_id, error=ERROR_PATIENT_NOT_FOUND)

    shifts = ShiftRepository(snapshot)
    if patient.is_baby:
        billings = build_newborn_billings(patient, shifts, DoctorRepository(snapshot).index())
        return OptimizationResult(
            patient_id=patient_id,
            billings=billings,
            error=None if billings else ERROR_NO_NEWBORN_BILLINGS,
        )

    admitted = patient.care_admitted_at
    delivered = patient.care_delivered_at
    if admitted is None or delivered is None:
        return OptimizationResult(patient_id=patient_id, error=ERROR_MISSING_TIMES)
    if admitted >= delivered:
        return OptimizationResult(patient_id=patient_id, error=ERROR_INVERTED_TIMES)

    events = StatusEventRepository(snapshot).for_patient(patient.id, [EventStatus.TRIAGE])
    window_end = triage_cutoff(patient, delivered, events)
    start_point = patient.start_datetime or admitted
    patient_slots = shifts.slots_for_patient(patient.id, start_point, window_end)
    windows = shifts.windows_for_range(admitted, delivered)

    run = run_billing(patient, patient_slots, windows, snapshot, settings)
    if run is None or not run.billings:
        return OptimizationResult(patient_id=patient_id, error=ERROR_NO_BILLINGS)

    notes = build_optimization_notes(
        run.billings,
        admitted=admitted,
        delivered=delivered,
        triage_cutoff=run.triage_cutoff,
        patient_slots=patient_slots,
        windows=windows,
        events=run.events,
        blocking_inductions=run.blocking_inductions,
        callbacks=run.callbacks,
        skipped_callbacks=run.skipped_callbacks,
        settings=settings,
    )
    logger.info(
        f"Patient {patient.id}: {len(run.billings)} billing lines across {len(windows)} shift window(s)"
    )
    return OptimizationResult(patient_id=patient_id, billings=run.billings, notes=notes)
