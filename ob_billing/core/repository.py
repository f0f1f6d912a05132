"""Read repositories over a :class:`CareSnapshot`.

Each repository answers the lookups the rules need, with the same
ordering the storage layer's queries used.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from ob_billing.core.snapshot import CareSnapshot
from ob_billing.models.patient import (
    CareRange,
    EventStatus,
    Patient,
    PatientStatusEvent,
    PatientType,
)
from ob_billing.models.shift import Doctor, ShiftSlot, ShiftWindow, SlotAction

OB_VBAC_DELIVERY_CODES = frozenset({"87.98B", "87.98C"})


def _by_start(slots: Iterable[ShiftSlot]) -> list[ShiftSlot]:
    return sorted(slots, key=lambda s: s.start_time)


class DoctorRepository:
    def __init__(self, snapshot: CareSnapshot):
        self.snapshot = snapshot

    def index(self) -> dict[int, Doctor]:
        """Map doctor id to doctor, built once per engine run."""
        return {doctor.id: doctor for doctor in self.snapshot.doctors}


class PatientRepository:
    def __init__(self, snapshot: CareSnapshot):
        self.snapshot = snapshot

    def get_by_id(self, patient_id: int) -> Optional[Patient]:
        return next((p for p in self.snapshot.patients if p.id == patient_id), None)

    def first_baby_of(self, mother_id: int) -> Optional[Patient]:
        babies = [
            p for p in self.snapshot.patients
            if p.parent_patient_id == mother_id and p.patient_type == PatientType.BABY
        ]
        return min(babies, key=lambda p: p.id) if babies else None

    def care_ranges(self, exclude_id: Optional[int] = None) -> list[CareRange]:
        """Admitted/delivered intervals of every other patient that has both."""
        ranges: list[CareRange] = []
        for patient in self.snapshot.patients:
            if patient.id == exclude_id:
                continue
            care_range = patient.care_range()
            if care_range is not None:
                ranges.append(care_range)
        return ranges


class ShiftRepository:
    def __init__(self, snapshot: CareSnapshot):
        self.snapshot = snapshot

    def slots_for_patient(
        self,
        patient_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[ShiftSlot]:
        """Patient slots with ``start <= start_time <= end``, time-ordered."""
        return _by_start(
            s for s in self.snapshot.shift_slots
            if s.patient_id == patient_id
            and (start is None or s.start_time >= start)
            and (end is None or s.start_time <= end)
        )

    def slots_for_doctor(self, doctor_id: int, start: datetime, end: datetime) -> list[ShiftSlot]:
        """Doctor slots with ``start <= start_time < end``, time-ordered."""
        return _by_start(
            s for s in self.snapshot.shift_slots
            if s.doctor_id == doctor_id and start <= s.start_time < end
        )

    def first_action_slot(self, doctor_id: int, start: datetime, end: datetime) -> Optional[ShiftSlot]:
        """The doctor's earliest slot in ``[start, end)`` that names a patient and an action."""
        for slot in self.slots_for_doctor(doctor_id, start, end):
            if slot.patient_id is not None and slot.has_action:
                return slot
        return None

    def first_delivery_slot(self, patient_id: int) -> Optional[ShiftSlot]:
        for slot in self.slots_for_patient(patient_id):
            if slot.action_key == SlotAction.DELIVERY.value:
                return slot
        return None

    def supportive_care_slots(self, patient_ids: Iterable[int]) -> list[ShiftSlot]:
        ids = set(patient_ids)
        return [
            s for s in self.snapshot.shift_slots
            if s.patient_id in ids and (s.rounds_supportive_care or s.tongue_tie_supportive_care)
        ]

    def ob_vbac_patient_ids(self) -> set[int]:
        """Patients with any slot carrying an OB or VBAC delivery code."""
        return {
            s.patient_id for s in self.snapshot.shift_slots
            if s.patient_id is not None and s.delivery_code in OB_VBAC_DELIVERY_CODES
        }

    def windows_for_range(self, start: datetime, end: datetime) -> list[ShiftWindow]:
        """Active shift windows overlapping ``[start, end]``, earliest first."""
        windows = [
            w for w in self.snapshot.shift_windows
            if w.is_active and w.overlaps(start, end)
        ]
        return sorted(windows, key=lambda w: w.start_datetime)


class StatusEventRepository:
    def __init__(self, snapshot: CareSnapshot):
        self.snapshot = snapshot

    def for_patient(
        self,
        patient_id: int,
        statuses: Optional[Iterable[EventStatus]] = None,
    ) -> list[PatientStatusEvent]:
        """Events for a patient ordered by time; untimed events sort last."""
        wanted = set(statuses) if statuses is not None else None
        events = [
            e for e in self.snapshot.status_events
            if e.patient_id == patient_id and (wanted is None or e.status in wanted)
        ]
        return sorted(events, key=lambda e: (e.occurred_at is None, e.occurred_at or datetime.min))
