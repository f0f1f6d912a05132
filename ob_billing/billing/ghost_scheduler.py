"""13.99JA slot selection ("ghost" scheduling).

For each shift window overlapping the admitted-to-delivered interval the
scheduler picks up to ``ja_slot_cap`` quarter-hour slots, in this order:

1. encounter starts (first slot of a contiguous run of attended slots),
   best time-of-day weight first, then earliest;
2. the remaining attended slots, earliest first;
3. unattended "ghost" slots, choosing the times least contended by other
   patients' care windows, then best weight, then earliest.

Only encounter starts carry a time-of-day modifier. The union across
windows is then capped again for the whole patient.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import NamedTuple, Optional, Sequence

from ob_billing.billing.modifiers import time_modifier
from ob_billing.billing.timeslots import floor_to_quarter, generate_slots, slot_delta, slot_key
from ob_billing.config import Settings, get_settings
from ob_billing.core.repository import ShiftRepository
from ob_billing.models.billing import BillingEntry, BillingKind
from ob_billing.models.patient import CareRange
from ob_billing.models.shift import Doctor, ShiftSlot, ShiftWindow, SlotAction

logger = logging.getLogger(__name__)

JA_CODE = "13.99JA"

PRIORITY_ENCOUNTER = 2
PRIORITY_ATTENDED = 1
PRIORITY_GHOST = 0


class CandidateSlot(NamedTuple):
    time: datetime
    modifier: str
    weight: int


class GhostSlotScheduler:
    """Selects 13.99JA slots for one patient across their shift windows."""

    def __init__(
        self,
        admitted: datetime,
        delivered: datetime,
        scoped_slots: Sequence[ShiftSlot],
        doctors: dict[int, Doctor],
        shifts: ShiftRepository,
        other_ranges: Sequence[CareRange] = (),
        delivered_time: Optional[datetime] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.admitted = admitted
        self.delivered = delivered
        self.scoped_slots = scoped_slots
        self.doctors = doctors
        self.shifts = shifts
        self.other_ranges = other_ranges
        self.delivery_cutoff = delivered_time or delivered
        self.buffer = slot_delta(self.settings.delivery_buffer_minutes)

    # ------------------------------------------------------------------
    # Public
    # ------------------------------------------------------------------

    def schedule(self, windows: Sequence[ShiftWindow]) -> list[BillingEntry]:
        """13.99JA lines for every window, capped for the whole patient."""
        entries: list[BillingEntry] = []
        for window in windows:
            entries.extend(self.for_window(window))
        return self.cap(entries)

    def for_window(self, window: ShiftWindow) -> list[BillingEntry]:
        """13.99JA lines for a single shift window, time-ordered."""
        doctor = self.doctors.get(window.doctor_id)
        if doctor is None:
            logger.debug(f"Window {window.id}: doctor {window.doctor_id} not found")
            return []
        start = max(self.admitted, window.start_datetime)
        end = min(self.delivered, window.end_datetime)
        if start >= end:
            return []

        attended = self._attended_times(doctor.id, start, end)
        encounter_keys = {slot_key(t) for t in self._encounter_starts(attended)}
        attended_keys = {slot_key(t) for t in attended}

        candidates = self._candidate_slots(window, start, end)
        if not candidates:
            return []
        by_key = {slot_key(c.time): c for c in candidates}
        cap = self.settings.ja_slot_cap

        selected: dict[datetime, CandidateSlot] = {}
        encounter_slots = sorted(
            (by_key[k] for k in encounter_keys if k in by_key),
            key=lambda c: (-c.weight, c.time),
        )
        for candidate in encounter_slots[:cap]:
            selected[slot_key(candidate.time)] = candidate

        for moment in attended:
            key = slot_key(moment)
            if len(selected) >= cap:
                break
            if key in by_key and key not in encounter_keys and key not in selected:
                selected[key] = by_key[key]

        remaining = cap - len(selected)
        if remaining > 0:
            occupied = {slot_key(s.start_time) for s in self.shifts.slots_for_doctor(doctor.id, start, end)}
            contenders = self._overlapping_ranges(start, end)
            ghosts = sorted(
                (
                    c for c in candidates
                    if slot_key(c.time) not in selected and slot_key(c.time) not in occupied
                ),
                key=lambda c: (self._contention(c.time, contenders), -c.weight, c.time),
            )
            for candidate in ghosts[:remaining]:
                selected[slot_key(candidate.time)] = candidate

        logger.debug(
            f"Window {window.id}: {len(encounter_keys)} encounter starts, "
            f"{len(attended_keys)} attended, {len(selected)} selected"
        )
        return [
            self._entry(candidate, doctor, encounter_keys, attended_keys)
            for candidate in sorted(selected.values(), key=lambda c: c.time)
        ]

    def cap(self, entries: Sequence[BillingEntry]) -> list[BillingEntry]:
        """Keep the best ``ja_slot_cap`` lines: priority, then weight, then time.

        A doctor-time pair is billed at most once even when windows overlap.
        """
        ranked = sorted(entries, key=lambda e: (-e.priority, -e.weight, e.time))
        kept: list[BillingEntry] = []
        seen: set[tuple[Optional[int], datetime]] = set()
        for entry in ranked:
            pair = (entry.doctor_id, slot_key(entry.time))
            if pair in seen:
                continue
            seen.add(pair)
            kept.append(entry)
            if len(kept) >= self.settings.ja_slot_cap:
                break
        return kept

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _attended_times(self, doctor_id: int, start: datetime, end: datetime) -> list[datetime]:
        return sorted(
            s.start_time for s in self.scoped_slots
            if s.action_key == SlotAction.ATTENDED.value
            and s.doctor_id == doctor_id
            and start <= s.start_time < end
        )

    @staticmethod
    def _encounter_starts(attended: Sequence[datetime]) -> list[datetime]:
        step = slot_delta()
        starts: list[datetime] = []
        previous: Optional[datetime] = None
        for moment in attended:
            if previous is None or moment - previous > step:
                starts.append(moment)
            previous = moment
        return starts

    def _candidate_slots(self, window: ShiftWindow, start: datetime, end: datetime) -> list[CandidateSlot]:
        aligned = floor_to_quarter(start)
        if aligned < window.start_datetime:
            aligned = window.start_datetime.replace(second=0, microsecond=0)

        cutoff = self.delivery_cutoff
        buffer_start = cutoff - self.buffer
        candidates: list[CandidateSlot] = []
        for moment in generate_slots(aligned, end):
            if moment == cutoff or buffer_start <= moment < cutoff:
                continue
            modifier, weight = time_modifier(moment)
            candidates.append(CandidateSlot(moment, modifier, weight))
        return candidates

    def _overlapping_ranges(self, start: datetime, end: datetime) -> list[CareRange]:
        return [r for r in self.other_ranges if r.delivered > start and r.admitted < end]

    def _contention(self, moment: datetime, ranges: Sequence[CareRange]) -> int:
        """How many other patients could still need this slot billed."""
        count = 0
        for care in ranges:
            if moment < care.admitted or moment > care.delivered:
                continue
            if care.delivered - self.buffer <= moment < care.delivered:
                continue
            count += 1
        return count

    @staticmethod
    def _entry(
        candidate: CandidateSlot,
        doctor: Doctor,
        encounter_keys: set[datetime],
        attended_keys: set[datetime],
    ) -> BillingEntry:
        key = slot_key(candidate.time)
        if key in encounter_keys:
            return BillingEntry(
                time=candidate.time,
                code=JA_CODE,
                modifier=candidate.modifier,
                doctor=doctor,
                kind=BillingKind.ENCOUNTER_JA,
                priority=PRIORITY_ENCOUNTER,
                weight=candidate.weight,
            )
        if key in attended_keys:
            return BillingEntry(
                time=candidate.time,
                code=JA_CODE,
                doctor=doctor,
                kind=BillingKind.ATTENDED_JA,
                priority=PRIORITY_ATTENDED,
            )
        return BillingEntry(
            time=candidate.time,
            code=JA_CODE,
            doctor=doctor,
            kind=BillingKind.GHOST,
            priority=PRIORITY_GHOST,
        )
