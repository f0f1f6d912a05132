"""Tests for 13.99JA slot selection."""

from datetime import timedelta

from helpers import MONDAY, at, slot, snapshot, window

from ob_billing.billing.ghost_scheduler import GhostSlotScheduler
from ob_billing.config import Settings
from ob_billing.core.repository import ShiftRepository
from ob_billing.models.billing import BillingEntry, BillingKind
from ob_billing.models.patient import CareRange


def _scheduler(admitted, delivered, slots=(), doctors=None, other_ranges=(), delivered_time=None, settings=None):
    snap = snapshot(slots=slots)
    return GhostSlotScheduler(
        admitted=admitted,
        delivered=delivered,
        scoped_slots=[s for s in slots if s.patient_id == 1],
        doctors=doctors,
        shifts=ShiftRepository(snap),
        other_ranges=other_ranges,
        delivered_time=delivered_time,
        settings=settings or Settings(_env_file=None),
    )


class TestForWindow:
    def test_ghost_only_fills_earliest_slots(self, doctors):
        scheduler = _scheduler(at(MONDAY, 8), at(MONDAY, 14), doctors=doctors)
        entries = scheduler.for_window(window(at(MONDAY, 8), at(MONDAY, 20)))

        assert len(entries) == 12
        assert entries[0].time == at(MONDAY, 8)
        assert entries[-1].time == at(MONDAY, 10, 45)
        assert all(e.kind == BillingKind.GHOST and e.modifier == "" for e in entries)

    def test_encounter_starts_carry_modifier(self, doctors):
        slots = [slot(at(MONDAY, 18)), slot(at(MONDAY, 18, 15)), slot(at(MONDAY, 22))]
        scheduler = _scheduler(at(MONDAY, 17), at(MONDAY, 23), slots=slots, doctors=doctors)
        entries = {e.time: e for e in scheduler.for_window(window(at(MONDAY, 17), at(MONDAY, 23, 59)))}

        assert len(entries) == 12
        assert entries[at(MONDAY, 18)].kind == BillingKind.ENCOUNTER_JA
        assert entries[at(MONDAY, 18)].modifier == "EV"
        assert entries[at(MONDAY, 22)].modifier == "NTPM"
        assert entries[at(MONDAY, 22)].weight == 3
        assert entries[at(MONDAY, 18, 15)].kind == BillingKind.ATTENDED_JA
        assert entries[at(MONDAY, 18, 15)].modifier == ""
        # best-weight ghost is picked ahead of earlier evening slots
        assert entries[at(MONDAY, 22, 15)].kind == BillingKind.GHOST
        assert entries[at(MONDAY, 22, 15)].modifier == ""

    def test_delivery_buffer(self, doctors):
        settings = Settings(_env_file=None, ja_slot_cap=100)
        delivered = at(MONDAY, 14)
        scheduler = _scheduler(at(MONDAY, 8), delivered, doctors=doctors, delivered_time=delivered, settings=settings)
        entries = scheduler.for_window(window(at(MONDAY, 8), at(MONDAY, 20)))

        assert entries[-1].time == at(MONDAY, 13, 15)
        assert all(not (delivered - timedelta(minutes=30) <= e.time <= delivered) for e in entries)

    def test_contention_prefers_uncontested_slots(self, doctors):
        other = CareRange(patient_id=2, admitted=at(MONDAY, 8), delivered=at(MONDAY, 9))
        scheduler = _scheduler(at(MONDAY, 8), at(MONDAY, 14), doctors=doctors, other_ranges=[other])
        times = {e.time for e in scheduler.for_window(window(at(MONDAY, 8), at(MONDAY, 20)))}

        assert at(MONDAY, 8) not in times
        assert at(MONDAY, 9) not in times
        # inside the other patient's delivery buffer, so uncontested
        assert at(MONDAY, 8, 30) in times
        assert at(MONDAY, 11, 30) in times

    def test_doctor_busy_elsewhere_is_not_ghosted(self, doctors):
        slots = [slot(at(MONDAY, 8), patient_id=7)]
        scheduler = _scheduler(at(MONDAY, 8), at(MONDAY, 14), slots=slots, doctors=doctors)
        times = [e.time for e in scheduler.for_window(window(at(MONDAY, 8), at(MONDAY, 20)))]

        assert at(MONDAY, 8) not in times
        assert times[0] == at(MONDAY, 8, 15)

    def test_window_clipped_to_care_range(self, doctors):
        scheduler = _scheduler(at(MONDAY, 8), at(MONDAY, 14), doctors=doctors)
        entries = scheduler.for_window(window(at(MONDAY, 12), at(MONDAY, 20)))

        # 12:00 to 13:15, the rest falls in the delivery buffer
        assert [e.time for e in entries] == [at(MONDAY, 12, m) for m in (0, 15, 30, 45)] + [
            at(MONDAY, 13, 0),
            at(MONDAY, 13, 15),
        ]

    def test_unknown_doctor(self, doctors):
        scheduler = _scheduler(at(MONDAY, 8), at(MONDAY, 14), doctors=doctors)
        assert scheduler.for_window(window(at(MONDAY, 8), at(MONDAY, 20), doctor_id=99)) == []

    def test_window_outside_range(self, doctors):
        scheduler = _scheduler(at(MONDAY, 8), at(MONDAY, 14), doctors=doctors)
        assert scheduler.for_window(window(at(MONDAY, 15), at(MONDAY, 20))) == []


class TestSchedule:
    def test_overlapping_windows_bill_each_slot_once(self, doctors):
        scheduler = _scheduler(at(MONDAY, 8), at(MONDAY, 14), doctors=doctors)
        entries = scheduler.schedule(
            [window(at(MONDAY, 8), at(MONDAY, 20)), window(at(MONDAY, 8), at(MONDAY, 12))]
        )
        assert len(entries) == 12
        assert len({(e.doctor_id, e.time) for e in entries}) == 12

    def test_two_doctors_share_the_cap(self, doctors):
        scheduler = _scheduler(at(MONDAY, 8), at(MONDAY, 14), doctors=doctors)
        entries = scheduler.schedule(
            [window(at(MONDAY, 8), at(MONDAY, 20)), window(at(MONDAY, 8), at(MONDAY, 20), doctor_id=2)]
        )
        assert len(entries) == 12


class TestCap:
    def test_encounters_outrank_ghosts(self, doctors):
        scheduler = _scheduler(at(MONDAY, 8), at(MONDAY, 14), doctors=doctors)
        ghosts = [
            BillingEntry(time=at(MONDAY, 8) + timedelta(minutes=15 * i), code="13.99JA", kind=BillingKind.GHOST, doctor=doctors[1])
            for i in range(13)
        ]
        encounter = BillingEntry(
            time=at(MONDAY, 19),
            code="13.99JA",
            modifier="EV",
            kind=BillingKind.ENCOUNTER_JA,
            priority=2,
            weight=2,
            doctor=doctors[1],
        )
        kept = scheduler.cap(ghosts + [encounter])

        assert len(kept) == 12
        assert encounter in kept
        assert ghosts[-1] not in kept
        assert ghosts[-2] not in kept


class TestSlotGrid:
    def test_grid_is_fixed_at_fifteen_minutes(self, doctors, monkeypatch):
        monkeypatch.setenv("SLOT_MINUTES", "30")
        slots = [slot(at(MONDAY, 8)), slot(at(MONDAY, 8, 30))]
        scheduler = _scheduler(
            at(MONDAY, 8), at(MONDAY, 14), slots=slots, doctors=doctors, settings=Settings(_env_file=None)
        )
        entries = {e.time: e for e in scheduler.for_window(window(at(MONDAY, 8), at(MONDAY, 20)))}

        # 08:15 sits between them, so each attended slot starts an encounter
        assert entries[at(MONDAY, 8)].kind == BillingKind.ENCOUNTER_JA
        assert entries[at(MONDAY, 8, 30)].kind == BillingKind.ENCOUNTER_JA
        assert entries[at(MONDAY, 8, 15)].kind == BillingKind.GHOST
