"""Induction and continuous-monitoring billing.

Inductions are capped per patient: at most ``induction_total_limit`` in
total and ``induction_daily_limit`` within any rolling 24 hours, counted
against inductions already billed.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterable, NamedTuple, Optional

from ob_billing.billing.modifiers import after_hours_modifier
from ob_billing.config import Settings, get_settings
from ob_billing.models.billing import BillingEntry, BillingKind
from ob_billing.models.patient import EventStatus, PatientStatusEvent
from ob_billing.models.shift import Doctor

logger = logging.getLogger(__name__)

INDUCTION_WINDOW = timedelta(hours=24)


class InductionDecision(NamedTuple):
    event: PatientStatusEvent
    billed: bool
    reason: str  # "" | "total" | "daily"


def plan_inductions(
    events: Iterable[PatientStatusEvent],
    settings: Optional[Settings] = None,
) -> list[InductionDecision]:
    """Decide, in time order, which induction events can be billed."""
    settings = settings or get_settings()
    billed_times: list[datetime] = []
    decisions: list[InductionDecision] = []

    for event in events:
        if event.status != EventStatus.INDUCTION or event.occurred_at is None:
            continue
        moment = event.occurred_at
        if len(billed_times) >= settings.induction_total_limit:
            decisions.append(InductionDecision(event, False, "total"))
            continue
        recent = sum(1 for t in billed_times if t <= moment and moment - t < INDUCTION_WINDOW)
        if recent >= settings.induction_daily_limit:
            decisions.append(InductionDecision(event, False, "daily"))
            continue
        billed_times.append(moment)
        decisions.append(InductionDecision(event, True, ""))

    return decisions


def build_status_event_billings(
    events: Iterable[PatientStatusEvent],
    allow_continuous_monitoring: bool,
    doctors: dict[int, Doctor],
    settings: Optional[Settings] = None,
) -> list[BillingEntry]:
    """Bill induction (85.5A) and continuous monitoring (87.54B) events.

    *events* must already be in chronological order.
    """
    events = [
        e for e in events
        if e.occurred_at is not None
        and e.status in (EventStatus.INDUCTION, EventStatus.CONTINUOUS_MONITORING)
    ]
    if not events:
        return []

    billed_inductions = {
        id(decision.event)
        for decision in plan_inductions(events, settings)
        if decision.billed
    }

    billings: list[BillingEntry] = []
    for event in events:
        moment = event.occurred_at
        doctor = doctors.get(event.doctor_id) if event.doctor_id else None
        if event.status == EventStatus.INDUCTION:
            if id(event) not in billed_inductions:
                logger.debug(f"Induction at {moment} skipped by cap")
                continue
            billings.append(
                BillingEntry(
                    time=moment,
                    code="85.5A",
                    modifier=after_hours_modifier(moment),
                    doctor=doctor,
                    kind=BillingKind.STATUS,
                )
            )
            if event.induction_non_stress_test:
                billings.append(
                    BillingEntry(time=moment, code="87.54A", doctor=doctor, kind=BillingKind.STATUS)
                )
        elif allow_continuous_monitoring:
            billings.append(
                BillingEntry(
                    time=moment,
                    code="87.54B",
                    modifier=after_hours_modifier(moment),
                    doctor=doctor,
                    kind=BillingKind.STATUS,
                )
            )

    return billings
