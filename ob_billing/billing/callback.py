"""Callback billing.

A doctor is "called back" for a patient when the first slot they record
in a shift window belongs to that patient. Triage callbacks bill one code;
inpatient callbacks bill 03.03DF plus an hour-bucketed inpatient code.
"""
from __future__ import annotations

import logging
from typing import NamedTuple, Optional, Sequence

from ob_billing.billing.modifiers import (
    callback_code_for_inpatient,
    callback_code_for_triage,
    callback_value,
)
from ob_billing.config import Settings, get_settings
from ob_billing.core.repository import ShiftRepository
from ob_billing.models.billing import BillingEntry, BillingKind, CallbackInfo
from ob_billing.models.patient import Patient
from ob_billing.models.shift import Doctor, ShiftWindow

logger = logging.getLogger(__name__)


def build_callback_infos(
    patient: Patient,
    windows: Sequence[ShiftWindow],
    shifts: ShiftRepository,
    doctors: dict[int, Doctor],
) -> list[CallbackInfo]:
    """One :class:`CallbackInfo` per window whose first action is for *patient*."""
    infos: list[CallbackInfo] = []
    for window in windows:
        first = shifts.first_action_slot(window.doctor_id, window.start_datetime, window.end_datetime)
        if first is None or first.patient_id != patient.id:
            continue

        moment = first.start_time
        doctor = doctors.get(first.doctor_id)

        if first.is_triage:
            code = callback_code_for_triage(moment)
            infos.append(
                CallbackInfo(
                    billings=[BillingEntry(time=moment, code=code, doctor=doctor, kind=BillingKind.CALLBACK)],
                    slot_time=moment,
                    doctor_id=first.doctor_id,
                    total=callback_value(code),
                )
            )
        elif patient.care_admitted_at is not None and moment >= patient.care_admitted_at:
            code = callback_code_for_inpatient(moment)
            infos.append(
                CallbackInfo(
                    billings=[
                        BillingEntry(time=moment, code="03.03DF", doctor=doctor, kind=BillingKind.CALLBACK),
                        BillingEntry(time=moment, code=code, doctor=doctor, kind=BillingKind.CALLBACK),
                    ],
                    slot_time=moment,
                    doctor_id=first.doctor_id,
                    total=callback_value(code),
                )
            )
    return infos


class CallbackArbitration(NamedTuple):
    billings: list[BillingEntry]
    callbacks: list[BillingEntry]
    skipped: list[CallbackInfo]


def ghost_lines_before(billings: Sequence[BillingEntry], info: CallbackInfo) -> list[BillingEntry]:
    """Unmodified 13.99JA lines earlier than the callback slot."""
    if info.slot_time is None:
        return []
    return [b for b in billings if b.is_unmodified_ja and b.time < info.slot_time]


def arbitrate_callbacks(
    billings: Sequence[BillingEntry],
    infos: Sequence[CallbackInfo],
    settings: Optional[Settings] = None,
) -> CallbackArbitration:
    """Weigh each callback against the ghost 13.99JA lines it would replace.

    Callbacks are taken in time order. When the unmodified 13.99JA lines
    before a callback are worth more than the callback, the callback is
    skipped. Otherwise the callback is billed and those lines are dropped.
    """
    settings = settings or get_settings()
    kept = list(billings)
    callbacks: list[BillingEntry] = []
    skipped: list[CallbackInfo] = []

    ordered = sorted(
        (info for info in infos if info.slot_time is not None and info.billings),
        key=lambda info: info.slot_time,
    )
    for info in ordered:
        ghosts = ghost_lines_before(kept, info)
        ghost_total = len(ghosts) * settings.ja_value
        if ghost_total > info.total:
            logger.debug(
                f"Callback at {info.slot_time} skipped: ghost 13.99JA worth {ghost_total} > {info.total}"
            )
            skipped.append(info)
            continue
        callbacks.extend(info.billings)
        dropped = {id(b) for b in ghosts}
        kept = [b for b in kept if id(b) not in dropped]

    return CallbackArbitration(kept, callbacks, skipped)
