"""Newborn (baby patient) billing."""

from __future__ import annotations

from typing import Optional

from ob_billing.billing.attended_calls import ATTENDED_CALL_CODE, COINPT
from ob_billing.billing.modifiers import after_hours_modifier
from ob_billing.billing.timeslots import is_weekday_daytime, slot_delta
from ob_billing.core.repository import ShiftRepository
from ob_billing.models.billing import BillingEntry, BillingKind
from ob_billing.models.patient import Patient
from ob_billing.models.shift import Doctor, ShiftSlot, SlotAction

NEWBORN_CARE = "daily_newborn_care"
INPATIENT_CARE = "daily_inpatient_care"


def _group_rounds(slots: list[ShiftSlot]) -> list[list[ShiftSlot]]:
    """Runs of same-doctor, same-care-type rounds one slot apart."""
    groups: list[list[ShiftSlot]] = []
    step = slot_delta()
    for slot in slots:
        if groups:
            last = groups[-1][-1]
            if (
                (slot.doctor_id or None) == (last.doctor_id or None)
                and (slot.rounds_care_type or "") == (last.rounds_care_type or "")
                and slot.start_time - last.start_time == step
            ):
                groups[-1].append(slot)
                continue
        groups.append([slot])
    return groups


def build_newborn_billings(
    baby: Optional[Patient],
    shifts: ShiftRepository,
    doctors: dict[int, Doctor],
) -> list[BillingEntry]:
    if baby is None:
        return []
    billings: list[BillingEntry] = []
    baby_slots = shifts.slots_for_patient(baby.id)

    delivery_doctor: Optional[Doctor] = None
    resuscitation = baby.baby_resuscitation
    if baby.parent_patient_id is not None:
        delivery = shifts.first_delivery_slot(baby.parent_patient_id)
        if delivery is not None:
            delivery_doctor = doctors.get(delivery.doctor_id)
            resuscitation = resuscitation or delivery.delivery_resuscitation

    admitted = baby.care_admitted_at or baby.start_datetime
    if admitted is not None:
        billings.append(
            BillingEntry(
                time=admitted,
                code="13.99F" if resuscitation else "03.05G",
                doctor=delivery_doctor,
                kind=BillingKind.NEWBORN,
            )
        )

    rounds = [
        s for s in baby_slots
        if s.action_key == SlotAction.ROUNDS.value and s.rounds_care_type
    ]
    for group in _group_rounds(rounds):
        first = group[0]
        doctor = doctors.get(first.doctor_id)
        if first.rounds_care_type == NEWBORN_CARE:
            billings.append(BillingEntry(time=first.start_time, code="03.05GA", doctor=doctor, kind=BillingKind.NEWBORN))
        elif first.rounds_care_type == INPATIENT_CARE:
            billings.append(
                BillingEntry(
                    time=first.start_time,
                    code="03.03D",
                    modifier=COINPT if len(group) >= 2 else "",
                    doctor=doctor,
                    kind=BillingKind.NEWBORN,
                )
            )

    for slot in baby_slots:
        if slot.action_key != SlotAction.TONGUE_TIE_CLIP.value:
            continue
        doctor = doctors.get(slot.doctor_id)
        if is_weekday_daytime(slot.start_time):
            billings.append(
                BillingEntry(
                    time=slot.start_time,
                    code=ATTENDED_CALL_CODE,
                    modifier=COINPT,
                    doctor=doctor,
                    kind=BillingKind.NEWBORN,
                )
            )
        else:
            billings.append(
                BillingEntry(
                    time=slot.start_time,
                    code="37.91A",
                    modifier=after_hours_modifier(slot.start_time),
                    doctor=doctor,
                    kind=BillingKind.NEWBORN,
                )
            )

    return sorted(billings, key=lambda b: b.time)
