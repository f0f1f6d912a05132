"""Delivery and delivery-complication billing."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ob_billing.billing.modifiers import after_hours_modifier, append_modifier
from ob_billing.models.billing import BillingEntry, BillingKind
from ob_billing.models.shift import Doctor, ShiftSlot, SlotAction

DEFAULT_DELIVERY_CODE = "87.98A"
OB_DELIVERY_CODE = "87.98B"
VBAC_DELIVERY_CODE = "87.98C"

BMI_PROGRAM_MODIFIER = "BMIPRO"

# (slot flag, code, label) in billing order
DELIVERY_EXTRAS: tuple[tuple[str, str, str], ...] = (
    ("delivery_postpartum_hemorrhage", "87.99A", "Postpartum hemorrhage"),
    ("delivery_vacuum", "84.21", "Vacuum delivery"),
    ("delivery_vaginal_laceration", "87.89B", "Extensive vaginal laceration"),
    ("delivery_shoulder_dystocia", "85.69B", "Shoulder dystocia"),
    ("delivery_manual_placenta", "87.6", "Manual removal of placenta"),
)

DELIVERY_CODES = (DEFAULT_DELIVERY_CODE, OB_DELIVERY_CODE, VBAC_DELIVERY_CODE)


def normalize_delivery_code(slot: Optional[ShiftSlot]) -> str:
    """Explicit code wins, then OB attribution, then the family-physician default."""
    if slot is None:
        return DEFAULT_DELIVERY_CODE
    if slot.delivery_code:
        return slot.delivery_code
    if (slot.delivery_by or "").strip().lower() == "ob":
        return OB_DELIVERY_CODE
    return DEFAULT_DELIVERY_CODE


def is_ob_or_vbac(code: str) -> bool:
    return code in (OB_DELIVERY_CODE, VBAC_DELIVERY_CODE)


def find_delivery_slot(slots: Sequence[ShiftSlot]) -> Optional[ShiftSlot]:
    """First delivery slot in time order."""
    for slot in sorted(slots, key=lambda s: s.start_time):
        if slot.action_key == SlotAction.DELIVERY.value:
            return slot
    return None


def delivery_moment(slot: Optional[ShiftSlot]) -> Optional[datetime]:
    """Exact delivery time if recorded, else the slot start."""
    if slot is None:
        return None
    return slot.delivery_time or slot.start_time


def delivery_modifier(slot: ShiftSlot, moment: datetime) -> str:
    """After-hours modifier, with BMIPRO appended for the BMI program."""
    bmi = BMI_PROGRAM_MODIFIER if slot.delivery_bmipro else ""
    return append_modifier(after_hours_modifier(moment), bmi)


def build_delivery_billings(
    slot: ShiftSlot,
    moment: datetime,
    doctor: Optional[Doctor],
) -> list[BillingEntry]:
    """The delivery line followed by one line per complication flag.

    Complication lines share the delivery line's time and modifier.
    """
    modifier = delivery_modifier(slot, moment)
    billings = [
        BillingEntry(
            time=moment,
            code=normalize_delivery_code(slot),
            modifier=modifier,
            doctor=doctor,
            kind=BillingKind.DELIVERY,
        )
    ]
    for flag, code, _label in DELIVERY_EXTRAS:
        if getattr(slot, flag):
            billings.append(
                BillingEntry(time=moment, code=code, modifier=modifier, doctor=doctor, kind=BillingKind.DELIVERY_EXTRA)
            )
    return billings
