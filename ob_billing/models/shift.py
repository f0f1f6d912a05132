"""Doctor, shift slot and shift window models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from ob_billing.models.patient import OptionalTimestamp, Timestamp


class SlotAction(str, Enum):
    """Actions a doctor can record against a 15-minute shift slot."""

    ATTENDED = "attended"
    DELIVERY = "delivery"
    TRIAGE_VISIT = "triage_visit"
    TRIAGE_REASSESSMENT = "triage_reassessment"
    ROUNDS = "rounds"
    TONGUE_TIE_CLIP = "tongue_tie_clip"


TRIAGE_ACTIONS = frozenset({SlotAction.TRIAGE_VISIT.value, SlotAction.TRIAGE_REASSESSMENT.value})


class Doctor(BaseModel):
    """A billing doctor."""

    id: int
    name: str
    is_on_shift: bool = False


class ShiftSlot(BaseModel):
    """One doctor-timestamp cell of the shift grid."""

    id: Optional[int] = None
    doctor_id: int
    patient_id: Optional[int] = None
    start_time: Timestamp
    action: Optional[str] = SlotAction.ATTENDED.value

    # Delivery
    delivery_by: Optional[str] = None
    delivery_code: Optional[str] = None
    delivery_time: OptionalTimestamp = None
    delivery_bmipro: bool = False
    delivery_postpartum_hemorrhage: bool = False
    delivery_vacuum: bool = False
    delivery_vaginal_laceration: bool = False
    delivery_shoulder_dystocia: bool = False
    delivery_manual_placenta: bool = False
    delivery_resuscitation: bool = False

    # Triage
    triage_non_stress_test: bool = False
    triage_speculum_exam: bool = False

    # Rounds
    rounds_care_type: Optional[str] = None
    rounds_supportive_care: bool = False
    tongue_tie_supportive_care: bool = False

    locked: bool = False

    @property
    def action_key(self) -> str:
        """Normalized action used for every rule comparison."""
        return (self.action or "").strip().lower()

    @property
    def has_action(self) -> bool:
        return bool(self.action_key)

    @property
    def is_triage(self) -> bool:
        return self.action_key in TRIAGE_ACTIONS


class ShiftWindow(BaseModel):
    """A doctor's on-duty interval ``[start_datetime, end_datetime)``."""

    id: Optional[int] = None
    doctor_id: int
    start_datetime: Timestamp
    end_datetime: Timestamp
    is_active: bool = True

    def contains(self, moment: datetime) -> bool:
        return self.start_datetime <= moment < self.end_datetime

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return self.start_datetime <= end and self.end_datetime >= start
