"""Billing recommendation models produced by the optimization engine."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from ob_billing.models.shift import Doctor


class BillingKind(str, Enum):
    """Which rule produced a billing entry."""

    GHOST = "ghost"
    ATTENDED_JA = "attended_ja"
    ENCOUNTER_JA = "encounter_ja"
    ATTENDED_CALL = "attended_call"
    DELIVERY = "delivery"
    DELIVERY_EXTRA = "delivery_extra"
    TRIAGE = "triage"
    TRIAGE_EXTRA = "triage_extra"
    STATUS = "status"
    CALLBACK = "callback"
    AFTER_HOURS_PREMIUM = "after_hours_premium"
    SUPPORTIVE_CARE = "supportive_care"
    NEWBORN = "newborn"


JA_KINDS = frozenset({BillingKind.GHOST, BillingKind.ATTENDED_JA, BillingKind.ENCOUNTER_JA})


class BillingEntry(BaseModel):
    """A single billing recommendation.

    ``priority`` and ``weight`` only carry meaning for 13.99JA entries,
    where they drive the per-patient cap. They are dropped by
    :meth:`as_line`.
    """

    time: datetime
    code: str
    modifier: str = ""
    doctor: Optional[Doctor] = None
    kind: BillingKind
    priority: int = 0
    weight: int = 0

    @property
    def is_ja(self) -> bool:
        return self.kind in JA_KINDS

    @property
    def is_unmodified_ja(self) -> bool:
        return self.is_ja and not self.modifier

    @property
    def doctor_id(self) -> Optional[int]:
        return self.doctor.id if self.doctor else None

    def as_line(self) -> dict[str, Any]:
        """Serialize to the public ``{time, code, modifier, doctor}`` shape."""
        return {
            "time": self.time,
            "code": self.code,
            "modifier": self.modifier,
            "doctor": self.doctor.model_dump() if self.doctor else None,
        }


class CallbackInfo(BaseModel):
    """Callback lines for one shift window plus their fixed fee value."""

    billings: list[BillingEntry] = Field(default_factory=list)
    slot_time: Optional[datetime] = None
    doctor_id: Optional[int] = None
    total: int = 0


class OptimizationResult(BaseModel):
    """Engine output for one patient, with explanatory notes."""

    patient_id: int
    billings: list[BillingEntry] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def lines(self) -> list[dict[str, Any]]:
        return [entry.as_line() for entry in self.billings]
