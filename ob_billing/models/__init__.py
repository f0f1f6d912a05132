"""Data models for ob_billing."""

from ob_billing.models.patient import (
    CareRange,
    EventStatus,
    Patient,
    PatientStatusEvent,
    PatientType,
)
from ob_billing.models.shift import Doctor, ShiftSlot, ShiftWindow, SlotAction
from ob_billing.models.billing import (
    BillingEntry,
    BillingKind,
    CallbackInfo,
    OptimizationResult,
)

__all__ = [
    "BillingEntry",
    "BillingKind",
    "CallbackInfo",
    "CareRange",
    "Doctor",
    "EventStatus",
    "OptimizationResult",
    "Patient",
    "PatientStatusEvent",
    "PatientType",
    "ShiftSlot",
    "ShiftWindow",
    "SlotAction",
]
