"""Read-only input snapshot and lookups used by the billing engine."""

from ob_billing.core.snapshot import CareSnapshot
from ob_billing.core.repository import (
    DoctorRepository,
    PatientRepository,
    ShiftRepository,
    StatusEventRepository,
)

__all__ = [
    "CareSnapshot",
    "DoctorRepository",
    "PatientRepository",
    "ShiftRepository",
    "StatusEventRepository",
]
