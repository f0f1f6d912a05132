"""Patient and status-event models."""

from datetime import datetime
from enum import Enum
from typing import Annotated, NamedTuple, Optional

from pydantic import AfterValidator, BaseModel, BeforeValidator, field_validator


class PatientType(str, Enum):
    """Mother and newborn records share one table."""

    MOTHER = "mother"
    BABY = "baby"


class EventStatus(str, Enum):
    """Care status labels recorded on the patient timeline."""

    TRIAGE = "Triage"
    ADMITTED = "Admitted"
    DELIVERED = "Delivered"
    DISCHARGED = "Discharged"
    INDUCTION = "Induction"
    CONTINUOUS_MONITORING = "Continuous Monitoring"


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _require_naive(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        raise ValueError("timestamps must be naive facility-local times")
    return value


# Storage keeps timestamps as text; an empty string means "not recorded".
OptionalTimestamp = Annotated[
    Optional[datetime],
    BeforeValidator(_blank_to_none),
    AfterValidator(_require_naive),
]
Timestamp = Annotated[datetime, AfterValidator(_require_naive)]


class CareRange(NamedTuple):
    """A patient's admitted-to-delivered interval."""

    patient_id: int
    admitted: datetime
    delivered: datetime


class Patient(BaseModel):
    """A patient care episode as stored by the tracking application."""

    id: int
    initials: Optional[str] = None
    identifier: Optional[str] = None
    patient_type: PatientType = PatientType.MOTHER
    parent_patient_id: Optional[int] = None

    start_datetime: OptionalTimestamp = None
    care_admitted_at: OptionalTimestamp = None
    care_delivered_at: OptionalTimestamp = None
    discharge_datetime: OptionalTimestamp = None
    care_status: str = "Triage"
    status: str = "active"

    # Legacy single "second triage" columns, superseded by status events
    second_triage_at: OptionalTimestamp = None
    second_triage_after: Optional[str] = None

    baby_resuscitation: bool = False

    @field_validator("patient_type", mode="before")
    @classmethod
    def _default_patient_type(cls, value):
        return value or PatientType.MOTHER

    @property
    def is_baby(self) -> bool:
        return self.patient_type == PatientType.BABY

    def care_range(self) -> Optional[CareRange]:
        """Return the admitted/delivered interval, or None if either is unset."""
        if self.care_admitted_at is None or self.care_delivered_at is None:
            return None
        return CareRange(self.id, self.care_admitted_at, self.care_delivered_at)


class PatientStatusEvent(BaseModel):
    """An out-of-band clinical event on a patient's timeline."""

    id: Optional[int] = None
    patient_id: int
    status: EventStatus
    occurred_at: OptionalTimestamp = None
    after_status: Optional[str] = None
    doctor_id: Optional[int] = None
    induction_non_stress_test: bool = False
