"""Record builders shared by the test modules."""

from datetime import datetime

from ob_billing.core.snapshot import CareSnapshot
from ob_billing.models.patient import Patient, PatientStatusEvent
from ob_billing.models.shift import Doctor, ShiftSlot, ShiftWindow

# 2024-01-01 is a Monday, 2024-01-06 a Saturday.
MONDAY = datetime(2024, 1, 1)
SATURDAY = datetime(2024, 1, 6)

DR_SMITH = Doctor(id=1, name="Dr. Smith", is_on_shift=True)
DR_JONES = Doctor(id=2, name="Dr. Jones")


def at(day: datetime, hour: int, minute: int = 0) -> datetime:
    return day.replace(hour=hour, minute=minute)


def slot(start: datetime, action: str | None = "attended", doctor_id: int = 1, patient_id: int | None = 1, **fields) -> ShiftSlot:
    return ShiftSlot(doctor_id=doctor_id, patient_id=patient_id, start_time=start, action=action, **fields)


def window(start: datetime, end: datetime, doctor_id: int = 1, **fields) -> ShiftWindow:
    return ShiftWindow(doctor_id=doctor_id, start_datetime=start, end_datetime=end, **fields)


def event(status: str, occurred_at: datetime, patient_id: int = 1, **fields) -> PatientStatusEvent:
    return PatientStatusEvent(patient_id=patient_id, status=status, occurred_at=occurred_at, **fields)


def patient(admitted: datetime | None, delivered: datetime | None, patient_id: int = 1, **fields) -> Patient:
    return Patient(
        id=patient_id,
        initials="AB",
        identifier=f"MRN-{patient_id}",
        care_admitted_at=admitted,
        care_delivered_at=delivered,
        **fields,
    )


def snapshot(patients=(), slots=(), windows=(), events=(), doctors=(DR_SMITH, DR_JONES)) -> CareSnapshot:
    return CareSnapshot(
        doctors=list(doctors),
        patients=list(patients),
        shift_slots=list(slots),
        shift_windows=list(windows),
        status_events=list(events),
    )
