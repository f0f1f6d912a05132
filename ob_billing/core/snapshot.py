"""Immutable view of the rows the billing engine reads."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from ob_billing.models.patient import Patient, PatientStatusEvent
from ob_billing.models.shift import Doctor, ShiftSlot, ShiftWindow

logger = logging.getLogger(__name__)


class CareSnapshot(BaseModel):
    """All doctors, patients, slots, windows and status events at one instant.

    The engine never writes back to a snapshot. Callers that lock slots or
    confirm billings afterwards must do so in their own transaction.
    """

    model_config = ConfigDict(frozen=True)

    doctors: list[Doctor] = Field(default_factory=list)
    patients: list[Patient] = Field(default_factory=list)
    shift_slots: list[ShiftSlot] = Field(default_factory=list)
    shift_windows: list[ShiftWindow] = Field(default_factory=list)
    status_events: list[PatientStatusEvent] = Field(default_factory=list)

    @classmethod
    def from_json_file(cls, path: Path) -> "CareSnapshot":
        """Load a snapshot from a JSON document keyed by table name."""
        data = json.loads(Path(path).read_text())
        snapshot = cls.model_validate(data)
        logger.debug(
            f"Loaded snapshot from {path}: {len(snapshot.patients)} patients, "
            f"{len(snapshot.shift_slots)} slots, {len(snapshot.shift_windows)} windows"
        )
        return snapshot
