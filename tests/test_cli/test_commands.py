"""Tests for CLI commands."""

import json

import pytest
from typer.testing import CliRunner

from ob_billing.cli.commands import app


runner = CliRunner()


@pytest.fixture
def snapshot_file(tmp_path):
    """Weekday labour for patient 1 plus a newborn (patient 2)."""
    data = {
        "doctors": [{"id": 1, "name": "Dr. Smith", "is_on_shift": True}],
        "patients": [
            {
                "id": 1,
                "initials": "AB",
                "care_admitted_at": "2024-01-01T08:00:00",
                "care_delivered_at": "2024-01-01T14:00:00",
            },
            {
                "id": 2,
                "patient_type": "baby",
                "parent_patient_id": 1,
                "care_admitted_at": "2024-01-01T14:00:00",
            },
            {"id": 3, "care_admitted_at": "2024-01-01T08:00:00"},
        ],
        "shift_slots": [
            {"doctor_id": 1, "patient_id": 1, "start_time": "2024-01-01T08:00:00", "action": "attended"},
            {"doctor_id": 1, "patient_id": 1, "start_time": "2024-01-01T08:15:00", "action": "attended"},
            {"doctor_id": 1, "patient_id": 1, "start_time": "2024-01-01T14:00:00", "action": "delivery"},
        ],
        "shift_windows": [
            {"id": 1, "doctor_id": 1, "start_datetime": "2024-01-01T08:00:00", "end_datetime": "2024-01-01T20:00:00"}
        ],
        "status_events": [],
    }
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(data))
    return path


class TestVersionCommand:
    def test_version_command(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "ob-billing" in result.stdout
        assert "0.1.0" in result.stdout


class TestOptimizeCommand:
    def test_optimize_json(self, snapshot_file):
        result = runner.invoke(app, ["optimize", str(snapshot_file), "--patient", "1", "--json"])

        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        codes = [line["code"] for line in payload["billings"]]
        assert codes.count("13.99JA") == 12
        assert codes[-1] == "87.98A"
        assert payload["billings"][0]["doctor"]["name"] == "Dr. Smith"
        assert set(payload["billings"][0]) == {"time", "code", "modifier", "doctor"}
        assert payload["notes"]

    def test_optimize_table(self, snapshot_file):
        result = runner.invoke(app, ["optimize", str(snapshot_file), "-p", "1"])

        assert result.exit_code == 0
        assert "13.99JA" in result.stdout
        assert "Notes" in result.stdout

    def test_optimize_reports_engine_error(self, snapshot_file):
        result = runner.invoke(app, ["optimize", str(snapshot_file), "-p", "3"])

        assert result.exit_code == 1
        assert "Set both Admitted and Delivered times" in result.stdout

    def test_missing_snapshot(self, tmp_path):
        result = runner.invoke(app, ["optimize", str(tmp_path / "missing.json"), "-p", "1"])

        assert result.exit_code == 1
        assert "not found" in result.stdout

    def test_invalid_snapshot(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        result = runner.invoke(app, ["optimize", str(path), "-p", "1"])

        assert result.exit_code == 1
        assert "Invalid snapshot" in result.stdout

    def test_timezone_aware_snapshot(self, tmp_path):
        path = tmp_path / "aware.json"
        path.write_text(
            json.dumps(
                {
                    "patients": [
                        {
                            "id": 1,
                            "care_admitted_at": "2024-01-01T08:00:00Z",
                            "care_delivered_at": "2024-01-01T14:00:00",
                        }
                    ]
                }
            )
        )
        result = runner.invoke(app, ["optimize", str(path), "-p", "1"])

        assert result.exit_code == 1
        assert "Invalid snapshot" in result.stdout


class TestNewbornCommand:
    def test_newborn_json(self, snapshot_file):
        result = runner.invoke(app, ["newborn", str(snapshot_file), "-p", "2", "--json"])

        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert [line["code"] for line in payload["billings"]] == ["03.05G"]

    def test_rejects_mother(self, snapshot_file):
        result = runner.invoke(app, ["newborn", str(snapshot_file), "-p", "1"])

        assert result.exit_code == 1
        assert "not a newborn record" in result.stdout
