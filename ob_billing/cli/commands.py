"""CLI commands for ob_billing."""

import json
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ob_billing.billing.engine import optimize_patient
from ob_billing.billing.timeslots import format_display
from ob_billing.config import get_settings
from ob_billing.core.snapshot import CareSnapshot
from ob_billing.models.billing import OptimizationResult

app = typer.Typer(
    name="ob-billing",
    help="Billing-code optimization for obstetric care episodes",
    add_completion=False,
)
console = Console()


def load_snapshot(path: Path) -> CareSnapshot:
    """Load a snapshot file or exit with a readable error."""
    if not path.exists():
        console.print(f"[red]Snapshot file not found: {path}[/red]")
        raise typer.Exit(1)
    try:
        return CareSnapshot.from_json_file(path)
    except (json.JSONDecodeError, ValidationError) as e:
        console.print(f"[red]Invalid snapshot {path}: {e}[/red]")
        raise typer.Exit(1)


def _display_result(result: OptimizationResult, title: str) -> None:
    table = Table(title=f"{title} ({len(result.billings)})")
    table.add_column("Time")
    table.add_column("Code")
    table.add_column("Modifier")
    table.add_column("Doctor")
    for entry in result.billings:
        table.add_row(
            format_display(entry.time),
            entry.code,
            entry.modifier,
            entry.doctor.name if entry.doctor else "",
        )
    console.print(table)

    if result.notes:
        console.print(Panel("\n".join(f"- {note}" for note in result.notes), title="Notes"))


def _run(snapshot: CareSnapshot, patient_id: int, output_json: bool, title: str) -> None:
    result = optimize_patient(snapshot, patient_id, get_settings())

    if result.error:
        console.print(f"[red]{result.error}[/red]")
        raise typer.Exit(1)

    if output_json:
        payload = {
            "patient_id": result.patient_id,
            "billings": result.lines(),
            "notes": result.notes,
        }
        console.print_json(json.dumps(payload, default=str))
    else:
        _display_result(result, title)


@app.command()
def optimize(
    snapshot_file: Path = typer.Argument(..., help="JSON snapshot of doctors, patients, slots, windows and events"),
    patient_id: int = typer.Option(..., "--patient", "-p", help="Patient id to bill"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Recommend billing codes for a delivered patient."""
    _run(load_snapshot(snapshot_file), patient_id, output_json, "Recommended Billings")


@app.command()
def newborn(
    snapshot_file: Path = typer.Argument(..., help="JSON snapshot of doctors, patients, slots, windows and events"),
    patient_id: int = typer.Option(..., "--patient", "-p", help="Baby patient id"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Recommend billing codes for a newborn."""
    snapshot = load_snapshot(snapshot_file)
    baby = next((p for p in snapshot.patients if p.id == patient_id), None)
    if baby is None or not baby.is_baby:
        console.print(f"[red]Patient {patient_id} is not a newborn record[/red]")
        raise typer.Exit(1)
    _run(snapshot, patient_id, output_json, "Newborn Billings")


@app.command()
def version():
    """Show version information."""
    from ob_billing import __version__

    console.print(f"ob-billing v{__version__}")
