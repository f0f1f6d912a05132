"""Billing rule builders and the optimization engine."""

from ob_billing.billing.engine import build_optimized_billings, optimize_patient, run_billing
from ob_billing.billing.ghost_scheduler import GhostSlotScheduler
from ob_billing.billing.newborn import build_newborn_billings
from ob_billing.billing.notes import build_optimization_notes

__all__ = [
    "GhostSlotScheduler",
    "build_newborn_billings",
    "build_optimization_notes",
    "build_optimized_billings",
    "optimize_patient",
    "run_billing",
]
