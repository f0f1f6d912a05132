"""Plain-language notes explaining an optimization result."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ob_billing.billing.attended_calls import ATTENDED_CALL_CODE, COINPT
from ob_billing.billing.delivery import DELIVERY_CODES, DELIVERY_EXTRAS
from ob_billing.billing.ghost_scheduler import JA_CODE
from ob_billing.billing.premiums import PREMIUM_CODE
from ob_billing.billing.status_events import plan_inductions
from ob_billing.config import Settings, get_settings
from ob_billing.models.billing import BillingEntry, CallbackInfo
from ob_billing.models.patient import EventStatus, PatientStatusEvent
from ob_billing.models.shift import ShiftSlot, ShiftWindow, SlotAction

REASSESSMENT_CODES = ("03.05F", "03.05FA", "03.05FB")


def _unique_modifiers(billings: Sequence[BillingEntry], *codes: str) -> list[str]:
    modifiers: list[str] = []
    for entry in billings:
        if entry.code in codes and entry.modifier and entry.modifier not in modifiers:
            modifiers.append(entry.modifier)
    return modifiers


def _callback_notes(callbacks: Sequence[CallbackInfo], skipped: Sequence[CallbackInfo]) -> list[str]:
    notes: list[str] = []
    skipped_ids = {id(info) for info in skipped}
    billed = [info for info in callbacks if id(info) not in skipped_ids]
    if len(billed) == 1:
        codes = " + ".join(entry.code for entry in billed[0].billings)
        notes.append(f"Callback billed: {codes}.")
    elif billed:
        notes.append(f"Callbacks billed for {len(billed)} doctors (first patient per doctor).")
    if skipped:
        notes.append("One or more callbacks skipped because ghost 13.99JA total exceeded callback value.")
    return notes


def _induction_notes(events: Sequence[PatientStatusEvent], settings: Settings) -> list[str]:
    decisions = plan_inductions(events, settings)
    if not decisions:
        return []
    by_daily = sum(1 for d in decisions if d.reason == "daily")
    by_total = sum(1 for d in decisions if d.reason == "total")
    nst_skipped = sum(1 for d in decisions if not d.billed and d.event.induction_non_stress_test)
    nst_billed = sum(1 for d in decisions if d.billed and d.event.induction_non_stress_test)

    notes: list[str] = []
    if by_daily:
        notes.append(
            f"Induction billed up to {settings.induction_daily_limit} times per 24 hours. "
            f"{by_daily} induction(s) skipped for the 24-hour cap."
        )
    if by_total:
        notes.append(
            f"Induction billed up to {settings.induction_total_limit} total per patient. "
            f"{by_total} induction(s) skipped for the total cap."
        )
    if nst_skipped:
        notes.append(f"{nst_skipped} induction NST(s) not billed because the related induction was capped.")
    if nst_billed:
        notes.append(f"{nst_billed} induction NST(s) billed with induction.")
    return notes


def _billed_note(label: str, code: str, modifiers: list[str], with_what: str) -> str:
    if modifiers:
        return f"{label} billed ({code}) with {with_what} {', '.join(modifiers)}."
    return f"{label} billed ({code})."


def build_optimization_notes(
    billings: Sequence[BillingEntry],
    *,
    admitted: datetime,
    delivered: datetime,
    triage_cutoff: datetime,
    patient_slots: Sequence[ShiftSlot],
    windows: Sequence[ShiftWindow],
    events: Sequence[PatientStatusEvent],
    blocking_inductions: Sequence[PatientStatusEvent],
    callbacks: Sequence[CallbackInfo] = (),
    skipped_callbacks: Sequence[CallbackInfo] = (),
    settings: Optional[Settings] = None,
) -> list[str]:
    """Explain why the main rules fired (or did not) for *billings*."""
    settings = settings or get_settings()
    if not billings:
        return []
    codes = {entry.code for entry in billings}
    has_ja = JA_CODE in codes
    has_ar = ATTENDED_CALL_CODE in codes
    has_cm = "87.54B" in codes
    notes: list[str] = []

    if any(e.status == EventStatus.CONTINUOUS_MONITORING for e in events):
        if has_ja and not has_cm:
            notes.append("Continuous Monitoring not billed because 13.99JA is present.")
        if has_cm and has_ar:
            notes.append("Continuous Monitoring billed because 03.03AR is present.")
        if has_cm and not has_ja:
            notes.append("Continuous Monitoring billed because 13.99JA is not present.")

    visits = [s for s in patient_slots if s.action_key == SlotAction.TRIAGE_VISIT.value]
    if visits:
        if "03.03BZ" not in codes and blocking_inductions:
            notes.append(
                "Triage visit not billed because an induction was performed during triage "
                "by the same doctor on the same day."
            )
        elif "03.03BZ" in codes:
            during_triage = any(
                e.status == EventStatus.INDUCTION and e.occurred_at is not None and e.occurred_at < admitted
                for e in events
            )
            if during_triage and not blocking_inductions:
                notes.append(
                    "Triage visit billed because induction was by a different doctor or occurred after midnight."
                )

    if has_ja:
        notes.append(
            f"13.99JA billed for up to {settings.ja_slot_cap} weighted slots within the active shift window; "
            "unmodified entries start at the first attended time, and none are billed within "
            f"{settings.delivery_buffer_minutes} minutes before delivery."
        )
    elif has_ar:
        notes.append("OB/VBAC deliveries use 03.03AR for attended slots instead of 13.99JA.")
    elif not windows:
        notes.append(
            "No shift window overlaps the admitted-to-delivered range; 13.99JA and callback billing are not generated."
        )

    notes.extend(_callback_notes(callbacks, skipped_callbacks))
    notes.extend(_induction_notes(events, settings))

    if triage_cutoff > delivered:
        notes.append("Triage billing window extended to the latest triage event after delivery.")

    if "03.03BZ" in codes:
        modifiers = _unique_modifiers(billings, "03.03BZ")
        if modifiers:
            notes.append(
                f"Triage visit billed (03.03BZ) with modifier {', '.join(modifiers)} based on total triage visit time."
            )
        else:
            notes.append("Triage visit billed (03.03BZ) with no time-based modifier applied.")

    reassessments = [code for code in REASSESSMENT_CODES if code in codes]
    if reassessments:
        modifiers = _unique_modifiers(billings, *reassessments)
        suffix = f" with modifier {', '.join(modifiers)}" if modifiers else ""
        notes.append(f"Triage reassessment billed ({', '.join(reassessments)}){suffix}.")

    triage_slots = [s for s in patient_slots if s.is_triage]
    nst = sum(1 for s in triage_slots if s.triage_non_stress_test)
    if nst and "87.54A" in codes:
        notes.append(f"{nst} triage non-stress test(s) billed (87.54A).")
    speculum = sum(1 for s in triage_slots if s.triage_speculum_exam)
    if speculum and "13.99BE" in codes:
        notes.append(f"{speculum} triage speculum exam(s) billed (13.99BE).")

    if PREMIUM_CODE in codes:
        notes.append(
            _billed_note("After-hours premium", PREMIUM_CODE, _unique_modifiers(billings, PREMIUM_CODE), "modifiers")
        )
    if "85.5A" in codes:
        modifiers = _unique_modifiers(billings, "85.5A")
        if modifiers:
            notes.append(f"Induction billed (85.5A) with after-hours modifier(s) {', '.join(modifiers)}.")
        else:
            notes.append("Induction billed (85.5A) with no after-hours modifier.")
    if has_cm:
        notes.append(
            _billed_note(
                "Continuous Monitoring", "87.54B", _unique_modifiers(billings, "87.54B"), "after-hours modifier(s)"
            )
        )

    delivery_code = next((code for code in DELIVERY_CODES if code in codes), None)
    if delivery_code:
        notes.append(
            _billed_note("Delivery", delivery_code, _unique_modifiers(billings, delivery_code), "after-hours modifier")
        )
    extras = [f"{label} ({code})" for _flag, code, label in DELIVERY_EXTRAS if code in codes]
    if extras:
        notes.append(f"Delivery extras billed: {', '.join(extras)}.")

    if has_ar and COINPT in _unique_modifiers(billings, ATTENDED_CALL_CODE):
        notes.append(
            "COINPT modifier applied to 03.03AR for two attended slots 14-16 minutes apart "
            "within the active shift window."
        )

    return notes
