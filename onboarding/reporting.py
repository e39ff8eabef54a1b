"""
Altegio Onboarding — Status / Resume Reporter

Renders state and batch outcomes as the plain-text blocks returned to
the operator. Read-only: nothing here touches the store.
"""

from __future__ import annotations

from typing import Any

from onboarding.batch import BatchResult
from onboarding.errors import FieldError, ItemFailure
from onboarding.phases import WORKFLOW_STEPS, next_step
from onboarding.types import OnboardingState, Phase

PREVIEW_ROWS = 5

# {phase: (plural noun, verb)} for batch summaries
ENTITY_WORDING: dict[Phase, tuple[str, str]] = {
    Phase.CATEGORIES: ("categories", "created"),
    Phase.STAFF: ("staff members", "created"),
    Phase.SERVICES: ("services", "created"),
    Phase.CLIENTS: ("clients", "imported"),
    Phase.TEST_BOOKINGS: ("test bookings", "created"),
}


def _next_step_line(state: OnboardingState) -> str:
    step = next_step(state)
    if step is None:
        if state.phase == Phase.COMPLETE:
            return "Onboarding is complete."
        return "All steps have checkpoints. Finish with onboarding_create_test_bookings if not done."
    _, tool, description = step
    return f"Next step: {description}: {tool}"


def _failure_lines(failures: list[ItemFailure]) -> list[str]:
    return [f"  - {f.label}: {f.message}" for f in failures]


# ─── Session ────────────────────────────────────────────────────────

def render_start(state: OnboardingState) -> str:
    steps = "\n".join(
        f"{i}. {description}: {tool}"
        for i, (_, tool, description) in enumerate(WORKFLOW_STEPS, start=1)
    )
    return (
        f"Onboarding session started for company {state.company_id}.\n\n"
        f"Current phase: {state.phase.value}\n"
        f"Started at: {state.started_at}\n\n"
        f"Next steps:\n{steps}"
    )


def render_resume(state: OnboardingState) -> str:
    completed = "\n".join(
        f"  - {phase}: {len(cp.entity_ids)} entities created"
        for phase, cp in state.checkpoints.items()
        if cp.completed
    )
    return (
        f"Onboarding session for company {state.company_id}\n\n"
        f"Current phase: {state.phase.value}\n"
        f"Started: {state.started_at}\n"
        f"Last updated: {state.updated_at}\n\n"
        f"Completed:\n{completed or '  (none yet)'}\n\n"
        f"{_next_step_line(state)}"
    )


def render_status(state: OnboardingState) -> str:
    return (
        f"Onboarding Status - Company {state.company_id}\n\n"
        f"Phase: {state.phase.value}\n"
        f"Total entities created: {state.total_entities}\n"
        f"Phases completed: {len(state.checkpoints)}"
    )


def render_phase_updated(state: OnboardingState, previous: Phase) -> str:
    return (
        f"Phase for company {state.company_id} changed: "
        f"{previous.value} -> {state.phase.value}"
    )


# ─── Batches ────────────────────────────────────────────────────────

def render_batch(phase: Phase, result: BatchResult, state: OnboardingState) -> str:
    noun, verb = ENTITY_WORDING[phase]
    lines = [f"{len(result.succeeded)} {noun} {verb}"]
    if result.failed:
        lines.append(f"{len(result.failed)} failed:")
        lines.extend(_failure_lines(result.failed))
    lines.append("")
    lines.append(f"Checkpoint saved: {phase.value} ({len(result.succeeded)} entities)")
    if result.succeeded:
        lines.append(f"Entity IDs: {', '.join(str(i) for i in result.succeeded)}")
    lines.append(f"Current phase: {state.phase.value}")
    lines.append("")
    lines.append(_next_step_line(state))
    return "\n".join(lines)


def render_bookings(result: BatchResult, requested: int, state: OnboardingState) -> str:
    counts = "\n".join(
        f"  {label}: {len(state.checkpoint_ids(phase))}"
        for label, phase in (
            ("Categories", Phase.CATEGORIES),
            ("Staff", Phase.STAFF),
            ("Services", Phase.SERVICES),
            ("Clients", Phase.CLIENTS),
            ("Test bookings", Phase.TEST_BOOKINGS),
        )
    )
    lines = [f"Test bookings created: {len(result.succeeded)}"]
    if len(result.succeeded) < requested:
        lines.append(f"Requested: {requested} (failed bookings were skipped, see logs)")
    lines += [
        "",
        "Onboarding complete!",
        "",
        f"Summary for company {state.company_id}:",
        counts,
    ]
    return "\n".join(lines)


# ─── Preview ────────────────────────────────────────────────────────

def _format_row(row: dict[str, Any]) -> str:
    return ", ".join(f"{k}={v}" for k, v in row.items())


def render_preview(data_type: str, rows: list[dict[str, Any]], errors: list[FieldError]) -> str:
    if not rows:
        return (
            "No data parsed. Provide CSV text with a header row "
            "or a JSON array of objects."
        )

    fields: list[str] = []
    for row in rows:
        for key in row:
            if key not in fields:
                fields.append(key)

    shown = rows[:PREVIEW_ROWS]
    lines = [
        f"Preview of {data_type} data",
        "",
        f"Total rows: {len(rows)}",
        f"Fields: {len(fields)} ({', '.join(fields)})",
        "",
        f"First {len(shown)} rows:",
    ]
    lines += [f"  {i}. {_format_row(r)}" for i, r in enumerate(shown, start=1)]
    lines.append("")
    if errors:
        lines.append(f"Validation: {len(errors)} problem(s), the batch would be rejected:")
        lines += [f"  - {e}" for e in errors]
    else:
        lines.append("Validation: all rows valid.")
    return "\n".join(lines)


# ─── Rollback ───────────────────────────────────────────────────────

def render_rollback(
    phase: Phase,
    recorded: int,
    result: BatchResult | None,
    remaining: list[int],
) -> str:
    """result is None for phases the API cannot delete."""
    if result is None:
        noun = ENTITY_WORDING.get(phase, (phase.value, ""))[0]
        return (
            f"Rolled back {phase.value}: checkpoint for {recorded} entities removed.\n"
            f"Note: {noun.capitalize()} cannot be deleted via API. "
            f"Remove them manually in the Altegio dashboard if needed."
        )

    lines = [f"Rolled back {phase.value}: {len(result.succeeded)} of {recorded} entities deleted."]
    if result.failed:
        lines.append(f"{len(result.failed)} failed:")
        lines.extend(_failure_lines(result.failed))
    if remaining:
        lines.append(
            f"Checkpoint kept with {len(remaining)} entities that could not be deleted: "
            f"{', '.join(str(i) for i in remaining)}"
        )
    else:
        lines.append("Checkpoint removed.")
    return "\n".join(lines)
