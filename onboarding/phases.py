"""
Altegio Onboarding — Phase Order and Handler Successors

The engine keeps no transition table of its own. Each batch handler
names the phase it advances to on completion; this module is where
those successors are written down. The phase therefore means "last
completed step", not proof that every earlier step ran.

Note the successors do not follow PHASE_ORDER: categories advance to
services and staff advances to categories, and schedules is never a
target. Existing state files depend on this wiring.
"""

from __future__ import annotations

from onboarding.types import OnboardingState, Phase

PHASE_ORDER: tuple[Phase, ...] = (
    Phase.INIT,
    Phase.STAFF,
    Phase.CATEGORIES,
    Phase.SERVICES,
    Phase.SCHEDULES,
    Phase.CLIENTS,
    Phase.TEST_BOOKINGS,
    Phase.COMPLETE,
)

# {handler phase: phase set after its checkpoint is saved}
HANDLER_SUCCESSORS: dict[Phase, Phase] = {
    Phase.CATEGORIES: Phase.SERVICES,
    Phase.STAFF: Phase.CATEGORIES,
    Phase.SERVICES: Phase.CLIENTS,
    Phase.CLIENTS: Phase.TEST_BOOKINGS,
    Phase.TEST_BOOKINGS: Phase.COMPLETE,
}

# Phases that produce checkpoints
BATCH_PHASES: tuple[Phase, ...] = tuple(HANDLER_SUCCESSORS)

# Documented operator workflow: (phase, tool, description)
WORKFLOW_STEPS: tuple[tuple[Phase, str, str], ...] = (
    (Phase.CATEGORIES, "onboarding_add_categories", "Add service categories"),
    (Phase.STAFF, "onboarding_add_staff_batch", "Add staff"),
    (Phase.SERVICES, "onboarding_add_services_batch", "Add services"),
    (Phase.CLIENTS, "onboarding_import_clients", "Import clients"),
    (Phase.TEST_BOOKINGS, "onboarding_create_test_bookings", "Create test bookings"),
)


def parse_phase(value: Phase | str) -> Phase:
    """Coerce a phase name, raising ValueError with the valid names."""
    if isinstance(value, Phase):
        return value
    try:
        return Phase(value)
    except ValueError:
        valid = ", ".join(p.value for p in PHASE_ORDER)
        raise ValueError(f"Unknown phase '{value}'. Valid phases: {valid}") from None


def successor(phase: Phase) -> Phase:
    """Phase a handler advances to. KeyError for phases with no handler."""
    return HANDLER_SUCCESSORS[phase]


def next_step(state: OnboardingState) -> tuple[Phase, str, str] | None:
    """
    First documented step that has no checkpoint yet.

    Derived from checkpoints rather than from state.phase, because the
    handler successors do not follow the documented order. None once
    the session is complete or every step has a checkpoint.
    """
    if state.phase == Phase.COMPLETE:
        return None
    for step in WORKFLOW_STEPS:
        if step[0].value not in state.checkpoints:
            return step
    return None
