"""
Altegio Onboarding — Engine

Public facade over the state store, batch executor, and reporter. Every
operation returns one plain-text block for the operator, or raises an
OnboardingError before anything is persisted.

Batch handlers all follow the same sequence:
    auth check → session check → parse → validate → execute → checkpoint → advance

Usage:
    engine = OnboardingEngine(client, StateStore(state_dir), SessionLogger())
    print(engine.start(123))
    print(engine.add_staff_batch(123, "name,specialization\\nAlice,Stylist"))
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Protocol

from onboarding.batch import BatchExecutor, BatchResult
from onboarding.bookings import (
    DEFAULT_BOOKINGS,
    MAX_BOOKINGS,
    MIN_BOOKINGS,
    PlannedBooking,
    plan_bookings,
)
from onboarding.errors import (
    AuthenticationRequired,
    FieldError,
    ItemFailure,
    NoCheckpointFound,
    PrerequisiteMissing,
    ValidationError,
)
from onboarding.logging import SessionLogger
from onboarding.phases import parse_phase, successor
from onboarding.reporting import (
    render_batch,
    render_bookings,
    render_phase_updated,
    render_preview,
    render_resume,
    render_rollback,
    render_start,
    render_status,
)
from onboarding.rows import parse_rows
from onboarding.schemas import SCHEMA_REGISTRY, BatchItem, validate_rows
from onboarding.store import StateStore
from onboarding.types import Checkpoint, OnboardingState, Phase, utc_now_iso

logger = logging.getLogger("altegio_onboarding.engine")


class PlatformClient(Protocol):
    """What the engine needs from the booking platform."""

    def is_authenticated(self) -> bool: ...
    def create_service_category(self, company_id: int, payload: dict[str, Any]) -> dict[str, Any]: ...
    def create_staff(self, company_id: int, payload: dict[str, Any]) -> dict[str, Any]: ...
    def create_service(self, company_id: int, payload: dict[str, Any]) -> dict[str, Any]: ...
    def create_client(self, company_id: int, payload: dict[str, Any]) -> dict[str, Any]: ...
    def create_booking(self, company_id: int, payload: dict[str, Any]) -> dict[str, Any]: ...
    def delete_staff(self, company_id: int, staff_id: int) -> None: ...
    def delete_booking(self, company_id: int, record_id: int) -> None: ...


class OnboardingEngine:
    """
    Orchestrates one onboarding session per company.

    Args:
        client: PlatformClient used for every remote create/delete
        store: StateStore holding the per-company records
        session_logger: structured event logger (a fresh one if omitted)
        clock: returns "today" for test-booking dates (date.today if omitted)
    """

    def __init__(
        self,
        client: PlatformClient,
        store: StateStore,
        session_logger: SessionLogger | None = None,
        clock: Callable[[], date] | None = None,
    ):
        self.client = client
        self.store = store
        self.events = session_logger or SessionLogger()
        self._clock = clock or date.today

    def _require_auth(self):
        if not self.client.is_authenticated():
            raise AuthenticationRequired()

    # ═══════════════════════════════════════════════════════════════
    # Session
    # ═══════════════════════════════════════════════════════════════

    def start(self, company_id: int) -> str:
        """Begin a fresh session. An existing record is replaced."""
        self._require_auth()
        events = self.events.for_company(company_id)
        with self.store.lock(company_id):
            previous = self.store.load(company_id)
            if previous is not None:
                events.on_session_replaced(previous.phase.value, len(previous.checkpoints))
            state = self.store.start(company_id)
        events.on_session_started(state.phase.value)
        return render_start(state)

    def resume(self, company_id: int) -> str:
        self._require_auth()
        return render_resume(self.store.require(company_id))

    def status(self, company_id: int) -> str:
        self._require_auth()
        return render_status(self.store.require(company_id))

    def update_phase(self, company_id: int, phase: Phase | str) -> str:
        """Operator override of the current phase. Checkpoints are untouched."""
        self._require_auth()
        target = self._phase_arg(phase)
        previous = self.store.require(company_id).phase
        state = self.store.update_phase(company_id, target)
        self.events.for_company(company_id).on_phase_updated(previous.value, target.value)
        return render_phase_updated(state, previous)

    # ═══════════════════════════════════════════════════════════════
    # Batch phases
    # ═══════════════════════════════════════════════════════════════

    def add_categories_batch(self, company_id: int, categories: Any) -> str:
        return self._run_batch(
            company_id, Phase.CATEGORIES, categories,
            lambda item: self.client.create_service_category(company_id, item.to_payload()),
        )

    def add_staff_batch(self, company_id: int, staff: Any) -> str:
        return self._run_batch(
            company_id, Phase.STAFF, staff,
            lambda item: self.client.create_staff(company_id, item.to_payload()),
        )

    def add_services_batch(self, company_id: int, services: Any) -> str:
        """Rows without a category_id go to the session's first category."""
        self._require_auth()
        state = self.store.load(company_id)
        category_ids = state.checkpoint_ids(Phase.CATEGORIES) if state else []
        default_category = category_ids[0] if category_ids else None
        return self._run_batch(
            company_id, Phase.SERVICES, services,
            lambda item: self.client.create_service(company_id, item.to_payload(default_category)),
        )

    def import_clients(self, company_id: int, clients: Any) -> str:
        return self._run_batch(
            company_id, Phase.CLIENTS, clients,
            lambda item: self.client.create_client(company_id, item.to_payload()),
        )

    def _run_batch(
        self,
        company_id: int,
        phase: Phase,
        payload: Any,
        create: Callable[[BatchItem], Any],
    ) -> str:
        self._require_auth()
        self.store.require(company_id)

        rows = parse_rows(payload)
        logger.debug("Parsed %d %s rows for company %s", len(rows), phase.value, company_id)
        validation = validate_rows(SCHEMA_REGISTRY[phase.value], rows)
        if not validation.ok:
            raise ValidationError(
                f"Invalid {phase.value} data, nothing was created:",
                validation.errors,
            )

        events = self.events.for_company(company_id)
        result = self._execute(events, phase, validation.items, create, lambda item: item.label())
        state = self._record(events, company_id, phase, result)
        return render_batch(phase, result, state)

    def _execute(
        self,
        events: SessionLogger,
        phase: Phase,
        items: list,
        create: Callable[[Any], Any],
        label: Callable[[Any], str],
    ) -> BatchResult:
        def on_failure(failure: ItemFailure):
            events.on_item_failed(phase.value, failure.label, failure.message)

        events.on_batch_start(phase.value, len(items))
        result = BatchExecutor(create, label=label, on_failure=on_failure).run(items)
        events.on_batch_end(phase.value, len(result.succeeded), len(result.failed), result.elapsed_s)
        return result

    def _record(
        self,
        events: SessionLogger,
        company_id: int,
        phase: Phase,
        result: BatchResult,
    ) -> OnboardingState:
        """Checkpoint the phase, then advance to the handler's successor."""
        metadata = {"attempted": result.attempted, "failed": len(result.failed)}
        self.store.checkpoint(company_id, phase, result.succeeded, metadata)
        events.on_checkpoint_saved(phase.value, len(result.succeeded))

        target = successor(phase)
        state = self.store.update_phase(company_id, target)
        events.on_phase_updated(phase.value, target.value)
        return state

    # ═══════════════════════════════════════════════════════════════
    # Test bookings
    # ═══════════════════════════════════════════════════════════════

    def create_test_bookings(self, company_id: int, count: int = DEFAULT_BOOKINGS) -> str:
        """
        Spread `count` bookings across the session's staff and services.

        Failed bookings are logged and left out of the checkpoint; the
        summary only reports how many were created.
        """
        self._require_auth()
        if not MIN_BOOKINGS <= count <= MAX_BOOKINGS:
            raise ValidationError(
                f"count must be between {MIN_BOOKINGS} and {MAX_BOOKINGS}",
                [FieldError(row=0, field="count", message=f"got {count}")],
            )

        state = self.store.require(company_id)
        staff_ids = state.checkpoint_ids(Phase.STAFF)
        service_ids = state.checkpoint_ids(Phase.SERVICES)
        if not staff_ids or not service_ids:
            raise PrerequisiteMissing(
                "No staff or services found. Add staff and services before "
                "creating test bookings.",
                company_id=company_id,
            )

        plan = plan_bookings(staff_ids, service_ids, count, self._clock())
        events = self.events.for_company(company_id)
        result = self._execute(
            events, Phase.TEST_BOOKINGS, plan,
            lambda booking: self.client.create_booking(company_id, booking.to_payload()),
            PlannedBooking.label,
        )
        state = self._record(events, company_id, Phase.TEST_BOOKINGS, result)
        return render_bookings(result, count, state)

    # ═══════════════════════════════════════════════════════════════
    # Preview & rollback
    # ═══════════════════════════════════════════════════════════════

    def preview_data(self, data_type: str, raw_input: Any) -> str:
        """Parse and validate a payload without creating anything."""
        self._require_auth()
        model = SCHEMA_REGISTRY.get(data_type)
        if model is None:
            valid = ", ".join(SCHEMA_REGISTRY)
            raise ValidationError(f"Unknown data type '{data_type}'. Valid types: {valid}")
        rows = parse_rows(raw_input)
        errors = validate_rows(model, rows).errors if rows else []
        return render_preview(data_type, rows, errors)

    def _deleters(self) -> dict[Phase, Callable[[int, int], None]]:
        return {
            Phase.STAFF: self.client.delete_staff,
            Phase.TEST_BOOKINGS: self.client.delete_booking,
        }

    def rollback_phase(self, company_id: int, phase: Phase | str) -> str:
        """
        Undo a phase's checkpoint. Staff and test bookings are deleted
        remotely; other entity types are only forgotten locally. Ids that
        fail to delete stay in the checkpoint. The phase is not changed.
        """
        self._require_auth()
        target = self._phase_arg(phase)
        events = self.events.for_company(company_id)

        with self.store.lock(company_id):
            state = self.store.require(company_id)
            checkpoint = state.checkpoints.get(target.value)
            if checkpoint is None:
                raise NoCheckpointFound(company_id, target.value)
            recorded = list(checkpoint.entity_ids)

            delete = self._deleters().get(target)
            if delete is None:
                self.store.delete_checkpoint(company_id, target)
                events.on_rollback(target.value, 0, 0)
                return render_rollback(target, len(recorded), None, [])

            def remove(entity_id: int) -> dict[str, int]:
                delete(company_id, entity_id)
                return {"id": entity_id}

            result = self._execute(events, target, recorded, remove, lambda i: f"id {i}")
            deleted = set(result.succeeded)
            remaining = [i for i in recorded if i not in deleted]

            if remaining:
                state.checkpoints[target.value] = Checkpoint.create(
                    remaining, {"rollback_failed": len(remaining)},
                )
                state.updated_at = utc_now_iso()
                self.store.save(state)
            else:
                self.store.delete_checkpoint(company_id, target)

        events.on_rollback(target.value, len(deleted), len(remaining))
        return render_rollback(target, len(recorded), result, remaining)

    @staticmethod
    def _phase_arg(phase: Phase | str) -> Phase:
        try:
            return parse_phase(phase)
        except ValueError as e:
            raise ValidationError(str(e)) from None
