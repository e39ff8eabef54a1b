"""
Altegio Onboarding — State Store

One JSON file per company at <base_dir>/<company_id>/state.json.
Every save writes a temp file and renames it over the canonical path,
so readers only ever see a complete record. Nothing is cached: every
load re-reads the file, which is what makes resume-after-restart work.

Cross-process locking is opt-in (lock_sessions=True). Without it,
concurrent writers for the same company race and the last save wins.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from onboarding.errors import NoSessionFound, SessionLocked
from onboarding.types import Checkpoint, OnboardingState, Phase, utc_now_iso

logger = logging.getLogger("altegio_onboarding.store")

STATE_FILE = "state.json"
LOCK_FILE = "state.lock"


class _SessionLock:
    """
    Exclusive lock file for one company.

    Created with O_CREAT|O_EXCL so only one process can hold it. The
    file contains the holder's pid for operators clearing stale locks.
    Re-entrant within the same store instance.
    """

    def __init__(self, store: StateStore, company_id: int):
        self.store = store
        self.company_id = company_id
        self.path = store.company_dir(company_id) / LOCK_FILE
        self._owned = False

    def __enter__(self):
        if not self.store.lock_sessions or self.company_id in self.store._held_locks:
            return self
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            raise SessionLocked(
                f"Onboarding session for company {self.company_id} is locked "
                f"by another process ({self.path})",
                company_id=self.company_id,
            ) from None
        with os.fdopen(fd, "w") as f:
            f.write(str(os.getpid()))
        self.store._held_locks.add(self.company_id)
        self._owned = True
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._owned:
            self.store._held_locks.discard(self.company_id)
            try:
                self.path.unlink()
            except FileNotFoundError:
                logger.warning("Lock file vanished before release: %s", self.path)
        return False


class StateStore:
    """File-backed store for onboarding state."""

    def __init__(self, base_dir: str | Path, lock_sessions: bool = False):
        self.base_dir = Path(base_dir)
        self.lock_sessions = lock_sessions
        self._held_locks: set[int] = set()

    # ── Paths ───────────────────────────────────────────────────

    def company_dir(self, company_id: int) -> Path:
        return self.base_dir / str(company_id)

    def state_path(self, company_id: int) -> Path:
        return self.company_dir(company_id) / STATE_FILE

    def lock(self, company_id: int) -> _SessionLock:
        """
        Context manager guarding a read-modify-write on one company.

        Usage:
            with store.lock(123):
                state = store.load(123)
                ...
                store.save(state)

        A no-op unless the store was created with lock_sessions=True.
        """
        return _SessionLock(self, company_id)

    # ── Core contract ───────────────────────────────────────────

    def start(self, company_id: int) -> OnboardingState:
        """Create and persist a fresh record in phase init."""
        state = OnboardingState.create(company_id)
        self.save(state)
        return state

    def save(self, state: OnboardingState) -> None:
        """Atomically persist a complete record."""
        path = self.state_path(state.company_id)
        path.parent.mkdir(parents=True, exist_ok=True)

        tmp_path = path.with_name(path.name + ".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(state.to_dict(), f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

    def load(self, company_id: int) -> OnboardingState | None:
        """Return the saved record, or None if the company has none."""
        path = self.state_path(company_id)
        try:
            with open(path, encoding="utf-8") as f:
                data: dict[str, Any] = json.load(f)
        except FileNotFoundError:
            return None
        return OnboardingState.from_dict(data)

    def exists(self, company_id: int) -> bool:
        return self.state_path(company_id).exists()

    def require(self, company_id: int) -> OnboardingState:
        """load() that raises NoSessionFound instead of returning None."""
        state = self.load(company_id)
        if state is None:
            raise NoSessionFound(company_id)
        return state

    # ── Checkpoint recorder ─────────────────────────────────────

    def checkpoint(
        self,
        company_id: int,
        phase: Phase,
        entity_ids: list[int],
        metadata: dict[str, Any] | None = None,
    ) -> OnboardingState:
        """
        Record a batch outcome and set the phase to it.

        Replaces any earlier checkpoint for the same phase wholesale;
        ids from separate calls are never merged.
        """
        with self.lock(company_id):
            state = self.require(company_id)
            state.checkpoints[phase.value] = Checkpoint.create(entity_ids, metadata)
            state.phase = phase
            state.updated_at = utc_now_iso()
            self.save(state)
        logger.debug("Checkpoint %s saved for company %s (%d ids)",
                     phase.value, company_id, len(entity_ids))
        return state

    def update_phase(self, company_id: int, phase: Phase) -> OnboardingState:
        with self.lock(company_id):
            state = self.require(company_id)
            state.phase = phase
            state.updated_at = utc_now_iso()
            self.save(state)
        return state

    def delete_checkpoint(self, company_id: int, phase: Phase) -> OnboardingState:
        """Remove a phase's checkpoint. Used only by explicit rollback."""
        with self.lock(company_id):
            state = self.require(company_id)
            state.checkpoints.pop(phase.value, None)
            state.updated_at = utc_now_iso()
            self.save(state)
        return state
