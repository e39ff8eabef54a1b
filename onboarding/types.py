"""
Altegio Onboarding — Type Definitions

Onboarding state, checkpoints and the phase enumeration. The JSON keys
written by to_dict() are the on-disk format of state.json and must stay
stable across releases so old sessions can still be resumed.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ─── Phases ─────────────────────────────────────────────────────────

class Phase(str, enum.Enum):
    """Onboarding phases, in declared order."""
    INIT = "init"
    STAFF = "staff"
    CATEGORIES = "categories"
    SERVICES = "services"
    SCHEDULES = "schedules"
    CLIENTS = "clients"
    TEST_BOOKINGS = "test_bookings"
    COMPLETE = "complete"


# ─── Checkpoints ────────────────────────────────────────────────────

@dataclass
class Checkpoint:
    """
    Durable outcome of one batch call.

    entity_ids holds the remote ids that were created, in creation order.
    A checkpoint with no ids is valid: the phase was attempted and
    nothing was created.
    """
    completed: bool
    entity_ids: list[int]
    timestamp: str
    metadata: dict[str, Any] | None = None

    @staticmethod
    def create(
        entity_ids: list[int],
        metadata: dict[str, Any] | None = None,
    ) -> Checkpoint:
        return Checkpoint(
            completed=True,
            entity_ids=list(entity_ids),
            timestamp=utc_now_iso(),
            metadata=metadata,
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "completed": self.completed,
            "entity_ids": list(self.entity_ids),
            "timestamp": self.timestamp,
        }
        if self.metadata is not None:
            d["metadata"] = dict(self.metadata)
        return d

    @staticmethod
    def from_dict(d: dict[str, Any]) -> Checkpoint:
        return Checkpoint(
            completed=bool(d.get("completed", False)),
            entity_ids=[int(i) for i in d.get("entity_ids", [])],
            timestamp=d.get("timestamp", ""),
            metadata=d.get("metadata"),
        )


# ─── Onboarding State ───────────────────────────────────────────────

@dataclass
class OnboardingState:
    """One record per company, persisted as <state_dir>/<company_id>/state.json."""
    company_id: int
    phase: Phase
    started_at: str
    updated_at: str
    checkpoints: dict[str, Checkpoint] = field(default_factory=dict)
    conversation_context: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def create(company_id: int) -> OnboardingState:
        now = utc_now_iso()
        return OnboardingState(
            company_id=company_id,
            phase=Phase.INIT,
            started_at=now,
            updated_at=now,
        )

    def checkpoint_ids(self, phase: Phase | str) -> list[int]:
        """Entity ids recorded for a phase, or [] when there is no checkpoint."""
        key = phase.value if isinstance(phase, Phase) else phase
        cp = self.checkpoints.get(key)
        return list(cp.entity_ids) if cp else []

    @property
    def total_entities(self) -> int:
        return sum(len(cp.entity_ids) for cp in self.checkpoints.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "company_id": self.company_id,
            "phase": self.phase.value,
            "started_at": self.started_at,
            "updated_at": self.updated_at,
            "checkpoints": {k: cp.to_dict() for k, cp in self.checkpoints.items()},
            "conversation_context": dict(self.conversation_context),
        }

    @staticmethod
    def from_dict(d: dict[str, Any]) -> OnboardingState:
        return OnboardingState(
            company_id=int(d["company_id"]),
            phase=Phase(d.get("phase", Phase.INIT.value)),
            started_at=d.get("started_at", ""),
            updated_at=d.get("updated_at", ""),
            checkpoints={
                k: Checkpoint.from_dict(v)
                for k, v in (d.get("checkpoints") or {}).items()
            },
            conversation_context=dict(d.get("conversation_context") or {}),
        )
