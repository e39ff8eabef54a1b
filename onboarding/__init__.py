"""
Altegio Onboarding - Engine Package

Resumable, checkpointed onboarding of a company onto Altegio:
categories, staff, services, clients and test bookings, with one
persisted session per company.

  - onboarding.engine: OnboardingEngine (public facade)
  - onboarding.store: StateStore (per-company JSON state, atomic writes)
  - onboarding.batch: BatchExecutor, BatchResult
  - onboarding.schemas: batch row models and validate_rows
  - onboarding.bookings: plan_bookings (test-booking distributor)
  - onboarding.reporting: status / resume / summary text
"""

from onboarding.batch import BatchExecutor, BatchResult
from onboarding.engine import OnboardingEngine, PlatformClient
from onboarding.errors import (
    AuthenticationRequired, ItemFailure, NoCheckpointFound, NoSessionFound,
    OnboardingError, PlatformApiError, PlatformAuthError, PrerequisiteMissing,
    SessionLocked, ValidationError,
)
from onboarding.logging import SessionLogger, configure_logging
from onboarding.store import StateStore
from onboarding.types import Checkpoint, OnboardingState, Phase

__all__ = [
    "OnboardingEngine", "PlatformClient",
    "StateStore", "OnboardingState", "Checkpoint", "Phase",
    "BatchExecutor", "BatchResult", "SessionLogger", "configure_logging",
    "OnboardingError", "AuthenticationRequired", "ValidationError",
    "NoSessionFound", "PrerequisiteMissing", "NoCheckpointFound",
    "SessionLocked", "PlatformApiError", "PlatformAuthError", "ItemFailure",
]
