"""
Altegio Onboarding — Exception Hierarchy

Fatal errors abort an operation before anything is persisted. Per-item
creation failures inside a batch are not exceptions at all: they are
collected as ItemFailure records and reported in the batch summary.
"""

from __future__ import annotations

from dataclasses import dataclass


# ═══════════════════════════════════════════════════════════════
# Base
# ═══════════════════════════════════════════════════════════════

class OnboardingError(Exception):
    """Base exception for all onboarding errors."""
    retryable: bool = False

    def __init__(self, message: str = "", **kwargs):
        self.detail = kwargs
        super().__init__(message)


# ═══════════════════════════════════════════════════════════════
# Fatal pre-checks
# ═══════════════════════════════════════════════════════════════

class AuthenticationRequired(OnboardingError):
    """The platform client has no user token."""

    def __init__(self, message: str = "Authentication required. Please use altegio_login first."):
        super().__init__(message)


@dataclass
class FieldError:
    """One schema problem in a batch payload. row is 1-based."""
    row: int
    field: str
    message: str

    def __str__(self) -> str:
        where = f"row {self.row}" if self.row else "payload"
        if self.field:
            return f"{where}, {self.field}: {self.message}"
        return f"{where}: {self.message}"


class ValidationError(OnboardingError):
    """Batch payload failed schema validation. Nothing was created."""

    def __init__(self, message: str, errors: list[FieldError] | None = None):
        self.errors = list(errors or [])
        if self.errors:
            lines = "\n".join(f"  - {e}" for e in self.errors)
            message = f"{message}\n{lines}"
        super().__init__(message, errors=self.errors)


class NoSessionFound(OnboardingError):
    """No persisted state for the company."""

    def __init__(self, company_id: int):
        self.company_id = company_id
        super().__init__(
            f"No onboarding session found for company {company_id}. "
            f"Use onboarding_start first.",
            company_id=company_id,
        )


class PrerequisiteMissing(OnboardingError):
    """A phase was invoked before the checkpoints it depends on exist."""
    pass


class NoCheckpointFound(OnboardingError):
    """Rollback requested for a phase that has no checkpoint."""

    def __init__(self, company_id: int, phase: str):
        super().__init__(
            f"No checkpoint found for phase '{phase}' (company {company_id})",
            company_id=company_id,
            phase=phase,
        )


class SessionLocked(OnboardingError):
    """Another process holds the session lock for this company."""
    retryable = True


# ═══════════════════════════════════════════════════════════════
# Platform API
# ═══════════════════════════════════════════════════════════════

class PlatformApiError(OnboardingError):
    """Remote API call failed."""

    def __init__(self, message: str, status_code: int | None = None, response: str = ""):
        self.status_code = status_code
        self.response = response
        super().__init__(message, status_code=status_code)
        self.retryable = status_code in (429, 500, 502, 503, 504)


class PlatformAuthError(PlatformApiError):
    """Write attempted without a user token, or the token was rejected."""

    def __init__(self, message: str = "Not authenticated. Use login() first."):
        super().__init__(message, status_code=401)


# ═══════════════════════════════════════════════════════════════
# Non-fatal
# ═══════════════════════════════════════════════════════════════

@dataclass
class ItemFailure:
    """A single entity that could not be created. Does not abort the batch."""
    label: str
    message: str

    def __str__(self) -> str:
        return f"{self.label}: {self.message}"
