"""
Altegio Onboarding — Structured Logging

JSON log lines for every onboarding event, keyed by company_id and a
per-engine trace_id so one operator session can be followed across
batch calls.

Logs always go to stderr: under the MCP stdio transport, stdout is the
protocol channel.

Usage:
    from onboarding.logging import SessionLogger, configure_logging

    configure_logging(level="INFO")
    log = SessionLogger()
    log.for_company(123).on_batch_start("staff", 12)
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from datetime import datetime, timezone
from typing import Any

ROOT_LOGGER = "altegio_onboarding"


# ═══════════════════════════════════════════════════════════════════
# JSON Formatter
# ═══════════════════════════════════════════════════════════════════

class JSONFormatter(logging.Formatter):
    """
    One JSON object per line.

    Session events carry their fields on record.structured; plain
    module loggers only get the base keys. Tracebacks are kept whole.
    """

    def __init__(self, service: str = ROOT_LOGGER):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "service": self.service,
            "message": record.getMessage(),
        }
        entry.update(getattr(record, "structured", {}))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


# ═══════════════════════════════════════════════════════════════════
# Log Configuration
# ═══════════════════════════════════════════════════════════════════

def configure_logging(level: str = "INFO", stream: Any = None) -> logging.Logger:
    """
    Point the altegio_onboarding logger at one JSON handler.

    Module loggers are children of it and propagate up, so one handler
    covers engine, store, batch and client lines. Calling it again
    swaps the handler.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    for old in list(logger.handlers):
        logger.removeHandler(old)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(name: str = "") -> logging.Logger:
    """Get a child logger under the altegio_onboarding namespace."""
    if name:
        return logging.getLogger(f"{ROOT_LOGGER}.{name}")
    return logging.getLogger(ROOT_LOGGER)


def generate_trace_id() -> str:
    return uuid.uuid4().hex


# ═══════════════════════════════════════════════════════════════════
# Session Logger
# ═══════════════════════════════════════════════════════════════════

class SessionLogger:
    """
    Structured event logger injected into OnboardingEngine.

    One instance per engine. for_company() returns a view bound to a
    company id that shares the engine's trace_id.
    """

    def __init__(
        self,
        company_id: int | None = None,
        trace_id: str | None = None,
        logger: logging.Logger | None = None,
    ):
        self.company_id = company_id
        self.trace_id = trace_id or generate_trace_id()
        self._logger = logger or get_logger("session")

    def for_company(self, company_id: int) -> SessionLogger:
        return SessionLogger(
            company_id=company_id,
            trace_id=self.trace_id,
            logger=self._logger,
        )

    def _emit(self, level: int, action: str, **fields):
        if not self._logger.isEnabledFor(level):
            return
        structured = {"trace_id": self.trace_id, "action": action}
        if self.company_id is not None:
            structured["company_id"] = self.company_id
        structured.update(fields)
        record = self._logger.makeRecord(
            name=self._logger.name,
            level=level,
            fn="", lno=0, msg=action,
            args=(), exc_info=None,
        )
        record.structured = structured
        self._logger.handle(record)

    # ── Session lifecycle ───────────────────────────────────────

    def on_session_started(self, phase: str) -> None:
        self._emit(logging.INFO, "session_started", phase=phase)

    def on_session_replaced(self, previous_phase: str, checkpoints: int) -> None:
        self._emit(
            logging.WARNING, "session_replaced",
            previous_phase=previous_phase,
            previous_checkpoints=checkpoints,
        )

    # ── Batches ─────────────────────────────────────────────────

    def on_batch_start(self, phase: str, items: int) -> None:
        self._emit(logging.INFO, "batch_start", phase=phase, items=items)

    def on_item_failed(self, phase: str, label: str, error: str) -> None:
        self._emit(
            logging.WARNING, "item_failed",
            phase=phase,
            label=label,
            error=error[:500],
        )

    def on_batch_end(self, phase: str, succeeded: int, failed: int, elapsed_s: float) -> None:
        self._emit(
            logging.INFO, "batch_end",
            phase=phase,
            succeeded=succeeded,
            failed=failed,
            elapsed_s=round(elapsed_s, 2),
        )

    # ── Checkpoints ─────────────────────────────────────────────

    def on_checkpoint_saved(self, phase: str, entity_count: int) -> None:
        self._emit(logging.INFO, "checkpoint_saved", phase=phase, entity_count=entity_count)

    def on_phase_updated(self, from_phase: str, to_phase: str) -> None:
        self._emit(logging.INFO, "phase_updated", from_phase=from_phase, to_phase=to_phase)

    def on_rollback(self, phase: str, deleted: int, remaining: int) -> None:
        self._emit(
            logging.WARNING, "rollback",
            phase=phase,
            deleted=deleted,
            remaining=remaining,
        )
