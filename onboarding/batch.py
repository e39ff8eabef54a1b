"""
Altegio Onboarding — Batch Executor

Best-effort sequential execution. Items are created one at a time, in
input order; a failing item is recorded and the loop moves on. The
caller always gets both lists back, nothing is dropped silently.

Sequential on purpose: succeeded ids must line up with input order and
the remote API should not see a burst of parallel writes.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Iterable, TypeVar

from onboarding.errors import ItemFailure

logger = logging.getLogger("altegio_onboarding.batch")

T = TypeVar("T")


@dataclass(frozen=True)
class BatchResult:
    """Outcome of one batch: created ids in call order, plus failures."""
    succeeded: list[int] = field(default_factory=list)
    failed: list[ItemFailure] = field(default_factory=list)
    elapsed_s: float = 0.0

    @property
    def attempted(self) -> int:
        return len(self.succeeded) + len(self.failed)


def _entity_id(created: Any) -> int:
    """Pull the numeric id out of whatever the creation call returned."""
    if isinstance(created, dict):
        value = created.get("id")
    else:
        value = getattr(created, "id", None)
    if value is None:
        raise ValueError("creation response has no id")
    return int(value)


class BatchExecutor(Generic[T]):
    """
    Runs one creation callable over a list of items.

    Args:
        create: item → created entity (dict or object with an ``id``)
        label: item → short human label used in failure reports
        on_failure: optional hook called with each ItemFailure as it happens
    """

    def __init__(
        self,
        create: Callable[[T], Any],
        label: Callable[[T], str] = str,
        on_failure: Callable[[ItemFailure], None] | None = None,
    ):
        self._create = create
        self._label = label
        self._on_failure = on_failure

    def run(self, items: Iterable[T]) -> BatchResult:
        started = time.time()
        succeeded: list[int] = []
        failed: list[ItemFailure] = []

        for index, item in enumerate(items):
            try:
                created = self._create(item)
                succeeded.append(_entity_id(created))
            except Exception as e:
                failure = ItemFailure(label=self._safe_label(item, index), message=str(e) or type(e).__name__)
                failed.append(failure)
                logger.debug("Item %d failed: %s", index, failure)
                if self._on_failure:
                    self._on_failure(failure)

        return BatchResult(
            succeeded=succeeded,
            failed=failed,
            elapsed_s=time.time() - started,
        )

    def _safe_label(self, item: T, index: int) -> str:
        try:
            label = self._label(item)
        except Exception as e:
            logger.debug("Label for item %d failed: %s", index, e)
            label = ""
        return label or f"item {index + 1}"
