"""Explicit write batches.

A ``WriteBatch`` collects deferred write operations and applies them inside
a single ``transaction.atomic()`` block when the owner calls ``commit()``.
Code that receives a batch only ever *adds* to it; committing is always the
caller's decision.  Either every staged write applies or none does.
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional, Tuple

import structlog
from django.db import DatabaseError, transaction

from modules.core.exceptions import PersistenceError

logger = structlog.get_logger(__name__)

Operation = Callable[[], Any]


class WriteBatch:
    """Deferred, all-or-nothing unit of work."""

    def __init__(self, label: str = "batch", using: Optional[str] = None) -> None:
        self.label = label
        self._using = using
        self._operations: List[Tuple[str, Operation]] = []
        self._committed = False

    def __len__(self) -> int:
        return len(self._operations)

    @property
    def committed(self) -> bool:
        return self._committed

    def add(self, description: str, operation: Operation) -> None:
        """Stage *operation*; it runs only when the batch is committed."""
        if self._committed:
            raise RuntimeError(f"Batch '{self.label}' was already committed.")
        self._operations.append((description, operation))

    def commit(self) -> List[Any]:
        """Apply every staged write atomically and return their results.

        Raises:
            PersistenceError: the database rejected a write; nothing applied.
            Any domain exception raised by a staged operation, after the
            transaction has been rolled back.
        """
        if self._committed:
            raise RuntimeError(f"Batch '{self.label}' was already committed.")

        log = logger.bind(batch=self.label, size=len(self._operations))
        if not self._operations:
            self._committed = True
            log.debug("batch.empty_commit")
            return []

        current = None
        try:
            with transaction.atomic(using=self._using):
                results = []
                for description, operation in self._operations:
                    current = description
                    results.append(operation())
        except DatabaseError as exc:
            log.error("batch.commit_failed", failed_write=current, error=str(exc))
            raise PersistenceError(
                f"Batch '{self.label}' failed at '{current}': {exc}"
            ) from exc

        self._committed = True
        log.info("batch.committed")
        return results
