"""
In-Memory Storage Implementation

Used by tests and by the UI when no ledger path is configured.
Nothing survives the process.
"""

from typing import Optional

from bbucks.models.audit import AuditEvent
from bbucks.services.storage.interface import (
    AuditStorageInterface,
    LogStorageInterface,
    NotFoundError,
    StorageError,
    filter_log_lines,
)


class InMemoryLogStorage(LogStorageInterface):
    """Ledger log kept in a list."""

    def __init__(self, lines: Optional[list[str]] = None):
        # None means "not initialized yet"
        self._lines: Optional[list[str]] = list(lines) if lines is not None else None

    @property
    def location(self) -> str:
        return "memory"

    async def exists(self) -> bool:
        return self._lines is not None

    async def initialize(self, first_line: str) -> None:
        self._lines = [first_line]

    async def read_lines(self) -> list[str]:
        if self._lines is None:
            raise NotFoundError("Ledger not initialized")
        return filter_log_lines(self._lines)

    async def append_line(self, line: str) -> None:
        if self._lines is None:
            raise NotFoundError("Ledger not initialized")
        if "\n" in line:
            raise StorageError("Ledger entries must be a single line")
        self._lines.append(line)


class InMemoryAuditStorage(AuditStorageInterface):
    """Audit events kept in a list."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return list(reversed(self.events))[:limit]
