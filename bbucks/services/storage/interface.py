"""
Storage Interfaces

DESIGN DECISION: The service only talks to these interfaces, so that we can:
1. Keep the ledger log in a plain text file today
2. Use in-memory storage for testing and demos
3. Keep the orchestrator decoupled from where lines live

The log store is deliberately dumb: it stores lines. Deciding whether
a line is valid is the ledger's job.
"""

from abc import ABC, abstractmethod

from bbucks.models.audit import AuditEvent


class LogStorageInterface(ABC):
    """
    Abstract interface for the ledger log.

    The log is append-only - lines are never rewritten or removed.
    """

    @property
    @abstractmethod
    def location(self) -> str:
        """Human-readable description of where the log lives."""
        pass

    @abstractmethod
    async def exists(self) -> bool:
        """
        Check whether the log has been initialized.

        Returns:
            True if the log exists
        """
        pass

    @abstractmethod
    async def initialize(self, first_line: str) -> None:
        """
        Create the log with a single first entry.

        Args:
            first_line: The entry to seed the log with

        Raises:
            StorageError: If the log cannot be created
        """
        pass

    @abstractmethod
    async def read_lines(self) -> list[str]:
        """
        Read every entry in order.

        Blank lines and lines starting with '#' are skipped, and
        surrounding whitespace is stripped.

        Returns:
            Entries in the order they were appended

        Raises:
            NotFoundError: If the log has not been initialized
        """
        pass

    @abstractmethod
    async def append_line(self, line: str) -> None:
        """
        Append one entry to the log.

        Args:
            line: The entry, without a trailing newline

        Raises:
            StorageError: If the append fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Where audit events are persisted.

    Events are only ever appended.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Persist one event.

        Returns:
            True once the event is stored
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Up to `limit` events, newest first.
        """
        pass


def filter_log_lines(lines: list[str]) -> list[str]:
    """Strip entries and drop blank lines and '#' comments."""
    stripped = (line.strip() for line in lines)
    return [line for line in stripped if line and not line.startswith("#")]


class StorageError(Exception):
    """A log or audit store could not be read or written."""
    pass


class NotFoundError(StorageError):
    """Log or entity not found in storage."""
    pass
