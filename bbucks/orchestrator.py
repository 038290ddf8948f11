"""
Main Orchestrator for bbucks

This module ties together the ledger, the log store, the chat command
handlers and the audit logger. It defines the end-to-end flows for:
1. Loading (log store → replay → ledger)
2. Appending (entry → stamp → trial apply → persist)
3. Chat commands (text → handler → entries → response)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No entry reaches the log unless a freshly loaded ledger accepts it
- A rejected entry is fatal for its chat command; earlier state stays intact
- Every append and every rejection is audited
"""

from datetime import datetime
from typing import Callable, Optional
from uuid import UUID

import structlog

from bbucks.audit import AuditLogger, configure_logging, create_correlation_id
from bbucks.commands import ChatCommandHandler, CommandError
from bbucks.config import LedgerSettings, get_settings
from bbucks.errors import LedgerError
from bbucks.ledger import Ledger
from bbucks.models.ledger import CommandResponse
from bbucks.parsing import timestamp
from bbucks.services.storage import (
    FileLogStorage,
    InMemoryLogStorage,
    JsonlAuditStorage,
    LogStorageInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


class LedgerService:
    """
    Owns the path from chat text to persisted ledger entries.

    The log store is the source of truth; the ledger is rebuilt from it
    whenever it is needed, so the service holds no state of its own.
    """

    def __init__(
        self,
        storage: LogStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[LedgerSettings] = None,
        handler: Optional[ChatCommandHandler] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()
        self._settings = settings or get_settings().ledger
        self._clock = clock
        self._handler = handler or ChatCommandHandler(settings=self._settings, clock=clock)

    @property
    def handler(self) -> ChatCommandHandler:
        return self._handler

    @property
    def settings(self) -> LedgerSettings:
        return self._settings

    def _stamp(self) -> str:
        return timestamp(self._clock() if self._clock else None)

    async def ensure_initialized(self) -> None:
        """Seed an empty log with the treasury user."""
        if await self._storage.exists():
            return

        first_entry = f"{self._stamp()} new_user {self._settings.treasury_user}"
        await self._storage.initialize(first_entry)
        await self._audit_logger.log_ledger_initialized(
            location=self._storage.location,
            first_entry=first_entry,
        )

    async def load_ledger(self) -> Ledger:
        """
        Rebuild the ledger from the log.

        Raises:
            LedgerError: If a stored entry is invalid (the log is corrupt)
        """
        await self.ensure_initialized()

        lines = await self._storage.read_lines()
        try:
            ledger = Ledger.replay(lines)
        except LedgerError as e:
            await self._audit_logger.log_error(
                error_type="corrupt_ledger",
                error_message=e.message,
                details={"location": self._storage.location, "error_kind": e.kind.value},
            )
            raise

        await self._audit_logger.log_ledger_loaded(
            location=self._storage.location,
            entry_count=len(lines),
        )
        return ledger

    async def append_entry(
        self,
        line: str,
        correlation_id: Optional[UUID] = None,
    ) -> Ledger:
        """
        Stamp an entry with the current time, check it, and persist it.

        Returns the ledger with the entry applied.

        Raises:
            LedgerError: If the ledger refuses the entry (nothing is written)
        """
        entry = f"{self._stamp()} {line}"

        ledger = await self.load_ledger()
        try:
            ledger.apply(entry)
        except LedgerError as e:
            logger.warning(
                "blocked_invalid_entry",
                entry=line,
                error_kind=e.kind.value,
                error=e.message,
            )
            await self._audit_logger.log_entry_rejected(
                entry=entry,
                error_code=e.kind.value,
                error_message=e.message,
                correlation_id=correlation_id,
            )
            raise

        try:
            await self._storage.append_line(entry)
        except StorageError as e:
            await self._audit_logger.log_storage_error(
                operation="append_line",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        await self._audit_logger.log_entry_appended(
            entry=entry,
            correlation_id=correlation_id,
        )
        return ledger

    async def handle_command(
        self,
        user_name: str,
        command: str,
        text: str,
        correlation_id: Optional[UUID] = None,
    ) -> CommandResponse:
        """
        Run a chat command end to end.

        Entries are appended in order; the first rejected entry stops the
        command and is reported as a CommandError.

        Raises:
            CommandError: For malformed commands and rejected entries
        """
        correlation_id = correlation_id or create_correlation_id()

        ledger = await self.load_ledger()

        try:
            response = self._handler.handle(ledger, user_name, command, text)

            for line in response.commands:
                try:
                    await self.append_entry(line, correlation_id=correlation_id)
                except LedgerError as e:
                    raise CommandError(f"Bad transaction: {e.message}") from e
        except CommandError as e:
            await self._audit_logger.log_chat_command_failed(
                user_name=user_name,
                command=command,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        await self._audit_logger.log_chat_command_handled(
            user_name=user_name,
            command=command,
            entry_count=len(response.commands),
            correlation_id=correlation_id,
        )
        return response

    async def register_user(self, user_name: str) -> Ledger:
        """Add a user to the ledger (no chat command does this)."""
        return await self.append_entry(f"new_user {user_name}")


def create_app_components(
    use_storage: bool = True,
) -> LedgerService:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use the configured ledger file.
                    Set to False (or leave BBUCKS_LEDGER_PATH unset)
                    to keep the ledger in memory.

    Returns:
        A ready LedgerService
    """
    settings = get_settings()
    configure_logging(settings.logging.level)
    ledger_settings = settings.ledger

    audit_storage = None
    if ledger_settings.audit_log_path is not None:
        audit_storage = JsonlAuditStorage(ledger_settings.audit_log_path)
    audit_logger = AuditLogger(audit_storage)

    if use_storage and ledger_settings.ledger_path is not None:
        storage: LogStorageInterface = FileLogStorage(ledger_settings.ledger_path)
    else:
        logger.warning("ledger_storage_not_configured", fallback="memory")
        storage = InMemoryLogStorage()

    return LedgerService(
        storage=storage,
        audit_logger=audit_logger,
        settings=ledger_settings,
    )
