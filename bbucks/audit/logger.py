"""
Audit Logger

DESIGN DECISION: Every entry that reaches the ledger, and every entry
that is refused, is logged. This provides:
1. Traceability of who changed what
2. A record of rejected entries (which never reach the ledger log)
3. Debugging capability

The audit logger:
- Is async to match the storage layer
- Gracefully handles audit storage failures (logs them, never crashes the flow)
- Supports correlation IDs to trace all entries of one chat command
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from bbucks.models.audit import AuditEvent, AuditEventBuilder
from bbucks.services.storage import AuditStorageInterface


# JSON lines through the stdlib logging tree
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog's JSON lines to stderr at the given level."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
    )


class AuditLogger:
    """
    Writes every audit event to the structured log, and to audit
    storage when one is configured.
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Args:
            storage: Where events are persisted. None keeps them in the
                     structured log only.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an event at a level matching its severity.

        Returns False only when audit storage is configured and the write failed.
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Audit failures never fail the ledger operation
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_ledger_initialized(self, location: str, first_entry: str) -> None:
        await self.log(AuditEventBuilder.ledger_initialized(
            location=location,
            first_entry=first_entry,
        ))

    async def log_ledger_loaded(self, location: str, entry_count: int) -> None:
        await self.log(AuditEventBuilder.ledger_loaded(
            location=location,
            entry_count=entry_count,
        ))

    async def log_entry_appended(
        self,
        entry: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.entry_appended(
            entry=entry,
            correlation_id=correlation_id,
        ))

    async def log_entry_rejected(
        self,
        entry: str,
        error_code: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an entry the ledger refused."""
        await self.log(AuditEventBuilder.entry_rejected(
            entry=entry,
            error_code=error_code,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_chat_command_handled(
        self,
        user_name: str,
        command: str,
        entry_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.chat_command_handled(
            user_name=user_name,
            command=command,
            entry_count=entry_count,
            correlation_id=correlation_id,
        ))

    async def log_chat_command_failed(
        self,
        user_name: str,
        command: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.chat_command_failed(
            user_name=user_name,
            command=command,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    New ID shared by everything one chat command does.

    Use this at the start of a chat command and pass it through
    every entry the command appends.
    """
    return uuid4()
