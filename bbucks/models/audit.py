"""
Audit Models for bbucks

Every significant action around the ledger is logged for audit purposes.
This provides:
1. Traceability of who asked for what
2. Debugging information when an entry is rejected
3. A record of entries that never reached the log

DESIGN DECISION: The audit log is append-only, like the ledger log.
The ledger log itself is the record of accepted commands; the audit log
also remembers the rejected ones.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Ledger log
    LEDGER_INITIALIZED = "ledger_initialized"
    LEDGER_LOADED = "ledger_loaded"
    ENTRY_APPENDED = "entry_appended"
    ENTRY_REJECTED = "entry_rejected"

    # Chat commands
    CHAT_COMMAND_HANDLED = "chat_command_handled"
    CHAT_COMMAND_FAILED = "chat_command_failed"

    # System events
    SYSTEM_ERROR = "system_error"
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    One thing that happened around the ledger, accepted or not.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Subject: a ledger location, an entry or a user
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'entry', 'user', 'command')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Groups the entries of one chat command
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all entries of one chat command)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Rejections and failures
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Flat dict for structlog and the JSONL audit file.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_json_line(self) -> str:
        """One line of the JSONL audit file."""
        return json.dumps(self.to_log_dict(), sort_keys=True)


class AuditEventBuilder:
    """
    Constructors for the events the service emits.

    Usage:
        event = AuditEventBuilder.entry_appended(entry, correlation_id)
        event = AuditEventBuilder.entry_rejected(entry, "insufficient_funds", msg, correlation_id)
    """

    @staticmethod
    def ledger_initialized(
        location: str,
        first_entry: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_INITIALIZED,
            entity_type="ledger",
            entity_id=location,
            description=f"Initialized ledger at {location}",
            details={
                "first_entry": first_entry,
            },
        )

    @staticmethod
    def ledger_loaded(
        location: str,
        entry_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_LOADED,
            severity=AuditSeverity.DEBUG,
            entity_type="ledger",
            entity_id=location,
            description=f"Loaded {entry_count} ledger entries",
            details={
                "entry_count": entry_count,
            },
        )

    @staticmethod
    def entry_appended(
        entry: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_APPENDED,
            entity_type="entry",
            correlation_id=correlation_id,
            description=f"Appended ledger entry: {entry}"[:500],
            details={
                "entry": entry,
            },
        )

    @staticmethod
    def entry_rejected(
        entry: str,
        error_code: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="entry",
            correlation_id=correlation_id,
            description=f"Blocked invalid ledger entry: {entry}"[:500],
            details={
                "entry": entry,
            },
            error_code=error_code,
            error_message=error_message,
        )

    @staticmethod
    def chat_command_handled(
        user_name: str,
        command: str,
        entry_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CHAT_COMMAND_HANDLED,
            entity_type="user",
            entity_id=user_name,
            correlation_id=correlation_id,
            description=f"{user_name} ran {command}",
            details={
                "command": command,
                "entry_count": entry_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def chat_command_failed(
        user_name: str,
        command: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CHAT_COMMAND_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            entity_id=user_name,
            correlation_id=correlation_id,
            description=f"{user_name} ran {command} and it failed",
            details={
                "command": command,
            },
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={
                "operation": operation,
            },
            correlation_id=correlation_id,
        )
