"""
Data Models Package

This package contains all Pydantic models used in bbucks.
Everything the ledger stores or hands out conforms to these schemas.
"""

from bbucks.models.ledger import (
    Claim,
    ClaimCommand,
    CommandCheck,
    CommandKeyword,
    CommandResponse,
    LedgerCommand,
    MintCommand,
    NewUserCommand,
    ParsedCommand,
    VoteCommand,
)
from bbucks.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "Claim",
    "ClaimCommand",
    "CommandCheck",
    "CommandKeyword",
    "CommandResponse",
    "LedgerCommand",
    "MintCommand",
    "NewUserCommand",
    "ParsedCommand",
    "VoteCommand",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
