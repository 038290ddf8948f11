"""
Storage Services Package

Provides abstract interfaces and concrete implementations for the ledger
log and the audit log. Files today, swappable later.
"""

from bbucks.services.storage.interface import (
    AuditStorageInterface,
    LogStorageInterface,
    NotFoundError,
    StorageError,
    filter_log_lines,
)
from bbucks.services.storage.file_store import (
    FileLogStorage,
    JsonlAuditStorage,
)
from bbucks.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryLogStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LogStorageInterface",
    "filter_log_lines",
    # Exceptions
    "NotFoundError",
    "StorageError",
    # File implementation
    "FileLogStorage",
    "JsonlAuditStorage",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryLogStorage",
]
