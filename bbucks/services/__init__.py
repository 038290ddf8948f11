"""Services package."""

from bbucks.services.storage import (
    AuditStorageInterface,
    FileLogStorage,
    InMemoryAuditStorage,
    InMemoryLogStorage,
    JsonlAuditStorage,
    LogStorageInterface,
    NotFoundError,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "FileLogStorage",
    "InMemoryAuditStorage",
    "InMemoryLogStorage",
    "JsonlAuditStorage",
    "LogStorageInterface",
    "NotFoundError",
    "StorageError",
]
