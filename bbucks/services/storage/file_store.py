"""
File Storage Implementation

DESIGN DECISION: The ledger log is a plain text file, one entry per line:
1. Humans can read and annotate it ('#' comments are ignored)
2. Appending a line is the only write we ever do
3. Backing it up is copying a file

File I/O runs in a worker thread so the async service layer never
blocks on disk. Transient OS errors are retried; a missing log is not
transient and is reported straight away.
"""

import asyncio
import json
from pathlib import Path
from typing import Union

import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from bbucks.models.audit import AuditEvent
from bbucks.services.storage.interface import (
    AuditStorageInterface,
    LogStorageInterface,
    NotFoundError,
    StorageError,
    filter_log_lines,
)


logger = structlog.get_logger(__name__)

_retry_os_errors = retry(
    retry=retry_if_exception_type(OSError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


def _append_text(path: Path, text: str) -> None:
    with path.open("a", encoding="utf-8") as handle:
        handle.write(text)


class FileLogStorage(LogStorageInterface):
    """
    Ledger log kept in a text file.

    Every entry is written as a single line terminated by a newline.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def location(self) -> str:
        return str(self._path)

    async def exists(self) -> bool:
        return await asyncio.to_thread(self._path.is_file)

    async def initialize(self, first_line: str) -> None:
        logger.info("initializing_ledger", path=self.location)
        try:
            await asyncio.to_thread(self._path.parent.mkdir, parents=True, exist_ok=True)
            await self._append(f"{first_line}\n")
        except OSError as e:
            raise StorageError(f"Failed to initialize ledger at {self.location}: {e}")

    async def read_lines(self) -> list[str]:
        if not await self.exists():
            raise NotFoundError(f"Ledger not found: {self.location}")

        try:
            text = await self._read()
        except OSError as e:
            raise StorageError(f"Failed to read ledger at {self.location}: {e}")

        return filter_log_lines(text.split("\n"))

    async def append_line(self, line: str) -> None:
        if "\n" in line:
            raise StorageError("Ledger entries must be a single line")

        try:
            await self._append(f"{line}\n")
        except OSError as e:
            raise StorageError(f"Failed to append to ledger at {self.location}: {e}")

    @_retry_os_errors
    async def _read(self) -> str:
        return await asyncio.to_thread(self._path.read_text, encoding="utf-8")

    @_retry_os_errors
    async def _append(self, text: str) -> None:
        await asyncio.to_thread(_append_text, self._path, text)


class JsonlAuditStorage(AuditStorageInterface):
    """
    Audit events kept as JSON lines.

    Each line is AuditEvent.to_log_dict() serialized with sorted keys.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    async def append_event(self, event: AuditEvent) -> bool:
        try:
            await asyncio.to_thread(self._path.parent.mkdir, parents=True, exist_ok=True)
            await self._append(f"{event.to_json_line()}\n")
        except OSError as e:
            raise StorageError(f"Failed to write audit event: {e}")
        return True

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        if not await asyncio.to_thread(self._path.is_file):
            return []

        text = await asyncio.to_thread(self._path.read_text, encoding="utf-8")
        events = [
            AuditEvent.model_validate(json.loads(line))
            for line in text.splitlines()
            if line.strip()
        ]
        return list(reversed(events))[:limit]

    @_retry_os_errors
    async def _append(self, text: str) -> None:
        await asyncio.to_thread(_append_text, self._path, text)
