"""Tests for the ledger log and audit log stores"""

import asyncio

import pytest

from bbucks.models.audit import AuditEventBuilder, AuditEventType
from bbucks.services.storage import (
    FileLogStorage,
    InMemoryAuditStorage,
    InMemoryLogStorage,
    JsonlAuditStorage,
    NotFoundError,
    StorageError,
    filter_log_lines,
)


FIRST = "2021-06-04T15:23:00.000Z new_user universe"
SECOND = "2021-06-04T15:24:00.000Z mint abc universe 1000"


class TestFilterLogLines:

    def test_drops_blank_lines_and_comments(self):
        lines = ["  # header", "", FIRST, "   ", f"  {SECOND}  ", "#" + SECOND]
        assert filter_log_lines(lines) == [FIRST, SECOND]


class TestFileLogStorage:

    def test_missing_file(self, tmp_path):
        storage = FileLogStorage(tmp_path / "ledger.txt")

        assert asyncio.run(storage.exists()) is False
        with pytest.raises(NotFoundError):
            asyncio.run(storage.read_lines())

    def test_initialize_creates_parent_directories(self, tmp_path):
        path = tmp_path / "data" / "ledger.txt"
        storage = FileLogStorage(path)

        asyncio.run(storage.initialize(FIRST))

        assert path.read_text(encoding="utf-8") == f"{FIRST}\n"
        assert asyncio.run(storage.exists()) is True

    def test_append_and_read(self, tmp_path):
        storage = FileLogStorage(tmp_path / "ledger.txt")
        asyncio.run(storage.initialize(FIRST))
        asyncio.run(storage.append_line(SECOND))

        assert asyncio.run(storage.read_lines()) == [FIRST, SECOND]

    def test_hand_edited_comments_ignored(self, tmp_path):
        path = tmp_path / "ledger.txt"
        path.write_text(f"# seeded by hand\n{FIRST}\n\n{SECOND}\n", encoding="utf-8")

        assert asyncio.run(FileLogStorage(path).read_lines()) == [FIRST, SECOND]

    def test_multi_line_entry_rejected(self, tmp_path):
        path = tmp_path / "ledger.txt"
        storage = FileLogStorage(path)
        asyncio.run(storage.initialize(FIRST))

        with pytest.raises(StorageError):
            asyncio.run(storage.append_line(f"{SECOND}\n{SECOND}"))
        assert path.read_text(encoding="utf-8") == f"{FIRST}\n"

    def test_location(self, tmp_path):
        path = tmp_path / "ledger.txt"
        assert FileLogStorage(str(path)).location == str(path)


class TestInMemoryLogStorage:

    def test_uninitialized(self):
        storage = InMemoryLogStorage()

        assert asyncio.run(storage.exists()) is False
        with pytest.raises(NotFoundError):
            asyncio.run(storage.read_lines())
        with pytest.raises(NotFoundError):
            asyncio.run(storage.append_line(SECOND))

    def test_seeded_lines(self):
        storage = InMemoryLogStorage([FIRST, "# note", SECOND])
        assert asyncio.run(storage.read_lines()) == [FIRST, SECOND]

    def test_initialize_and_append(self):
        storage = InMemoryLogStorage()
        asyncio.run(storage.initialize(FIRST))
        asyncio.run(storage.append_line(SECOND))

        assert asyncio.run(storage.read_lines()) == [FIRST, SECOND]


class TestAuditStorage:

    def test_jsonl_newest_first(self, tmp_path):
        storage = JsonlAuditStorage(tmp_path / "audit" / "audit.jsonl")
        first = AuditEventBuilder.ledger_initialized(location="memory", first_entry=FIRST)
        second = AuditEventBuilder.entry_appended(entry=SECOND)

        asyncio.run(storage.append_event(first))
        asyncio.run(storage.append_event(second))

        events = asyncio.run(storage.get_recent_events())
        assert [event.event_id for event in events] == [second.event_id, first.event_id]
        assert events[0].event_type == AuditEventType.ENTRY_APPENDED

        assert len(asyncio.run(storage.get_recent_events(limit=1))) == 1

    def test_jsonl_missing_file(self, tmp_path):
        storage = JsonlAuditStorage(tmp_path / "audit.jsonl")
        assert asyncio.run(storage.get_recent_events()) == []

    def test_in_memory(self):
        storage = InMemoryAuditStorage()
        event = AuditEventBuilder.entry_appended(entry=SECOND)

        assert asyncio.run(storage.append_event(event)) is True
        assert storage.events == [event]
        assert asyncio.run(storage.get_recent_events()) == [event]
