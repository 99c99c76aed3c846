"""
Entry stores.

Three interchangeable backends share one contract:

- ``SQLiteEntryStore``: the relational store used in production.
- ``MemoryEntryStore``: process-local, for prototyping and tests.
- ``JsonFileEntryStore``: keeps entries as a JSON array in one file, the
  layout an earlier version of the service used. Kept for compatibility.

Every lookup is keyed by entry id *and* owner id, so an owner never sees
or changes another owner's entries.
"""

import json
import os
import tempfile
import threading
import time
from typing import Dict, List, Optional, Protocol

from loguru import logger

from .database import Database
from .domain import Entry, EntryUpdate, NotFoundError, StoreError, check_text
from .utils import time_now

ENTRY_COLUMNS = "id, owner_id, title, content, created_time, updated_time"
# sqlite3 cannot bind integers outside a signed 64-bit range
SQLITE_MAX_ID = 2**63 - 1


class EntryStore(Protocol):
    def create(self, title: str, content: str, owner_id: Optional[str]) -> Entry: ...

    def get(self, entry_id: int, owner_id: Optional[str]) -> Optional[Entry]: ...

    def list_by_owner(self, owner_id: Optional[str]) -> List[Entry]: ...

    def delete_by_id_and_owner(self, entry_id: int, owner_id: Optional[str]) -> bool: ...

    def update_by_id_and_owner(self, entry_id: int, owner_id: Optional[str], update: EntryUpdate) -> Entry: ...


def _not_found(entry_id: int) -> NotFoundError:
    return NotFoundError(f"Entry {entry_id} not found")


def _storable(entry_id: int) -> bool:
    return -SQLITE_MAX_ID - 1 <= entry_id <= SQLITE_MAX_ID


class SQLiteEntryStore:
    """Stores entries in the ``entries`` table."""

    def __init__(self, database: Database):
        self.database = database

    def create(self, title: str, content: str, owner_id: Optional[str]) -> Entry:
        title, content = check_text("title", title), check_text("content", content)
        now = time_now()
        with self.database.connection() as conn:
            cursor = conn.execute(
                "INSERT INTO entries (owner_id, title, content, created_time, updated_time) VALUES (?, ?, ?, ?, ?)",
                (owner_id, title, content, now, now),
            )
            entry = Entry(cursor.lastrowid, owner_id, title, content, now, now)
        logger.debug("Stored entry {} for {}", entry.id, owner_id)
        return entry

    def get(self, entry_id: int, owner_id: Optional[str]) -> Optional[Entry]:
        if not _storable(entry_id):
            return None
        with self.database.connection() as conn:
            row = conn.execute(
                f"SELECT {ENTRY_COLUMNS} FROM entries WHERE id=? AND owner_id IS ?",
                (entry_id, owner_id),
            ).fetchone()
        return Entry(*row) if row else None

    def list_by_owner(self, owner_id: Optional[str]) -> List[Entry]:
        with self.database.connection() as conn:
            rows = conn.execute(
                f"SELECT {ENTRY_COLUMNS} FROM entries WHERE owner_id IS ? ORDER BY id DESC",
                (owner_id,),
            ).fetchall()
        return [Entry(*row) for row in rows]

    def delete_by_id_and_owner(self, entry_id: int, owner_id: Optional[str]) -> bool:
        """
        Delete an entry. Deleting an id that no longer exists succeeds, so the
        call is safe to repeat; an id held by another owner is NotFoundError.
        """
        if not _storable(entry_id):
            return True
        with self.database.connection() as conn:
            cursor = conn.execute("DELETE FROM entries WHERE id=? AND owner_id IS ?", (entry_id, owner_id))
            if cursor.rowcount == 0:
                exists = conn.execute("SELECT 1 FROM entries WHERE id=?", (entry_id,)).fetchone()
                if exists:
                    raise _not_found(entry_id)
        return True

    def update_by_id_and_owner(self, entry_id: int, owner_id: Optional[str], update: EntryUpdate) -> Entry:
        update = update.validate()
        fields = update.fields()
        if not _storable(entry_id):
            raise _not_found(entry_id)
        with self.database.connection() as conn:
            if fields:
                assignments = ", ".join(f"{column}=?" for column in fields)
                conn.execute(
                    f"UPDATE entries SET {assignments}, updated_time=? WHERE id=? AND owner_id IS ?",
                    (*fields.values(), time_now(), entry_id, owner_id),
                )
            row = conn.execute(
                f"SELECT {ENTRY_COLUMNS} FROM entries WHERE id=? AND owner_id IS ?",
                (entry_id, owner_id),
            ).fetchone()
        if row is None:
            raise _not_found(entry_id)
        return Entry(*row)


class MemoryEntryStore:
    """Stores entries in a dict; nothing survives the process."""

    def __init__(self):
        self.entries: Dict[int, Entry] = {}
        self.next_id = 1
        self.lock = threading.Lock()

    def create(self, title: str, content: str, owner_id: Optional[str]) -> Entry:
        title, content = check_text("title", title), check_text("content", content)
        now = time_now()
        with self.lock:
            entry = Entry(self.next_id, owner_id, title, content, now, now)
            self.entries[entry.id] = entry
            self.next_id += 1
        return _copy(entry)

    def get(self, entry_id: int, owner_id: Optional[str]) -> Optional[Entry]:
        entry = self.entries.get(entry_id)
        return _copy(entry) if entry and entry.owner_id == owner_id else None

    def list_by_owner(self, owner_id: Optional[str]) -> List[Entry]:
        with self.lock:
            owned = [_copy(e) for e in self.entries.values() if e.owner_id == owner_id]
        return sorted(owned, key=lambda e: e.id, reverse=True)

    def delete_by_id_and_owner(self, entry_id: int, owner_id: Optional[str]) -> bool:
        with self.lock:
            entry = self.entries.get(entry_id)
            if entry is None:
                return True
            if entry.owner_id != owner_id:
                raise _not_found(entry_id)
            del self.entries[entry_id]
        return True

    def update_by_id_and_owner(self, entry_id: int, owner_id: Optional[str], update: EntryUpdate) -> Entry:
        update = update.validate()
        with self.lock:
            entry = self.entries.get(entry_id)
            if entry is None or entry.owner_id != owner_id:
                raise _not_found(entry_id)
            if not update.is_empty():
                changed = Entry(entry.id, entry.owner_id, entry.title, entry.content, entry.created_time, time_now())
                for column, value in update.fields().items():
                    setattr(changed, column, value)
                self.entries[entry_id] = changed
                entry = changed
        return _copy(entry)


class JsonFileEntryStore:
    """
    Stores entries as a JSON array in a single file, newest first.

    Each write rewrites the whole file through a temporary file and
    ``os.replace`` so a crash never leaves a half-written array behind.
    Ids are millisecond timestamps, bumped past the highest id seen.
    """

    def __init__(self, path: str = "entries.json"):
        self.path = path
        self.lock = threading.Lock()
        self.last_id = 0
        if not os.path.exists(path):
            self._write([])
            logger.info("Created entry file {}", path)

    def _read(self) -> List[Entry]:
        try:
            with open(self.path, encoding="utf-8") as f:
                return [Entry.from_dict(item) for item in json.load(f)]
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise StoreError(f"Cannot read {self.path}: {e}") from e

    def _write(self, entries: List[Entry]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump([e.to_dict() for e in entries], f)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StoreError(f"Cannot write {self.path}: {e}") from e

    def create(self, title: str, content: str, owner_id: Optional[str]) -> Entry:
        title, content = check_text("title", title), check_text("content", content)
        now = time_now()
        with self.lock:
            entries = self._read()
            highest = max([e.id for e in entries] + [self.last_id], default=0)
            entry = Entry(max(int(time.time() * 1000), highest + 1), owner_id, title, content, now, now)
            self.last_id = entry.id
            entries.insert(0, entry)
            self._write(entries)
        return entry

    def get(self, entry_id: int, owner_id: Optional[str]) -> Optional[Entry]:
        for entry in self._read():
            if entry.id == entry_id and entry.owner_id == owner_id:
                return entry
        return None

    def list_by_owner(self, owner_id: Optional[str]) -> List[Entry]:
        owned = [e for e in self._read() if e.owner_id == owner_id]
        return sorted(owned, key=lambda e: e.id, reverse=True)

    def delete_by_id_and_owner(self, entry_id: int, owner_id: Optional[str]) -> bool:
        with self.lock:
            entries = self._read()
            match = next((e for e in entries if e.id == entry_id), None)
            if match is None:
                return True
            if match.owner_id != owner_id:
                raise _not_found(entry_id)
            self._write([e for e in entries if e.id != entry_id])
        return True

    def update_by_id_and_owner(self, entry_id: int, owner_id: Optional[str], update: EntryUpdate) -> Entry:
        update = update.validate()
        with self.lock:
            entries = self._read()
            match = next((e for e in entries if e.id == entry_id and e.owner_id == owner_id), None)
            if match is None:
                raise _not_found(entry_id)
            if not update.is_empty():
                for column, value in update.fields().items():
                    setattr(match, column, value)
                match.updated_time = time_now()
                self._write(entries)
        return match


def _copy(entry: Entry) -> Entry:
    return Entry.from_dict(entry.to_dict())
