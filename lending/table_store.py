"""File-backed tables: one entity type per file, header line first.

Every mutating call is a load/mutate/save sequence over the whole file. Each
table serializes those sequences behind its own re-entrant lock, and callers
that span several calls (or several tables) hold ``locked()`` themselves.
The lock only guards threads of this process; two processes writing the
same file can still interleave.
"""

from __future__ import annotations

import logging
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Dict, Generic, Iterator, List, Optional, TypeVar, Union

from lending.codec import RecordCodec
from lending.errors import IOFailureError, MalformedRecordError, NotFoundError

logger = logging.getLogger(__name__)

T = TypeVar("T")

ENCODING = "utf-8"

# one lock per backing file, shared by every TableStore opened on it
_file_locks: Dict[Path, threading.RLock] = {}
_registry_lock = threading.Lock()


def lock_for(path: Path) -> threading.RLock:
    key = path.resolve()
    with _registry_lock:
        if key not in _file_locks:
            _file_locks[key] = threading.RLock()
        return _file_locks[key]


class TableStore(Generic[T]):
    """Generic persistence for one entity type backed by one text file."""

    def __init__(self, path: Union[str, Path], codec: RecordCodec[T]) -> None:
        self.path = Path(path)
        self.codec = codec
        self._lock = lock_for(self.path)

    def __repr__(self) -> str:
        return f"TableStore({str(self.path)!r})"

    @contextmanager
    def locked(self) -> Iterator["TableStore[T]"]:
        """Hold the table lock across several calls."""
        with self._lock:
            yield self

    def initialize(self) -> bool:
        """Write a header-only file if none exists or it is empty. Returns True if written."""
        with self._lock:
            if self.path.exists() and self.path.stat().st_size > 0:
                return False
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise IOFailureError(f"Cannot create directory for {self.path}: {exc}") from exc
            self._write_all([])
            logger.info(f"Created table {self.path}")
            return True

    # ------------------------- Reads ------------------------- #
    def load_all(self) -> List[T]:
        """Decode every record. One bad line fails the whole load.

        An empty file reads as an empty table; a non-empty file must start
        with the codec's header line.
        """
        try:
            with open(self.path, "r", encoding=ENCODING, newline="") as f:
                content = f.read()
        except FileNotFoundError as exc:
            raise NotFoundError(f"Table file {self.path} does not exist") from exc
        except OSError as exc:
            raise IOFailureError(f"Cannot read {self.path}: {exc}") from exc

        if not content:
            return []
        # rows end in "\n" only; str.splitlines would also split on \x0c, \x85, U+2028 ...
        lines = [line.rstrip("\r") for line in content.split("\n")]
        if lines[0] != self.codec.header_line:
            raise MalformedRecordError(f"{self.path.name} does not start with the expected header", lines[0])
        items = [self.codec.decode(line) for line in lines[1:] if line]
        logger.debug(f"Loaded {len(items)} rows from {self.path.name}")
        return items

    def find_by_key(self, key: str) -> T:
        for item in self.load_all():
            if self.codec.key(item) == key:
                return item
        raise NotFoundError(f"No record with key {key} in {self.path.name}")

    def find_first(self, predicate: Callable[[T], bool]) -> Optional[T]:
        return next((item for item in self.load_all() if predicate(item)), None)

    def exists(self, key: str) -> bool:
        return any(self.codec.key(item) == key for item in self.load_all())

    # ------------------------- Writes ------------------------- #
    def save_all(self, items: List[T]) -> None:
        """Replace the whole file with ``items``."""
        with self._lock:
            self._write_all(items)

    def append(self, item: T) -> None:
        """Add one line at the end. No duplicate check."""
        line = self.codec.encode(item)
        with self._lock:
            if not self.path.exists():
                raise NotFoundError(f"Table file {self.path} does not exist")
            try:
                with open(self.path, "a", encoding=ENCODING, newline="") as f:
                    # an emptied table gets its header back before the first row
                    if f.tell() == 0:
                        f.write(self.codec.header_line + "\n")
                    f.write(line + "\n")
            except OSError as exc:
                raise IOFailureError(f"Cannot append to {self.path}: {exc}") from exc

    def update_by_key(self, updated: T) -> bool:
        """Replace the first record with the same key.

        A missing key is a no-op, not an error: the file is left untouched and
        False is returned. Callers that need an error must check first.
        """
        key = self.codec.key(updated)
        with self._lock:
            items = self.load_all()
            for index, item in enumerate(items):
                if self.codec.key(item) == key:
                    items[index] = updated
                    self._write_all(items)
                    return True
            return False

    def delete_by_key(self, key: str) -> int:
        """Drop every record with ``key``. Returns how many were removed."""
        with self._lock:
            items = self.load_all()
            kept = [item for item in items if self.codec.key(item) != key]
            self._write_all(kept)
            return len(items) - len(kept)

    def _write_all(self, items: List[T]) -> None:
        # encode first so a bad value never truncates the table
        lines = [self.codec.header_line] + [self.codec.encode(item) for item in items]
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            with open(tmp_path, "w", encoding=ENCODING, newline="") as f:
                f.write("\n".join(lines) + "\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except OSError as exc:
            try:
                tmp_path.unlink()
            except OSError:
                pass
            raise IOFailureError(f"Cannot write {self.path}: {exc}") from exc
        logger.debug(f"Wrote {len(items)} rows to {self.path.name}")
