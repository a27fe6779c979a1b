"""Record store: one JSON file per semantic stream.

Every concrete store (generations, hints received, tab usage, navigation
history) is a RecordStore that knows how to turn its in-memory value into a
JSON document and back. The base class owns the file handling:

- load() reads the whole file; a missing file is an empty store and a
  corrupt or wrongly shaped file is logged and treated as empty.
- save() rewrites the whole file through a temp file + os.replace so readers
  never see a half-written document.
- mutate() is the read-modify-write cycle every store operation goes through.

Nothing here raises on persistence failures. The automation run that
produces telemetry must never be aborted because a write failed, so failures
are logged and reported back as a PersistResult.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Generic, TypeVar

from filelock import FileLock, Timeout

from composer_store.models import PersistResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

LAST_WRITER_WINS = "last-writer-wins"
EXCLUSIVE = "exclusive"
CONCURRENCY_POLICIES = (LAST_WRITER_WINS, EXCLUSIVE)


class RecordStore(ABC, Generic[T]):
    """Generic load/save/mutate persistence for a single JSON file.

    Concurrency policy:
      last-writer-wins → no locking. Two processes that load the same state
                         and both write will lose one of the updates.
      exclusive        → mutate() holds an advisory lock on ``<file>.lock``
                         for the whole read-modify-write cycle.
    """

    def __init__(self, path: str | Path, concurrency: str = LAST_WRITER_WINS, lock_timeout: float = 5.0):
        if concurrency not in CONCURRENCY_POLICIES:
            raise ValueError(
                f"Unknown concurrency policy: {concurrency!r}. Choose one of {', '.join(CONCURRENCY_POLICIES)}."
            )
        self.path = Path(path)
        self.concurrency = concurrency
        self.lock_timeout = lock_timeout

    @abstractmethod
    def empty(self) -> T:
        """Return the value an absent or unreadable file stands for."""

    @abstractmethod
    def _decode(self, data: Any) -> T:
        """Convert parsed JSON into the store's value.

        Raise ValueError when ``data`` does not have the declared shape.
        """

    @abstractmethod
    def _encode(self, value: T) -> Any:
        """Convert the store's value into JSON-serializable data."""

    def load(self) -> T:
        if not self.path.exists():
            logger.debug("%s does not exist yet; treating as empty.", self.path)
            return self.empty()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return self._decode(data)
        except (OSError, ValueError, TypeError, KeyError, AttributeError) as e:
            # The corrupt file is left in place; the next successful save overwrites it.
            logger.warning("%s.load() failed for %s (%s): %s", type(self).__name__, self.path, type(e).__name__, e)
            return self.empty()

    def save(self, value: T) -> PersistResult:
        try:
            content = json.dumps(self._encode(value), indent=2, ensure_ascii=False)
            self._write(content)
        except (OSError, ValueError, TypeError) as e:
            logger.warning("%s.save() failed for %s (%s): %s", type(self).__name__, self.path, type(e).__name__, e)
            return PersistResult.failed(str(self.path), f"{type(e).__name__}: {e}")
        return PersistResult.persisted(str(self.path))

    def mutate(self, fn: Callable[[T], T]) -> PersistResult:
        """Load the current value, apply ``fn`` and write the result back."""
        try:
            with self._lock():
                return self.save(fn(self.load()))
        except Timeout:
            logger.warning(
                "%s: could not acquire lock for %s within %ss", type(self).__name__, self.path, self.lock_timeout
            )
            return PersistResult.failed(str(self.path), f"lock timeout after {self.lock_timeout}s")
        except OSError as e:
            logger.warning("%s.mutate() failed for %s (%s): %s", type(self).__name__, self.path, type(e).__name__, e)
            return PersistResult.failed(str(self.path), f"{type(e).__name__}: {e}")

    def _lock(self):
        if self.concurrency != EXCLUSIVE:
            return contextlib.nullcontext()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        return FileLock(f"{self.path}.lock", timeout=self.lock_timeout)

    def _write(self, content: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_path, self.path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp_path)
            raise
