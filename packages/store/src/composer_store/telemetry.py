"""Ghost-writer telemetry stores.

Two flat, append-only event logs:

  hints-received.json  one {"baseUrl", "timestamp"} object per hint shown
  tab-usage.json       one bare epoch-ms timestamp per hint accepted

Insertion order is chronological order. Acceptance events carry no website,
so tab usage can only ever be aggregated globally.

Neither log is capped by default. Pass ``max_events`` to keep only the newest
N events (the generation store caps itself because entries carry
screenshots; telemetry events are a few bytes each).
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Generic, TypeVar

from composer_store.base import LAST_WRITER_WINS, RecordStore
from composer_store.models import HintReceivedEntry, PersistResult, require_timestamp

logger = logging.getLogger(__name__)

E = TypeVar("E")


def now_ms() -> int:
    return int(time.time() * 1000)


class EventLogStore(RecordStore[list[E]], Generic[E]):
    """A JSON array of events, appended to one at a time."""

    def __init__(
        self,
        path: str | Path,
        max_events: int | None = None,
        concurrency: str = LAST_WRITER_WINS,
        lock_timeout: float = 5.0,
    ):
        super().__init__(path, concurrency=concurrency, lock_timeout=lock_timeout)
        if max_events is not None and max_events < 1:
            raise ValueError(f"max_events must be at least 1 or None, got {max_events}")
        self.max_events = max_events

    def empty(self) -> list[E]:
        return []

    def load_all(self) -> list[E]:
        return self.load()

    def _append(self, event: E) -> PersistResult:
        def _push(events: list[E]) -> list[E]:
            events.append(event)
            if self.max_events is not None and len(events) > self.max_events:
                logger.debug("Rotating %d old event(s) out of %s", len(events) - self.max_events, self.path)
                del events[: len(events) - self.max_events]
            return events

        return self.mutate(_push)

    def _decode(self, data: Any) -> list[E]:
        if not isinstance(data, list):
            raise ValueError(f"expected a JSON array, got {type(data).__name__}")
        return [self._event_from_json(item) for item in data]

    def _encode(self, value: list[E]) -> list:
        return [self._event_to_json(event) for event in value]

    def _event_from_json(self, item: Any) -> E:
        return item

    def _event_to_json(self, event: E) -> Any:
        return event


class HintsReceivedStore(EventLogStore[HintReceivedEntry]):
    """Log of hints surfaced to the user or the automation agent."""

    def record(self, base_url: str, timestamp: int | None = None) -> PersistResult:
        entry = HintReceivedEntry(base_url=base_url, timestamp=now_ms() if timestamp is None else timestamp)
        return self._append(entry)

    def _event_from_json(self, item: Any) -> HintReceivedEntry:
        return HintReceivedEntry(base_url=item["baseUrl"], timestamp=require_timestamp(item["timestamp"]))

    def _event_to_json(self, event: HintReceivedEntry) -> dict:
        return {"baseUrl": event.base_url, "timestamp": event.timestamp}


class TabUsageStore(EventLogStore[int]):
    """Log of accepted hints (tab key pressed), stored as bare timestamps."""

    def record(self, timestamp: int | None = None) -> PersistResult:
        return self._append(now_ms() if timestamp is None else timestamp)

    def _event_from_json(self, item: Any) -> int:
        return require_timestamp(item)
