"""NavigationHistoryStore: recently visited pages per website."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from composer_store.base import LAST_WRITER_WINS, RecordStore
from composer_store.models import PersistResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_PER_SITE = 5

NavigationMap = dict[str, list[str]]


class NavigationHistoryStore(RecordStore[NavigationMap]):
    """Keeps the last few distinct page URLs visited under each base URL, newest first."""

    def __init__(
        self,
        path: str | Path,
        max_per_site: int = DEFAULT_MAX_PER_SITE,
        concurrency: str = LAST_WRITER_WINS,
        lock_timeout: float = 5.0,
    ):
        super().__init__(path, concurrency=concurrency, lock_timeout=lock_timeout)
        if max_per_site < 1:
            raise ValueError(f"max_per_site must be at least 1, got {max_per_site}")
        self.max_per_site = max_per_site

    def empty(self) -> NavigationMap:
        return {}

    def get(self, base_url: str) -> list[str]:
        return self.load().get(base_url, [])

    def add(self, base_url: str, url: str) -> PersistResult:
        def _visit(history: NavigationMap) -> NavigationMap:
            urls = history.setdefault(base_url, [])
            if url in urls:
                urls.remove(url)
            urls.insert(0, url)
            del urls[self.max_per_site :]
            return history

        logger.debug("Recording navigation to %s under %s", url, base_url)
        return self.mutate(_visit)

    def _decode(self, data: Any) -> NavigationMap:
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        return {base_url: [str(u) for u in urls] for base_url, urls in data.items() if isinstance(urls, list)}

    def _encode(self, value: NavigationMap) -> dict:
        return {base_url: list(urls) for base_url, urls in value.items()}
