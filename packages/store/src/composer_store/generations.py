"""GenerationHistoryStore: per-website ring of recent AI form-fill results.

Data format: a single JSON object in ``generations.json`` mapping a base URL
(``scheme://host``) to a list of generation dicts, newest first.

Each add() rewrites the whole map, not just the affected key. Screenshots
make entries heavy, so every list is capped (50 by default); the oldest
entry is dropped on insert and is never recoverable.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from composer_store.base import LAST_WRITER_WINS, RecordStore
from composer_store.models import GeneratedField, GenerationEntry, PersistResult, require_timestamp

logger = logging.getLogger(__name__)

DEFAULT_MAX_PER_SITE = 50

GenerationsMap = dict[str, list[GenerationEntry]]


class GenerationHistoryStore(RecordStore[GenerationsMap]):
    """Stores generation history keyed by base URL."""

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

    def empty(self) -> GenerationsMap:
        return {}

    def get(self, base_url: str) -> list[GenerationEntry]:
        """Return the generations for a base URL, newest first, or []."""
        return self.load().get(base_url, [])

    def load_all(self) -> GenerationsMap:
        return self.load()

    def base_urls(self) -> list[str]:
        return list(self.load())

    def add(self, base_url: str, entry: GenerationEntry) -> PersistResult:
        """Prepend ``entry`` to the base URL's list and trim it to capacity."""

        def _prepend(generations: GenerationsMap) -> GenerationsMap:
            entries = generations.setdefault(base_url, [])
            entries.insert(0, entry)
            if len(entries) > self.max_per_site:
                logger.debug("Dropping %d old generation(s) for %s", len(entries) - self.max_per_site, base_url)
                del entries[self.max_per_site :]
            return generations

        return self.mutate(_prepend)

    def _decode(self, data: Any) -> GenerationsMap:
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        generations: GenerationsMap = {}
        for base_url, entries in data.items():
            # Keys whose value is not a list are skipped rather than failing the whole file.
            if isinstance(entries, list):
                generations[base_url] = [generation_from_dict(e) for e in entries]
        return generations

    def _encode(self, value: GenerationsMap) -> dict:
        return {base_url: [generation_to_dict(e) for e in entries] for base_url, entries in value.items()}


def generation_to_dict(entry: GenerationEntry) -> dict:
    """Serialize an entry to its camelCase on-disk form."""
    d: dict[str, Any] = {
        "id": entry.id,
        "url": entry.url,
        "createdAt": entry.created_at,
    }
    if entry.screenshot_before is not None:
        d["screenshotBefore"] = entry.screenshot_before
    if entry.screenshot_after is not None:
        d["screenshotAfter"] = entry.screenshot_after
    d["resourceDescription"] = entry.resource_description
    d["fields"] = [{"label": f.label, "type": f.type, "value": f.value, "status": f.status} for f in entry.fields]
    return d


def generation_from_dict(d: Any) -> GenerationEntry:
    """Build an entry from its on-disk form.

    Optional keys fall back to defaults. Raises ValueError when the entry is
    not an object, ``createdAt`` is not numeric, or ``fields`` is not a list
    of objects.
    """
    if not isinstance(d, dict):
        raise ValueError(f"expected a generation object, got {type(d).__name__}")
    fields = d.get("fields", [])
    if not isinstance(fields, list) or not all(isinstance(f, dict) for f in fields):
        raise ValueError("expected 'fields' to be a list of objects")
    return GenerationEntry(
        id=d.get("id", ""),
        url=d.get("url", ""),
        created_at=require_timestamp(d.get("createdAt", 0), "createdAt"),
        resource_description=d.get("resourceDescription", ""),
        fields=[
            GeneratedField(
                label=f.get("label", ""),
                type=f.get("type", ""),
                value=f.get("value", ""),
                status=f.get("status", "success"),
            )
            for f in fields
        ],
        screenshot_before=d.get("screenshotBefore"),
        screenshot_after=d.get("screenshotAfter"),
    )
