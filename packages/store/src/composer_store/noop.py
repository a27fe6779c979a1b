"""No-op telemetry, used when telemetry is switched off.

The agent keeps calling the producer interface unconditionally; nothing is
written and every read comes back empty.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from composer_store.models import PersistResult
from composer_store.session import BaseTelemetry

if TYPE_CHECKING:
    from composer_store.generations import GenerationsMap
    from composer_store.models import GenerationEntry, HintReceivedEntry


class NoOpTelemetry(BaseTelemetry):
    """Silently discards all events. Zero configuration required."""

    def add_generation(self, base_url: str, entry: GenerationEntry) -> PersistResult:
        return PersistResult.skipped()

    def add_hint_received(self, base_url: str) -> PersistResult:
        return PersistResult.skipped()

    def increment_tab_usage(self) -> PersistResult:
        return PersistResult.skipped()

    def add_navigation(self, base_url: str, url: str) -> PersistResult:
        return PersistResult.skipped()

    def get_generations(self, base_url: str) -> list[GenerationEntry]:
        return []

    def load_generations(self) -> GenerationsMap:
        return {}

    def load_hints_received(self) -> list[HintReceivedEntry]:
        return []

    def load_tab_usage(self) -> list[int]:
        return []

    def get_navigation_history(self, base_url: str) -> list[str]:
        return []
