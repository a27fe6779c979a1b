"""Session telemetry facade.

The automation agent (producer) and the dashboard or CLI (consumer) both talk
to a BaseTelemetry instead of individual stores, so telemetry can be switched
off without conditional checks at every call site.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from composer_store.base import LAST_WRITER_WINS
from composer_store.generations import DEFAULT_MAX_PER_SITE as DEFAULT_MAX_GENERATIONS
from composer_store.generations import GenerationHistoryStore, GenerationsMap
from composer_store.models import GenerationEntry, HintReceivedEntry, PersistResult
from composer_store.navigation import DEFAULT_MAX_PER_SITE as DEFAULT_MAX_NAVIGATION
from composer_store.navigation import NavigationHistoryStore
from composer_store.telemetry import HintsReceivedStore, TabUsageStore

GENERATIONS_FILE = "generations.json"
HINTS_RECEIVED_FILE = "hints-received.json"
TAB_USAGE_FILE = "tab-usage.json"
NAVIGATION_HISTORY_FILE = "navigation-history.json"


class BaseTelemetry(ABC):
    """Producer and consumer interface over the session telemetry stores.

    Producer methods are fire-and-forget: they never raise, and report the
    outcome as a PersistResult. Consumer methods return empty values when
    nothing has been recorded.
    """

    # --- producer ---

    @abstractmethod
    def add_generation(self, base_url: str, entry: GenerationEntry) -> PersistResult:
        """Record a completed form-fill generation for a website."""

    @abstractmethod
    def add_hint_received(self, base_url: str) -> PersistResult:
        """Record that a ghost-writer hint was shown on a website."""

    @abstractmethod
    def increment_tab_usage(self) -> PersistResult:
        """Record that a hint was accepted."""

    @abstractmethod
    def add_navigation(self, base_url: str, url: str) -> PersistResult:
        """Record a page visit under a website."""

    # --- consumer ---

    @abstractmethod
    def get_generations(self, base_url: str) -> list[GenerationEntry]:
        """Return generations for a website, newest first."""

    @abstractmethod
    def load_generations(self) -> GenerationsMap:
        """Return every website's generations."""

    @abstractmethod
    def load_hints_received(self) -> list[HintReceivedEntry]:
        """Return the hint-received log in chronological order."""

    @abstractmethod
    def load_tab_usage(self) -> list[int]:
        """Return hint-accepted timestamps in chronological order."""

    @abstractmethod
    def get_navigation_history(self, base_url: str) -> list[str]:
        """Return recently visited page URLs for a website, newest first."""


class SessionTelemetry(BaseTelemetry):
    """File-backed telemetry: one JSON file per store inside ``data_dir``.

    The directory and files are created lazily on the first write. Every
    call loads from disk, so separate processes pointed at the same
    directory see each other's writes on their next call.
    """

    def __init__(
        self,
        data_dir: str | Path,
        max_generations_per_site: int = DEFAULT_MAX_GENERATIONS,
        max_navigation_per_site: int = DEFAULT_MAX_NAVIGATION,
        max_telemetry_events: int | None = None,
        concurrency: str = LAST_WRITER_WINS,
        lock_timeout: float = 5.0,
    ):
        self.data_dir = Path(data_dir)
        common = {"concurrency": concurrency, "lock_timeout": lock_timeout}
        self.generations = GenerationHistoryStore(
            self.data_dir / GENERATIONS_FILE, max_per_site=max_generations_per_site, **common
        )
        self.hints_received = HintsReceivedStore(
            self.data_dir / HINTS_RECEIVED_FILE, max_events=max_telemetry_events, **common
        )
        self.tab_usage = TabUsageStore(self.data_dir / TAB_USAGE_FILE, max_events=max_telemetry_events, **common)
        self.navigation = NavigationHistoryStore(
            self.data_dir / NAVIGATION_HISTORY_FILE, max_per_site=max_navigation_per_site, **common
        )

    def add_generation(self, base_url: str, entry: GenerationEntry) -> PersistResult:
        return self.generations.add(base_url, entry)

    def add_hint_received(self, base_url: str) -> PersistResult:
        return self.hints_received.record(base_url)

    def increment_tab_usage(self) -> PersistResult:
        return self.tab_usage.record()

    def add_navigation(self, base_url: str, url: str) -> PersistResult:
        return self.navigation.add(base_url, url)

    def get_generations(self, base_url: str) -> list[GenerationEntry]:
        return self.generations.get(base_url)

    def load_generations(self) -> GenerationsMap:
        return self.generations.load_all()

    def load_hints_received(self) -> list[HintReceivedEntry]:
        return self.hints_received.load_all()

    def load_tab_usage(self) -> list[int]:
        return self.tab_usage.load_all()

    def get_navigation_history(self, base_url: str) -> list[str]:
        return self.navigation.get(base_url)
