"""Time-windowed aggregation over session telemetry.

Every function here is pure: it takes already-loaded events plus a reference
``now`` (epoch ms, defaults to the wall clock) and recomputes counts from
scratch. Nothing is cached between calls; volumes are small enough that a
full pass on every dashboard poll is cheap.

Windows are trailing and overlapping. An event counts toward a window when
``now - window <= timestamp <= now``, so

    last_hour <= last_day <= last_week <= last_30_days <= since_start

always holds. ``since_start`` counts every event regardless of timestamp.
"""

from __future__ import annotations

import time
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Mapping

if TYPE_CHECKING:
    from composer_store.models import GenerationEntry, HintReceivedEntry

HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS
WEEK_MS = 7 * DAY_MS
THIRTY_DAYS_MS = 30 * DAY_MS

FIELD_STATUSES = ("success", "warning", "error")


@dataclass
class TimeFrameStats:
    last_hour: int = 0
    last_day: int = 0
    last_week: int = 0
    last_30_days: int = 0
    since_start: int = 0

    def to_dict(self) -> dict:
        return {
            "lastHour": self.last_hour,
            "lastDay": self.last_day,
            "lastWeek": self.last_week,
            "last30Days": self.last_30_days,
            "sinceStart": self.since_start,
        }


@dataclass
class WebsiteStats:
    base_url: str
    stats: TimeFrameStats


@dataclass
class TelemetryStats:
    """Totals for one telemetry stream, with a per-website breakdown when the stream has one.

    ``by_website`` is None (not an empty list) for streams whose events carry
    no website key.
    """

    total: TimeFrameStats
    by_website: list[WebsiteStats] | None = None

    @property
    def supports_website_breakdown(self) -> bool:
        return self.by_website is not None


@dataclass
class WebsiteGenerationStats:
    base_url: str
    stats: TimeFrameStats
    generations_count: int
    fields_count: int


@dataclass
class GenerationStats:
    """Generation counts per window, plus field counts per window in ``fields_by_time_frame``."""

    total: TimeFrameStats
    generations_count: int
    fields_count: int
    fields_by_time_frame: TimeFrameStats
    by_website: list[WebsiteGenerationStats] = field(default_factory=list)
    status_counts: dict[str, int] = field(default_factory=dict)


def _now_ms() -> int:
    return int(time.time() * 1000)


def count_by_time_frame(timestamps: Iterable[int], now: int | None = None) -> TimeFrameStats:
    """Count timestamps falling in each trailing window."""
    return _sum_by_time_frame(((ts, 1) for ts in timestamps), now)


def _sum_by_time_frame(weighted: Iterable[tuple[int, int]], now: int | None) -> TimeFrameStats:
    now = _now_ms() if now is None else now
    stats = TimeFrameStats()
    for ts, weight in weighted:
        stats.since_start += weight
        if ts > now:
            continue
        age = now - ts
        if age <= HOUR_MS:
            stats.last_hour += weight
        if age <= DAY_MS:
            stats.last_day += weight
        if age <= WEEK_MS:
            stats.last_week += weight
        if age <= THIRTY_DAYS_MS:
            stats.last_30_days += weight
    return stats


def hints_received_stats(entries: Iterable[HintReceivedEntry], now: int | None = None) -> TelemetryStats:
    """Aggregate hint-received events globally and per base URL (busiest site first)."""
    now = _now_ms() if now is None else now
    entries = list(entries)
    grouped: dict[str, list[int]] = {}
    for entry in entries:
        grouped.setdefault(entry.base_url, []).append(entry.timestamp)

    by_website = [WebsiteStats(base_url=url, stats=count_by_time_frame(ts, now)) for url, ts in grouped.items()]
    by_website.sort(key=lambda w: w.stats.since_start, reverse=True)

    return TelemetryStats(total=count_by_time_frame((e.timestamp for e in entries), now), by_website=by_website)


def tab_usage_stats(timestamps: Iterable[int], now: int | None = None) -> TelemetryStats:
    """Aggregate hint-accepted events.

    Accepted events are bare timestamps with no website, so there is no
    per-website breakdown; ``by_website`` is left as None.
    """
    return TelemetryStats(total=count_by_time_frame(timestamps, now), by_website=None)


def acceptance_rate(accepted: int, received: int) -> float:
    """Percentage of received hints that were accepted; 0.0 when nothing was received."""
    if received == 0:
        return 0.0
    return accepted / received * 100


def generation_stats(generations: Mapping[str, list[GenerationEntry]], now: int | None = None) -> GenerationStats:
    """Aggregate generation history globally and per base URL."""
    now = _now_ms() if now is None else now
    status_counts: Counter[str] = Counter({status: 0 for status in FIELD_STATUSES})
    all_entries: list[GenerationEntry] = []
    by_website: list[WebsiteGenerationStats] = []

    for base_url, entries in generations.items():
        all_entries.extend(entries)
        by_website.append(
            WebsiteGenerationStats(
                base_url=base_url,
                stats=count_by_time_frame((e.created_at for e in entries), now),
                generations_count=len(entries),
                fields_count=sum(len(e.fields) for e in entries),
            )
        )
        for entry in entries:
            status_counts.update(f.status for f in entry.fields)

    by_website.sort(key=lambda w: w.stats.since_start, reverse=True)

    return GenerationStats(
        total=count_by_time_frame((e.created_at for e in all_entries), now),
        generations_count=len(all_entries),
        fields_count=sum(len(e.fields) for e in all_entries),
        fields_by_time_frame=_sum_by_time_frame(((e.created_at, len(e.fields)) for e in all_entries), now),
        by_website=by_website,
        status_counts=dict(status_counts),
    )
