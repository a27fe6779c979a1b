"""Tests for composer-store implementations."""

from __future__ import annotations

import json
import logging

import pytest
from filelock import FileLock

from composer_store.generations import GenerationHistoryStore, generation_from_dict
from composer_store.models import GeneratedField, GenerationEntry, HintReceivedEntry, PersistResult
from composer_store.navigation import NavigationHistoryStore
from composer_store.noop import NoOpTelemetry
from composer_store.session import SessionTelemetry
from composer_store.telemetry import HintsReceivedStore, TabUsageStore


def _make_entry(entry_id="gen-1", created_at=1_700_000_000_000, url="https://a.test/signup", with_screens=False):
    return GenerationEntry(
        id=entry_id,
        url=url,
        created_at=created_at,
        resource_description="Signup form",
        fields=[
            GeneratedField(label="Email", type="email", value="ada@example.com", status="success"),
            GeneratedField(label="Age", type="number", value="-1", status="warning"),
        ],
        screenshot_before="aGVsbG8=" if with_screens else None,
        screenshot_after="d29ybGQ=" if with_screens else None,
    )


# ---------------------------------------------------------------------------
# RecordStore behaviour (exercised through the concrete stores)
# ---------------------------------------------------------------------------


class TestRecordStore:
    def test_load_missing_file_returns_empty(self, tmp_path):
        assert GenerationHistoryStore(tmp_path / "generations.json").load() == {}
        assert HintsReceivedStore(tmp_path / "hints-received.json").load() == []
        assert TabUsageStore(tmp_path / "tab-usage.json").load() == []
        assert NavigationHistoryStore(tmp_path / "navigation-history.json").load() == {}

    def test_load_does_not_create_file(self, tmp_path):
        store = TabUsageStore(tmp_path / "nested" / "tab-usage.json")
        store.load()
        assert not (tmp_path / "nested").exists()

    def test_corrupt_file_returns_empty_and_is_left_in_place(self, tmp_path, caplog):
        path = tmp_path / "tab-usage.json"
        path.write_bytes(b"\x00\xff not json {{{")

        with caplog.at_level(logging.WARNING):
            assert TabUsageStore(path).load() == []

        assert path.read_bytes() == b"\x00\xff not json {{{"
        assert "TabUsageStore.load() failed" in caplog.text

    def test_wrong_shape_returns_empty(self, tmp_path):
        (tmp_path / "generations.json").write_text("[1, 2, 3]")
        (tmp_path / "hints.json").write_text('{"baseUrl": "https://x.test"}')
        (tmp_path / "tabs.json").write_text('["yesterday"]')

        assert GenerationHistoryStore(tmp_path / "generations.json").load() == {}
        assert HintsReceivedStore(tmp_path / "hints.json").load() == []
        assert TabUsageStore(tmp_path / "tabs.json").load() == []

    @pytest.mark.parametrize(
        "content",
        [
            '{"https://x.test": [{"id": "g", "createdAt": null}]}',
            '{"https://x.test": [{"id": "g", "createdAt": "yesterday"}]}',
            '{"https://x.test": [{"id": "g", "createdAt": 1, "fields": [1]}]}',
            '{"https://x.test": [{"id": "g", "createdAt": 1, "fields": "none"}]}',
            '{"https://x.test": ["g"]}',
        ],
    )
    def test_wrongly_typed_generation_returns_empty(self, tmp_path, content):
        path = tmp_path / "generations.json"
        path.write_text(content)

        assert GenerationHistoryStore(path).load() == {}

    @pytest.mark.parametrize(
        "content",
        [
            '[{"baseUrl": "https://x.test", "timestamp": "soon"}]',
            '[{"baseUrl": "https://x.test", "timestamp": null}]',
            '[{"baseUrl": "https://x.test", "timestamp": true}]',
            '["https://x.test"]',
        ],
    )
    def test_wrongly_typed_hint_returns_empty(self, tmp_path, content):
        path = tmp_path / "hints.json"
        path.write_text(content)

        assert HintsReceivedStore(path).load() == []

    def test_save_creates_directory_lazily(self, tmp_path):
        path = tmp_path / ".composer" / "tab-usage.json"
        result = TabUsageStore(path).save([1, 2])

        assert result.ok
        assert result.path == str(path)
        assert json.loads(path.read_text()) == [1, 2]

    def test_save_is_pretty_printed(self, tmp_path):
        path = tmp_path / "hints.json"
        HintsReceivedStore(path).save([HintReceivedEntry(base_url="https://x.test", timestamp=5)])

        assert path.read_text() == '[\n  {\n    "baseUrl": "https://x.test",\n    "timestamp": 5\n  }\n]'

    def test_save_overwrites_corrupt_file(self, tmp_path):
        path = tmp_path / "tab-usage.json"
        path.write_text("garbage")
        store = TabUsageStore(path)

        store.record(timestamp=42)

        assert store.load() == [42]

    def test_save_leaves_no_temp_files(self, tmp_path):
        store = TabUsageStore(tmp_path / "tab-usage.json")
        store.record(timestamp=1)
        store.record(timestamp=2)

        assert sorted(p.name for p in tmp_path.iterdir()) == ["tab-usage.json"]

    def test_save_failure_is_reported_not_raised(self, tmp_path, caplog):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        store = TabUsageStore(blocker / "tab-usage.json")

        with caplog.at_level(logging.WARNING):
            result = store.record(timestamp=1)

        assert not result.ok
        assert result.status == "failed"
        assert result.reason
        assert "TabUsageStore" in caplog.text

    def test_unknown_concurrency_policy_rejected(self, tmp_path):
        with pytest.raises(ValueError, match="concurrency"):
            TabUsageStore(tmp_path / "t.json", concurrency="optimistic")

    def test_save_load_roundtrip_file_content(self, tmp_path):
        path = tmp_path / "generations.json"
        store = GenerationHistoryStore(path)
        store.add("https://a.test", _make_entry(with_screens=True))
        store.add("https://b.test", _make_entry(entry_id="gen-2"))
        before = path.read_text()

        store.save(store.load())

        assert path.read_text() == before

    def test_loads_file_written_by_another_tool(self, tmp_path):
        path = tmp_path / "generations.json"
        original = {
            "https://a.test": [
                {
                    "id": "1700000000000",
                    "url": "https://a.test/contact",
                    "createdAt": 1700000000000,
                    "screenshotBefore": "AAAA",
                    "resourceDescription": "Contact us",
                    "fields": [{"label": "Name", "type": "text", "value": "Ada", "status": "success"}],
                }
            ]
        }
        path.write_text(json.dumps(original, indent=2))
        store = GenerationHistoryStore(path)

        store.save(store.load())

        assert json.loads(path.read_text()) == original


# ---------------------------------------------------------------------------
# GenerationHistoryStore
# ---------------------------------------------------------------------------


class TestGenerationHistoryStore:
    def test_add_and_get(self, tmp_path):
        store = GenerationHistoryStore(tmp_path / "generations.json")
        result = store.add("https://a.test", _make_entry())

        assert result.ok
        entries = store.get("https://a.test")
        assert len(entries) == 1
        assert entries[0] == _make_entry()

    def test_get_unknown_base_url_returns_empty(self, tmp_path):
        store = GenerationHistoryStore(tmp_path / "generations.json")
        store.add("https://a.test", _make_entry())
        assert store.get("https://other.test") == []

    def test_newest_first(self, tmp_path):
        store = GenerationHistoryStore(tmp_path / "generations.json")
        store.add("https://a.test", _make_entry(entry_id="old", created_at=1))
        store.add("https://a.test", _make_entry(entry_id="new", created_at=2))

        assert [e.id for e in store.get("https://a.test")] == ["new", "old"]

    def test_capacity_keeps_fifty_most_recent(self, tmp_path):
        store = GenerationHistoryStore(tmp_path / "generations.json")
        for i in range(60):
            store.add("https://a.test", _make_entry(entry_id=f"gen-{i}", created_at=1_000 + i))

        entries = store.get("https://a.test")
        assert len(entries) == 50
        assert entries[0].id == "gen-59"
        assert entries[-1].id == "gen-10"
        assert [e.id for e in entries] == [f"gen-{i}" for i in range(59, 9, -1)]

    def test_capacity_is_per_base_url(self, tmp_path):
        store = GenerationHistoryStore(tmp_path / "generations.json", max_per_site=3)
        for i in range(5):
            store.add("https://a.test", _make_entry(entry_id=f"a-{i}"))
        store.add("https://b.test", _make_entry(entry_id="b-0"))

        assert len(store.get("https://a.test")) == 3
        assert [e.id for e in store.get("https://b.test")] == ["b-0"]

    def test_invalid_capacity_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            GenerationHistoryStore(tmp_path / "generations.json", max_per_site=0)

    def test_optional_screenshots_omitted_on_disk(self, tmp_path):
        path = tmp_path / "generations.json"
        GenerationHistoryStore(path).add("https://a.test", _make_entry())

        stored = json.loads(path.read_text())["https://a.test"][0]
        assert "screenshotBefore" not in stored
        assert "screenshotAfter" not in stored
        assert stored["createdAt"] == 1_700_000_000_000
        assert stored["resourceDescription"] == "Signup form"

    def test_non_list_values_skipped(self, tmp_path):
        path = tmp_path / "generations.json"
        path.write_text(json.dumps({"https://a.test": "oops", "https://b.test": []}))

        assert GenerationHistoryStore(path).load() == {"https://b.test": []}

    def test_from_dict_fills_defaults(self):
        entry = generation_from_dict({"id": "g", "createdAt": 5, "fields": [{"label": "Email"}]})

        assert entry.url == ""
        assert entry.screenshot_before is None
        assert entry.fields == [GeneratedField(label="Email", type="", value="", status="success")]

    def test_from_dict_rejects_non_numeric_created_at(self):
        with pytest.raises(ValueError, match="createdAt"):
            generation_from_dict({"id": "g", "createdAt": "2024-01-01"})

    def test_base_urls(self, tmp_path):
        store = GenerationHistoryStore(tmp_path / "generations.json")
        store.add("https://a.test", _make_entry())
        store.add("https://b.test", _make_entry())
        assert sorted(store.base_urls()) == ["https://a.test", "https://b.test"]

    def test_persists_across_handles(self, tmp_path):
        """Data written by one store handle must be readable by another."""
        path = tmp_path / "generations.json"
        GenerationHistoryStore(path).add("https://a.test", _make_entry())

        assert len(GenerationHistoryStore(path).get("https://a.test")) == 1


# ---------------------------------------------------------------------------
# Telemetry stores
# ---------------------------------------------------------------------------


class TestHintsReceivedStore:
    def test_record_appends_in_order(self, tmp_path):
        store = HintsReceivedStore(tmp_path / "hints-received.json")
        store.record("https://x.test", timestamp=1)
        store.record("https://y.test", timestamp=2)

        assert store.load_all() == [
            HintReceivedEntry(base_url="https://x.test", timestamp=1),
            HintReceivedEntry(base_url="https://y.test", timestamp=2),
        ]

    def test_record_stamps_current_time(self, tmp_path, mocker):
        mocker.patch("composer_store.telemetry.time.time", return_value=1_700_000_000.5)
        store = HintsReceivedStore(tmp_path / "hints-received.json")

        store.record("https://x.test")

        assert store.load_all()[0].timestamp == 1_700_000_000_500

    def test_unbounded_by_default(self, tmp_path):
        store = HintsReceivedStore(tmp_path / "hints-received.json")
        for i in range(120):
            store.record("https://x.test", timestamp=i)
        assert len(store.load_all()) == 120

    def test_max_events_keeps_newest(self, tmp_path):
        store = HintsReceivedStore(tmp_path / "hints-received.json", max_events=3)
        for i in range(5):
            store.record("https://x.test", timestamp=i)
        assert [e.timestamp for e in store.load_all()] == [2, 3, 4]


class TestTabUsageStore:
    def test_record_appends_timestamps(self, tmp_path):
        path = tmp_path / "tab-usage.json"
        store = TabUsageStore(path)
        store.record(timestamp=10)
        store.record(timestamp=20)

        assert store.load_all() == [10, 20]
        assert json.loads(path.read_text()) == [10, 20]

    def test_record_uses_wall_clock(self, tmp_path, mocker):
        mocker.patch("composer_store.telemetry.time.time", return_value=2.0)
        store = TabUsageStore(tmp_path / "tab-usage.json")
        store.record()
        assert store.load_all() == [2000]


# ---------------------------------------------------------------------------
# NavigationHistoryStore
# ---------------------------------------------------------------------------


class TestNavigationHistoryStore:
    def test_newest_first_without_duplicates(self, tmp_path):
        store = NavigationHistoryStore(tmp_path / "navigation-history.json")
        store.add("https://a.test", "https://a.test/one")
        store.add("https://a.test", "https://a.test/two")
        store.add("https://a.test", "https://a.test/one")

        assert store.get("https://a.test") == ["https://a.test/one", "https://a.test/two"]

    def test_keeps_last_five(self, tmp_path):
        store = NavigationHistoryStore(tmp_path / "navigation-history.json")
        for i in range(7):
            store.add("https://a.test", f"https://a.test/{i}")

        assert store.get("https://a.test") == [f"https://a.test/{i}" for i in range(6, 1, -1)]


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


class TestConcurrency:
    def test_lost_update_between_two_writers(self, tmp_path):
        """Known limitation under last-writer-wins: a stale full-file rewrite drops another writer's event."""
        path = tmp_path / "tab-usage.json"
        agent = TabUsageStore(path)
        dashboard = TabUsageStore(path)

        stale = agent.load()
        dashboard.record(timestamp=1)
        agent.save(stale + [2])

        assert agent.load() == [2]

    def test_sequential_writers_see_each_other(self, tmp_path):
        path = tmp_path / "tab-usage.json"
        TabUsageStore(path).record(timestamp=1)
        TabUsageStore(path).record(timestamp=2)

        assert TabUsageStore(path).load() == [1, 2]

    def test_exclusive_policy_records_normally(self, tmp_path):
        store = TabUsageStore(tmp_path / "tab-usage.json", concurrency="exclusive")
        assert store.record(timestamp=1).ok
        assert store.record(timestamp=2).ok
        assert store.load() == [1, 2]

    def test_exclusive_policy_times_out_when_lock_held(self, tmp_path):
        path = tmp_path / "tab-usage.json"
        store = TabUsageStore(path, concurrency="exclusive", lock_timeout=0.05)

        with FileLock(f"{path}.lock"):
            result = store.record(timestamp=1)

        assert result.status == "failed"
        assert "lock timeout" in result.reason
        assert store.load() == []


# ---------------------------------------------------------------------------
# SessionTelemetry / NoOpTelemetry
# ---------------------------------------------------------------------------


class TestSessionTelemetry:
    def test_each_store_owns_one_file(self, tmp_path):
        telemetry = SessionTelemetry(tmp_path / ".composer")
        telemetry.add_generation("https://a.test", _make_entry())
        telemetry.add_hint_received("https://a.test")
        telemetry.increment_tab_usage()
        telemetry.add_navigation("https://a.test", "https://a.test/signup")

        assert sorted(p.name for p in (tmp_path / ".composer").iterdir()) == [
            "generations.json",
            "hints-received.json",
            "navigation-history.json",
            "tab-usage.json",
        ]

    def test_consumer_reads_producer_writes(self, tmp_path):
        producer = SessionTelemetry(tmp_path)
        consumer = SessionTelemetry(tmp_path)

        producer.add_generation("https://a.test", _make_entry())
        producer.add_hint_received("https://a.test")
        producer.increment_tab_usage()

        assert len(consumer.get_generations("https://a.test")) == 1
        assert list(consumer.load_generations()) == ["https://a.test"]
        assert consumer.load_hints_received()[0].base_url == "https://a.test"
        assert len(consumer.load_tab_usage()) == 1

    def test_producer_calls_never_raise_on_unwritable_dir(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("")
        telemetry = SessionTelemetry(blocker / ".composer")

        assert telemetry.add_hint_received("https://a.test").status == "failed"
        assert telemetry.increment_tab_usage().status == "failed"
        assert telemetry.add_generation("https://a.test", _make_entry()).status == "failed"
        assert telemetry.load_hints_received() == []

    def test_capacity_settings_forwarded(self, tmp_path):
        telemetry = SessionTelemetry(tmp_path, max_generations_per_site=2, max_telemetry_events=1)
        for i in range(3):
            telemetry.add_generation("https://a.test", _make_entry(entry_id=str(i)))
            telemetry.increment_tab_usage()

        assert [e.id for e in telemetry.get_generations("https://a.test")] == ["2", "1"]
        assert len(telemetry.load_tab_usage()) == 1


class TestNoOpTelemetry:
    def test_writes_are_skipped(self):
        telemetry = NoOpTelemetry()
        result = telemetry.add_generation("https://a.test", _make_entry())
        assert result == PersistResult.skipped()
        assert not result.ok
        assert telemetry.add_hint_received("https://a.test").status == "skipped"
        assert telemetry.increment_tab_usage().status == "skipped"
        assert telemetry.add_navigation("https://a.test", "https://a.test/x").status == "skipped"

    def test_reads_are_empty(self):
        telemetry = NoOpTelemetry()
        telemetry.add_hint_received("https://a.test")
        assert telemetry.get_generations("https://a.test") == []
        assert telemetry.load_generations() == {}
        assert telemetry.load_hints_received() == []
        assert telemetry.load_tab_usage() == []
        assert telemetry.get_navigation_history("https://a.test") == []
