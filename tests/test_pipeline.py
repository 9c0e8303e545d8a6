import time
from pathlib import Path

import pytest

from core.heuristics import heuristic_classify
from ingestion_pipeline import fetch_all_sources, run_ingestion
from store.repository import SignalStore
from conftest import make_item

DATE = "2026-02-10"


class FakeFetcher:
    """Items per source name; an Exception value makes that source fail."""

    def __init__(self, by_name, delays=None):
        self.by_name = by_name
        self.delays = delays or {}
        self.limits = {}

    def __call__(self, source, limit):
        self.limits[source["name"]] = limit
        if source["name"] in self.delays:
            time.sleep(self.delays[source["name"]])
        outcome = self.by_name.get(source["name"], [])
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def items(prefix, count, tier=2):
    return [make_item(f"https://{prefix}.example.com/post-{n}", tier=tier) for n in range(count)]


def run(store, tmp_path, fetcher, classifier=heuristic_classify, **kwargs):
    return run_ingestion(
        date=DATE,
        store=store,
        fetcher=fetcher,
        classifier=classifier,
        logs_dir=tmp_path / "logs",
        **kwargs,
    )


def test_successful_run(store, make_source, tmp_path):
    make_source(name="Alpha")
    make_source(name="Beta")
    fetcher = FakeFetcher({"Alpha": items("alpha", 3), "Beta": items("beta", 2)})

    result = run(store, tmp_path, fetcher)

    assert result["status"] == "SUCCESS"
    assert result["items_fetched"] == 5
    assert result["items_created"] == 5
    assert result["source_errors"] == 0
    assert result["classification_errors"] == 0

    run_row = store.get_run(result["run_id"])
    assert run_row["status"] == "SUCCESS"
    assert run_row["error_message"] is None
    assert run_row["edition_id"] is not None

    edition = store.get_edition(DATE)
    assert edition["total_count"] == 5
    assert edition["hot_count"] + edition["notable_count"] + edition["quiet_count"] == 5
    assert all(s["source_url"] in s["citations"] for s in edition["signals"])
    assert edition["morning_note"].startswith("Today leans toward")

    log_text = Path(result["log_path"]).read_text()
    assert log_text.startswith(f"[run:{result['run_id']}] Starting ingestion for {DATE}")
    assert "Enabled sources: 2" in log_text
    assert "Alpha: fetched 3 items" in log_text
    assert "Signals persisted: 5" in log_text
    assert run_row["log_text"] == log_text


def test_per_source_limit_spreads_budget(store, make_source, tmp_path):
    for name in ("A1", "A2", "A3", "A4"):
        make_source(name=name)
    fetcher = FakeFetcher({})

    run(store, tmp_path, fetcher, max_items=10)

    assert set(fetcher.limits.values()) == {5}


def test_failing_source_makes_run_partial(store, make_source, tmp_path):
    make_source(name="Alpha")
    broken = make_source(name="Broken")
    fetcher = FakeFetcher({"Alpha": items("alpha", 2), "Broken": RuntimeError("503 Server Error")})

    result = run(store, tmp_path, fetcher)

    assert result["status"] == "PARTIAL"
    assert result["source_errors"] == 1
    assert result["items_created"] == 2
    assert store.get_source(broken["id"])["last_error"] == "503 Server Error"
    assert "Broken: fetch failed (503 Server Error)" in Path(result["log_path"]).read_text()


def test_all_sources_failing_fails_run(store, make_source, tmp_path):
    make_source(name="Broken")
    fetcher = FakeFetcher({"Broken": RuntimeError("connection refused")})

    result = run(store, tmp_path, fetcher)

    assert result["status"] == "FAILED"
    assert result["items_created"] == 0
    assert store.get_run(result["run_id"])["error_message"] == "No signals were created."

    edition = store.get_edition(DATE)
    assert edition["total_count"] == 0
    assert "found no eligible signals for February 10, 2026" in edition["morning_note"]


def test_no_sources_fails_run(store, tmp_path):
    result = run(store, tmp_path, FakeFetcher({}))
    assert result["status"] == "FAILED"
    assert store.get_run(result["run_id"])["status"] == "FAILED"


def test_classification_error_drops_item(store, make_source, tmp_path):
    make_source(name="Alpha")
    fetched = items("alpha", 3)
    bad_url = fetched[1]["source_url"]

    def classifier(item):
        if item["source_url"] == bad_url:
            raise RuntimeError("model exploded")
        return heuristic_classify(item)

    result = run(store, tmp_path, FakeFetcher({"Alpha": fetched}), classifier=classifier)

    assert result["status"] == "PARTIAL"
    assert result["classification_errors"] == 1
    assert result["items_created"] == 2
    assert f"Classify failed for {bad_url}: model exploded" in Path(result["log_path"]).read_text()


def test_duplicates_across_sources_collapse(store, make_source, tmp_path):
    make_source(name="Alpha")
    make_source(name="Beta")
    fetcher = FakeFetcher({
        "Alpha": [make_item("https://example.com/post?utm_source=rss")],
        "Beta": [make_item("https://Example.com/post/#comments")],
    })

    result = run(store, tmp_path, fetcher)

    assert result["items_fetched"] == 2
    assert result["items_created"] == 1
    assert store.get_edition(DATE)["signals"][0]["source_url"] == "https://example.com/post"


def test_max_items_caps_classification(store, make_source, tmp_path):
    make_source(name="Alpha")
    result = run(store, tmp_path, FakeFetcher({"Alpha": items("alpha", 5)}), max_items=3)
    assert result["items_created"] == 3


def test_headliners_assigned(store, make_source, tmp_path):
    make_source(name="Alpha")
    result = run(store, tmp_path, FakeFetcher({"Alpha": items("alpha", 8)}))

    signals = store.get_edition(DATE)["signals"]
    headliners = [s for s in signals if s["stream_key"] == "HEADLINERS"]

    assert result["items_created"] == 8
    assert [s["rank"] for s in headliners] == [1, 2, 3, 4, 5, 6]


def test_rerun_replaces_edition(store, make_source, tmp_path):
    make_source(name="Alpha")
    fetcher = FakeFetcher({"Alpha": items("alpha", 4)})

    first = run(store, tmp_path, fetcher)
    second = run(store, tmp_path, fetcher)

    assert first["run_id"] != second["run_id"]
    assert store.get_edition(DATE)["total_count"] == 4
    assert len(store.get_edition(DATE)["signals"]) == 4


class BrokenEditionStore(SignalStore):
    def replace_edition(self, *args, **kwargs):
        raise RuntimeError("database is locked")


def test_persistence_failure_is_recorded_not_raised(tmp_path):
    store = BrokenEditionStore(database_url=f"sqlite:///{tmp_path / 'broken.db'}")
    store.init_db()
    store.upsert_source({
        "name": "Alpha", "type": "RSS", "identifier": "https://a.example.com/feed",
        "provider_label": "Alpha", "tier": 1,
    })

    result = run(store, tmp_path, FakeFetcher({"Alpha": items("alpha", 2)}))

    run_row = store.get_run(result["run_id"])
    assert result["status"] == "FAILED"
    assert run_row["status"] == "FAILED"
    assert run_row["error_message"] == "database is locked"
    assert run_row["edition_id"] is None
    assert "Fatal error: database is locked" in Path(result["log_path"]).read_text()


@pytest.mark.parametrize("kwargs", [
    {"date": "10-02-2026"},
    {"triggered_by": "x"},
    {"max_items": 0},
    {"max_items": 500},
])
def test_invalid_arguments_rejected_before_run_exists(store, tmp_path, kwargs):
    with pytest.raises(ValueError):
        run_ingestion(store=store, fetcher=FakeFetcher({}), logs_dir=tmp_path, **kwargs)
    assert store.list_runs() == []


def test_slow_source_is_abandoned():
    sources = [{"name": "Slow"}, {"name": "Fast"}]
    fetcher = FakeFetcher({"Fast": items("fast", 1), "Slow": items("slow", 1)}, delays={"Slow": 3})

    started = time.monotonic()
    outcomes = fetch_all_sources(sources, 5, fetcher=fetcher, timeout=0.2)
    elapsed = time.monotonic() - started

    assert elapsed < 2
    assert isinstance(outcomes[0], TimeoutError)
    assert "fetch:Slow timed out after 200ms" in str(outcomes[0])
    assert len(outcomes[1]) == 1


def test_timed_out_source_counts_as_error(store, make_source, tmp_path):
    make_source(name="Fast")
    slow = make_source(name="Slow")
    fetcher = FakeFetcher({"Fast": items("fast", 2), "Slow": items("slow", 2)}, delays={"Slow": 3})

    result = run(store, tmp_path, fetcher, fetch_timeout=0.2)

    assert result["status"] == "PARTIAL"
    assert result["source_errors"] == 1
    assert result["items_created"] == 2
    assert "timed out" in store.get_source(slow["id"])["last_error"]
