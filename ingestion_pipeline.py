"""
Daily Signal Nook ingestion run.

    sources -> concurrent fetch -> canonical dedupe -> classify -> headliners -> edition

run_ingestion() always records exactly one IngestionRun and, once that row
exists, always returns a result dict instead of raising.

Usage:
    python ingestion_pipeline.py [--date YYYY-MM-DD] [--max-items N] [--triggered-by NAME]
"""

import argparse
import asyncio
import json
import sys
from concurrent.futures import ThreadPoolExecutor

from dotenv import load_dotenv

from core.classify import classify_raw_item, merge_citations
from core.config import get_fetch_timeout, get_headliner_count, get_logs_dir, get_max_items
from core.cost_control import MAX_ITEMS_PER_RUN, check_limits, enforce_limits, per_source_budget
from core.dates import to_edition_date, utc_now
from core.format import build_morning_note
from core.observability import RunLog, log
from core.schemas import IngestionArgs
from core.scoring import assign_streams_and_headliners, count_heat
from core.urls import dedupe_by_canonical_url
from ingest.sources import fetch_source_items
from store.repository import open_store

NO_SIGNALS_MESSAGE = "No signals were created."


def error_message(error):
    return str(error) or type(error).__name__


# Stage 1: fetch

async def _gather_sources(sources, per_source, fetcher, timeout):
    loop = asyncio.get_running_loop()
    executor = ThreadPoolExecutor(max_workers=max(1, len(sources)), thread_name_prefix="fetch")
    try:
        tasks = [
            asyncio.wait_for(loop.run_in_executor(executor, fetcher, source, per_source), timeout)
            for source in sources
        ]
        return await asyncio.gather(*tasks, return_exceptions=True)
    finally:
        # Timed-out fetches keep their worker thread; nothing waits for it
        executor.shutdown(wait=False, cancel_futures=True)


def fetch_all_sources(sources, per_source, fetcher=fetch_source_items, timeout=None):
    """
    Fetch every source concurrently, each bounded by `timeout` seconds.

    Returns one entry per source, in source order: the fetched item list or
    the exception that fetch ended with.
    """
    if not sources:
        return []

    timeout = timeout if timeout is not None else get_fetch_timeout()
    results = asyncio.run(_gather_sources(sources, per_source, fetcher, timeout))

    outcomes = []
    for source, result in zip(sources, results):
        if isinstance(result, asyncio.TimeoutError):
            result = TimeoutError(f"fetch:{source['name']} timed out after {int(timeout * 1000)}ms")
        outcomes.append(result)
    return outcomes


# Stage 2: classify

def build_draft(item, signal):
    """SignalDraft from a raw item and its classification."""
    data = signal.model_dump()
    return {
        **data,
        "source_url": item["source_url"],
        "source_domain": item["source_domain"],
        "provider_key": item["provider_key"],
        "provider_label": item["provider_label"],
        "occurred_at_utc": item["published_at"],
        "rank": None,
        "citations": merge_citations(item["source_url"], data["citations"]),
    }


def run_ingestion(
    date=None,
    triggered_by="manual",
    max_items=None,
    store=None,
    fetcher=None,
    classifier=None,
    logs_dir=None,
    fetch_timeout=None,
    headliner_count=None,
):
    """
    Run one ingestion pass and record it.

    Args:
        date: Edition date (YYYY-MM-DD); defaults to today in UTC
        triggered_by: Who started the run (2-100 chars)
        max_items: Item budget after dedupe (1-250); defaults to config
        store: SignalStore; defaults to one for DATABASE_URL
        fetcher: fetch(source, limit) -> raw items; defaults to the source adapters
        classifier: classify(raw_item) -> ClassifiedSignal; defaults to classify_raw_item
        logs_dir: Where the plain-text run log is written

    Returns:
        Dict with run_id, edition_date, status, items_fetched, items_created,
        source_errors, classification_errors and log_path.

    Raises:
        ValueError: Invalid arguments (nothing is recorded)
    """
    args = IngestionArgs(date=date, triggered_by=triggered_by, max_items=max_items)

    edition_date = args.date or to_edition_date(utc_now())
    budget = max(1, min(args.max_items or get_max_items(), MAX_ITEMS_PER_RUN))
    store = store or open_store()
    fetcher = fetcher or fetch_source_items
    classifier = classifier or classify_raw_item
    logs_dir = logs_dir or get_logs_dir()
    headliner_count = headliner_count if headliner_count is not None else get_headliner_count()

    run_id = store.create_run(args.triggered_by)
    run_log = RunLog(run_id)
    log("ingest", "run.started", {
        "run_id": run_id,
        "edition_date": edition_date,
        "max_items": budget,
        "triggered_by": args.triggered_by,
    })

    status = "FAILED"
    failure = None
    edition_id = None
    items_fetched = 0
    items_created = 0
    source_errors = 0
    classification_errors = 0

    try:
        run_log.add(f"[run:{run_id}] Starting ingestion for {edition_date}")

        sources = store.list_enabled_sources()
        run_log.add(f"Enabled sources: {len(sources)}")

        per_source = per_source_budget(budget, len(sources))
        outcomes = fetch_all_sources(sources, per_source, fetcher=fetcher, timeout=fetch_timeout)

        fetched = []
        for source, outcome in zip(sources, outcomes):
            if isinstance(outcome, BaseException):
                source_errors += 1
                message = error_message(outcome)
                run_log.add(f"{source['name']}: fetch failed ({message})")
                log("ingest", "source.failed", {"run_id": run_id, "source": source["name"], "error": message})
                store.mark_source_failed(source["id"], message)
                continue

            run_log.add(f"{source['name']}: fetched {len(outcome)} items")
            store.mark_source_fetched(source["id"])
            fetched.extend(outcome)

        items_fetched = len(fetched)
        deduped = dedupe_by_canonical_url(fetched)
        log("ingest", "budget.check", check_limits(items_fetched, len(deduped), budget, run_id=run_id))
        deduped = enforce_limits(deduped, budget)
        run_log.add(f"After canonical dedupe: {len(deduped)}")

        drafts = []
        for item in deduped:
            try:
                drafts.append(build_draft(item, classifier(item)))
            except Exception as e:
                classification_errors += 1
                run_log.add(f"Classify failed for {item['source_url']}: {error_message(e)}")

        drafts = assign_streams_and_headliners(drafts, headliner_count=headliner_count)
        items_created = len(drafts)

        edition_id = store.replace_edition(
            edition_date,
            count_heat(drafts),
            build_morning_note(edition_date, drafts),
            drafts,
        )

        if not drafts:
            status = "FAILED"
            failure = NO_SIGNALS_MESSAGE
        elif source_errors or classification_errors:
            status = "PARTIAL"
        else:
            status = "SUCCESS"

        run_log.add(f"Signals persisted: {items_created}")

    except Exception as e:
        status = "FAILED"
        failure = error_message(e)
        run_log.add(f"Fatal error: {failure}")
        log("ingest", "run.fatal", {"run_id": run_id, "error": failure, "type": type(e).__name__})

    log_path = None
    try:
        log_path = run_log.write(logs_dir, edition_date)
    except OSError as e:
        log("ingest", "run_log.write_failed", {"run_id": run_id, "error": str(e)})

    try:
        store.finalize_run(
            run_id,
            status,
            items_fetched=items_fetched,
            items_created=items_created,
            error_message=failure if status == "FAILED" else None,
            log_text=run_log.text,
            log_path=log_path,
            edition_id=edition_id,
        )
    except Exception as e:
        log("ingest", "run.finalize_failed", {"run_id": run_id, "error": str(e)})

    result = {
        "run_id": run_id,
        "edition_date": edition_date,
        "status": status,
        "items_fetched": items_fetched,
        "items_created": items_created,
        "source_errors": source_errors,
        "classification_errors": classification_errors,
        "log_path": log_path,
    }
    log("ingest", "run.finished", result)
    return result


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Run Signal Nook ingestion for one edition date.")
    parser.add_argument("--date", help="Edition date (YYYY-MM-DD), defaults to today in UTC")
    parser.add_argument("--max-items", type=int, help="Item budget after dedupe (1-250)")
    parser.add_argument("--triggered-by", default="script", help="Recorded on the run row")
    return parser.parse_args(argv)


def main(argv=None):
    load_dotenv()
    args = parse_args(argv)

    print("\n📡 Signal Nook ingestion")
    print(f"Started: {utc_now().strftime('%Y-%m-%d %H:%M:%S')} UTC")

    try:
        result = run_ingestion(date=args.date, triggered_by=args.triggered_by, max_items=args.max_items)
    except ValueError as e:
        print(f"\n❌ Invalid arguments: {e}")
        sys.exit(2)

    print(json.dumps({"ok": result["status"] != "FAILED", **result}, indent=2))

    if result["status"] == "FAILED":
        print("\n❌ Ingestion failed")
        sys.exit(1)

    print(f"\n✓ Ingestion {result['status'].lower()}")


if __name__ == "__main__":
    main()
