"""
Operator commands for Signal Nook.

Usage:
    python ops.py health
    python ops.py runs [--limit N]
    python ops.py preview <source_id>
    python ops.py seed [--file config/sources.yaml]
    python ops.py edition [YYYY-MM-DD]
"""

import argparse
import json
import sys

from dotenv import load_dotenv
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from core.config import get_openai_model, has_openai_key, load_source_seeds
from core.observability import log
from ingest.sources import fetch_source_items
from store.repository import open_store

PREVIEW_ITEM_COUNT = 4


def preview_source(store, source_id, fetcher=fetch_source_items):
    """
    Fetch a few items from one source without persisting anything.

    Raises LookupError for an unknown source id; fetch errors propagate.
    """
    source = store.get_source(source_id)
    if source is None:
        raise LookupError(f"Source not found: {source_id}")

    items = fetcher(source, PREVIEW_ITEM_COUNT)
    return {
        "source": source["name"],
        "items": [
            {
                "title": item["title"],
                "url": item["source_url"],
                "domain": item["source_domain"],
                "published_at": item["published_at"].isoformat(),
                "snippet": item["snippet"],
            }
            for item in items[:PREVIEW_ITEM_COUNT]
        ],
    }


def health_snapshot(store):
    """Database reachability, model configuration and the latest run."""
    try:
        store.ping()
        database = "ok"
        last_run = store.latest_run()
    except SQLAlchemyError as e:
        log("ops", "health.database_down", {"error": str(e)})
        database = "down"
        last_run = None

    return {
        "database": database,
        "openai_key_present": has_openai_key(),
        "model": get_openai_model(),
        "last_run": {
            "id": last_run["id"],
            "status": last_run["status"],
            "started_at_utc": last_run["started_at_utc"],
            "finished_at_utc": last_run["finished_at_utc"],
            "items_created": last_run["items_created"],
        } if last_run else None,
    }


def seed_sources(store, seeds=None):
    """Upsert seed sources by name; returns (created, updated, rejected) counts."""
    seeds = load_source_seeds() if seeds is None else seeds
    created = updated = rejected = 0

    for seed in seeds:
        try:
            _, was_created = store.upsert_source(seed)
        except ValidationError as e:
            rejected += 1
            print(f"⚠️  Skipping source {seed.get('name', '?')!r}: {e.error_count()} invalid field(s)")
            continue

        if was_created:
            created += 1
        else:
            updated += 1

    return created, updated, rejected


def _print_json(payload):
    print(json.dumps(payload, indent=2, default=str))


def main(argv=None):
    load_dotenv()

    parser = argparse.ArgumentParser(description="Signal Nook operator commands.")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("health", help="Database, model and last run status")

    runs_parser = commands.add_parser("runs", help="Recent ingestion runs")
    runs_parser.add_argument("--limit", type=int, default=20)

    preview_parser = commands.add_parser("preview", help="Fetch a few items from one source")
    preview_parser.add_argument("source_id")

    seed_parser = commands.add_parser("seed", help="Upsert sources from config/sources.yaml")
    seed_parser.add_argument("--file", help="Alternative sources YAML file")

    edition_parser = commands.add_parser("edition", help="Show one edition")
    edition_parser.add_argument("date", nargs="?", help="YYYY-MM-DD, defaults to the latest edition")

    args = parser.parse_args(argv)
    store = open_store()

    if args.command == "health":
        _print_json(health_snapshot(store))

    elif args.command == "runs":
        for run in store.list_runs(limit=args.limit):
            print(
                f"{run['started_at_utc']:%Y-%m-%d %H:%M}  {run['status']:<8} "
                f"fetched={run['items_fetched']:<4} created={run['items_created']:<4} "
                f"by={run['triggered_by']}  {run['id']}"
            )

    elif args.command == "preview":
        try:
            _print_json(preview_source(store, args.source_id))
        except LookupError as e:
            print(f"❌ {e}")
            sys.exit(1)
        except Exception as e:
            print(f"❌ Preview failed: {e}")
            sys.exit(1)

    elif args.command == "seed":
        seeds = load_source_seeds(args.file)
        created, updated, rejected = seed_sources(store, seeds)
        print(f"✓ Sources seeded: {created} created, {updated} updated, {rejected} rejected")

    elif args.command == "edition":
        edition_date = args.date or store.latest_edition_date()
        edition = store.get_edition(edition_date) if edition_date else None
        if edition is None:
            print("No edition found")
            sys.exit(1)
        _print_json(edition)


if __name__ == "__main__":
    main()
