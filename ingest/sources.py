"""
Source adapter dispatch - one Source row in, RawSignalItem dicts out.

Every adapter funnels its upstream entries through to_raw_item() so items
from feeds, code hosts, registries and forums share one shape:

    source_id, source_url, source_domain, title, snippet, published_at,
    provider_label, provider_key, tier
"""

import re

from core.cost_control import clamp_source_limit
from core.dates import parse_published
from core.heuristics import DEFAULT_SNIPPET, DEFAULT_TITLE, WHITESPACE
from core.ingestion_policy import policy_for
from core.urls import to_source_domain
from ingest import registry, rss

NON_SLUG = re.compile(r"[^a-z0-9]+")

MAX_TITLE_LENGTH = 220
MAX_SNIPPET_LENGTH = 700
MIN_SNIPPET_LENGTH = 10

ADAPTERS = {
    "feed": lambda source, limit: rss.fetch_feed_items(source, source["identifier"], limit),
    "github_releases": rss.fetch_github_release_items,
    "reddit": rss.fetch_reddit_items,
    "npm": registry.fetch_npm_items,
    "pypi": registry.fetch_pypi_items,
}


def slugify(value):
    return NON_SLUG.sub("-", value.lower()).strip("-")[:80]


def clip_snippet(value):
    normalized = WHITESPACE.sub(" ", value or "").strip()
    if len(normalized) < MIN_SNIPPET_LENGTH:
        return DEFAULT_SNIPPET
    if len(normalized) > MAX_SNIPPET_LENGTH:
        return normalized[:MAX_SNIPPET_LENGTH - 3].rstrip() + "..."
    return normalized


def to_raw_item(source, title, url, snippet, published_at=None):
    """Build one RawSignalItem from upstream fields and its Source."""
    clean_title = WHITESPACE.sub(" ", title or "").strip()[:MAX_TITLE_LENGTH].strip()

    return {
        "source_id": source["id"],
        "source_url": url,
        "source_domain": to_source_domain(url),
        "title": clean_title or DEFAULT_TITLE,
        "snippet": clip_snippet(snippet),
        "published_at": parse_published(published_at),
        "provider_label": source["provider_label"],
        "provider_key": slugify(source["provider_label"]),
        "tier": source["tier"],
    }


def fetch_source_items(source, max_items):
    """
    Fetch up to max_items raw items for one source.

    Unknown source types yield nothing. Network and parse errors propagate
    so the caller can record them against the source.
    """
    policy = policy_for(source.get("type"))
    if policy is None:
        return []

    limit = clamp_source_limit(max_items, policy["max_items"])
    entries = ADAPTERS[policy["adapter"]](source, limit)

    return [
        to_raw_item(
            source,
            title=entry["title"],
            url=entry["url"],
            snippet=entry["snippet"],
            published_at=entry.get("published_at"),
        )
        for entry in entries[:limit]
    ]
