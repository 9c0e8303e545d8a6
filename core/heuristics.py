"""
Deterministic classification fallback.

Used whenever the model-backed classifier is unconfigured or gives up. It is
a pure function of the raw item, so it cannot fail for any item an adapter
produced.
"""

import re

from core.schemas import MAX_SUMMARY_LENGTH, ClassifiedSignal
from core.taxonomy import (
    FALLBACK_STREAM,
    FALLBACK_TRACK,
    HEAT_RATIONALES,
    HOT_HINTS,
    NOTABLE_HINTS,
    TRACK_RULES,
    stream_label,
    track_label,
)

WHITESPACE = re.compile(r"\s+")

DEFAULT_TITLE = "Untitled signal"
DEFAULT_SNIPPET = "No snippet available from source feed."


def clamp_summary(value):
    if len(value) <= MAX_SUMMARY_LENGTH:
        return value
    return value[:MAX_SUMMARY_LENGTH - 3].rstrip() + "..."


def infer_track(text, domain):
    """
    Score every track by 2 x keyword hits + 3 x domain hit.

    Returns (track_key, stream_key). Ties keep declaration order; an
    all-zero board falls back to community-finds / WILDS.
    """
    best_rule = None
    best_score = 0

    for rule in TRACK_RULES:
        keyword_hits = sum(1 for keyword in rule["keywords"] if keyword in text)
        domain_hit = 1 if any(hint in domain for hint in rule["domains"]) else 0
        score = keyword_hits * 2 + domain_hit * 3
        if score > best_score:
            best_rule = rule
            best_score = score

    if best_rule is None:
        return FALLBACK_TRACK, FALLBACK_STREAM
    return best_rule["track_key"], best_rule["stream_key"]


def infer_heat(text, tier):
    hot_hits = sum(1 for hint in HOT_HINTS if hint in text)
    notable_hits = sum(1 for hint in NOTABLE_HINTS if hint in text)

    if hot_hits >= 2 or (hot_hits >= 1 and tier == 1):
        return "HOT"
    if notable_hits >= 1 or tier <= 2:
        return "NOTABLE"
    return "QUIET"


def heuristic_classify(item):
    """Classify a raw item from keyword and domain hints alone."""
    title = (item.get("title") or "").strip() or DEFAULT_TITLE
    snippet = item.get("snippet") or ""
    tier = item.get("tier") or 3

    combined = f"{title} {snippet}".lower()
    domain = (item.get("source_domain") or "").lower()

    track_key, stream_key = infer_track(combined, domain)
    heat = infer_heat(combined, tier)
    summary = clamp_summary(WHITESPACE.sub(" ", snippet).strip() or DEFAULT_SNIPPET)

    return ClassifiedSignal(
        title=title[:220],
        summary=summary,
        rationale=HEAT_RATIONALES[heat],
        heat=heat,
        track_key=track_key,
        track_label=track_label(track_key),
        stream_key=stream_key,
        stream_label=stream_label(stream_key),
        confidence="UNVERIFIED",
        tier=tier,
        citations=[item["source_url"]],
    )
