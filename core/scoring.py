"""
Importance scoring and Headliners promotion.

Which drafts become headliners is decided by score; how the headliners are
numbered is decided by their position in the input. Both are preserved.
"""

from core.taxonomy import HEAT_LEVELS, STREAM_LABELS

HEADLINER_STREAM = "HEADLINERS"
DEFAULT_HEADLINER_COUNT = 6

HEAT_WEIGHTS = {"HOT": 40, "NOTABLE": 20, "QUIET": 8}
TIER_WEIGHTS = {1: 12, 2: 8, 3: 3}
CONFIDENCE_WEIGHTS = {"VERIFIED": 6, "UNVERIFIED": 2}


def importance_score(draft):
    return (
        HEAT_WEIGHTS[draft["heat"]]
        + TIER_WEIGHTS[draft["tier"]]
        + CONFIDENCE_WEIGHTS[draft["confidence"]]
    )


def assign_streams_and_headliners(drafts, headliner_count=DEFAULT_HEADLINER_COUNT):
    """
    Promote the top `headliner_count` drafts by importance to Headliners.

    Returns new draft dicts in input order. Headliners get the HEADLINERS
    stream and a 1-based rank counted in input order; every other draft
    keeps its stream and gets rank None. Equal scores keep input order.
    """
    ranked = sorted(drafts, key=importance_score, reverse=True)
    headliner_urls = {draft["source_url"] for draft in ranked[:max(0, headliner_count)]}

    assigned = []
    rank = 0
    for draft in drafts:
        if draft["source_url"] in headliner_urls:
            rank += 1
            assigned.append({
                **draft,
                "stream_key": HEADLINER_STREAM,
                "stream_label": STREAM_LABELS[HEADLINER_STREAM],
                "rank": rank,
            })
        else:
            assigned.append({**draft, "rank": None})

    return assigned


def count_heat(drafts):
    """Heat totals for an edition; hot + notable + quiet == total."""
    counts = {"total_count": len(drafts)}
    counts.update({f"{heat.lower()}_count": 0 for heat in HEAT_LEVELS})
    for draft in drafts:
        counts[f"{draft['heat'].lower()}_count"] += 1
    return counts
