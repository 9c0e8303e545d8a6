"""
Item budgets for a run.

Every deduplicated item costs one classification call, so the run-level
budget is what bounds model spend. The per-source share spreads that budget
across enabled sources with a little headroom for duplicates.
"""

import math

from core.ingestion_policy import MAX_ITEMS_PER_SOURCE

MAX_ITEMS_PER_RUN = 250
# Extra items requested from each source to absorb cross-source duplicates
PER_SOURCE_HEADROOM = 2


def per_source_budget(max_items, source_count):
    """Items to request from each source for a run budget of max_items."""
    return math.ceil(max_items / max(1, source_count)) + PER_SOURCE_HEADROOM


def clamp_source_limit(requested, policy_max=MAX_ITEMS_PER_SOURCE):
    """Clamp a per-source request to 1..policy_max."""
    return max(1, min(int(requested), policy_max, MAX_ITEMS_PER_SOURCE))


def enforce_limits(items, max_items):
    """Keep the first max_items items (input order preserved)."""
    limit = min(int(max_items), MAX_ITEMS_PER_RUN)
    return items[:limit]


def check_limits(fetched_count, deduped_count, max_items, run_id="unknown"):
    """Summarize how the budget applies to this run's fetched items."""
    to_classify = min(deduped_count, max_items, MAX_ITEMS_PER_RUN)
    warnings = []

    if deduped_count > to_classify:
        warnings.append(
            f"{deduped_count - to_classify} deduplicated items dropped by the {to_classify}-item budget"
        )

    return {
        "run_id": run_id,
        "items_fetched": fetched_count,
        "items_deduped": deduped_count,
        "duplicates_dropped": fetched_count - deduped_count,
        "items_to_classify": to_classify,
        "warnings": warnings,
    }
