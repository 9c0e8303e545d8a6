from core.dates import format_edition_date

TOP_TRACK_COUNT = 3

CLOSING_LINES = (
    "Most items are incremental rather than disruptive, but several workflow updates are worth immediate review.",
    "Use stream filters to jump from broad context to implementation-ready changes.",
)


def top_track_labels(signals, limit=TOP_TRACK_COUNT):
    """Most frequent track labels; equal counts keep first-seen order."""
    counts = {}
    for signal in signals:
        counts[signal["track_label"]] = counts.get(signal["track_label"], 0) + 1

    ordered = sorted(counts.items(), key=lambda entry: entry[1], reverse=True)
    return [label for label, _ in ordered[:limit]]


def lead_headliner(signals):
    headliners = [s for s in signals if s["stream_key"] == "HEADLINERS"]
    if not headliners:
        return None
    return min(headliners, key=lambda s: s["rank"] if s["rank"] is not None else 99)


def build_morning_note(edition_date, signals):
    """
    Short narrative paragraph for the top of an edition.
    """
    if not signals:
        return (
            f"Signal Nook found no eligible signals for {format_edition_date(edition_date)}. "
            "Check source health and rerun ingestion once feeds are restored."
        )

    lines = [
        f"Today leans toward {', '.join(top_track_labels(signals))} "
        f"with {len(signals)} curated signals total."
    ]

    headliner = lead_headliner(signals)
    if headliner:
        lines.append(f"Top movement: {headliner['title']}.")
    else:
        lines.append("No headliner ranked today due to limited confidence signals.")

    lines.extend(CLOSING_LINES)
    return " ".join(lines)
