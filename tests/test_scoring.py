from core.format import build_morning_note
from core.scoring import assign_streams_and_headliners, count_heat, importance_score


def draft(n, heat="QUIET", tier=3, confidence="UNVERIFIED", track_label="Community Finds"):
    return {
        "title": f"Signal {n}",
        "source_url": f"https://example.com/{n}",
        "heat": heat,
        "tier": tier,
        "confidence": confidence,
        "track_label": track_label,
        "stream_key": "WILDS",
        "stream_label": "The Wilds",
        "rank": None,
    }


def test_importance_score_weights():
    assert importance_score(draft(1, "HOT", 1, "VERIFIED")) == 58
    assert importance_score(draft(1, "NOTABLE", 2, "UNVERIFIED")) == 30
    assert importance_score(draft(1, "QUIET", 3, "UNVERIFIED")) == 13


def test_headliners_chosen_by_score_numbered_by_input_order():
    drafts = [draft(n) for n in range(43)]
    top = (40, 5, 30, 12, 22, 2)
    for n in top:
        drafts[n] = draft(n, "HOT", 1, "VERIFIED")

    assigned = assign_streams_and_headliners(drafts)

    headliners = [d for d in assigned if d["stream_key"] == "HEADLINERS"]
    assert [d["title"] for d in headliners] == [f"Signal {n}" for n in sorted(top)]
    assert [d["rank"] for d in headliners] == [1, 2, 3, 4, 5, 6]
    assert all(d["stream_label"] == "Headliners" for d in headliners)
    assert all(d["rank"] is None and d["stream_key"] == "WILDS" for d in assigned if d not in headliners)
    assert [d["source_url"] for d in assigned] == [d["source_url"] for d in drafts]


def test_equal_scores_prefer_earlier_items():
    assigned = assign_streams_and_headliners([draft(n) for n in range(8)])
    ranks = [d["rank"] for d in assigned]
    assert ranks == [1, 2, 3, 4, 5, 6, None, None]


def test_fewer_drafts_than_headliner_slots():
    assigned = assign_streams_and_headliners([draft(1), draft(2)])
    assert [d["rank"] for d in assigned] == [1, 2]
    assert assign_streams_and_headliners([]) == []


def test_heat_counts_sum_to_total():
    counts = count_heat([draft(1, "HOT"), draft(2, "QUIET"), draft(3, "QUIET")])
    assert counts == {"total_count": 3, "hot_count": 1, "notable_count": 0, "quiet_count": 2}


def test_empty_morning_note():
    note = build_morning_note("2026-02-10", [])
    assert note == (
        "Signal Nook found no eligible signals for February 10, 2026. "
        "Check source health and rerun ingestion once feeds are restored."
    )


def test_morning_note_lists_top_tracks_and_lead_headliner():
    drafts = [
        draft(1, track_label="RAG & Retrieval"),
        draft(2, track_label="SDKs & Tooling"),
        draft(3, track_label="SDKs & Tooling"),
        draft(4, track_label="Platform APIs"),
        draft(5, track_label="Hardware & Drivers"),
    ]
    assigned = assign_streams_and_headliners(drafts, headliner_count=2)

    note = build_morning_note("2026-02-10", assigned)

    assert note.startswith(
        "Today leans toward SDKs & Tooling, RAG & Retrieval, Platform APIs with 5 curated signals total. "
        "Top movement: Signal 1."
    )
    assert note.endswith("Use stream filters to jump from broad context to implementation-ready changes.")


def test_morning_note_without_headliners():
    note = build_morning_note("2026-02-10", [draft(1)])
    assert "No headliner ranked today due to limited confidence signals." in note
