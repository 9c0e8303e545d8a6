from core.cost_control import check_limits, clamp_source_limit, enforce_limits, per_source_budget


def test_per_source_budget():
    assert per_source_budget(60, 8) == 10
    assert per_source_budget(60, 0) == 62
    assert per_source_budget(1, 3) == 3


def test_clamp_source_limit():
    assert clamp_source_limit(40, 25) == 25
    assert clamp_source_limit(0, 25) == 1
    assert clamp_source_limit(10, 1) == 1


def test_enforce_limits_keeps_order():
    assert enforce_limits(list(range(10)), 3) == [0, 1, 2]


def test_check_limits_reports_dropped_items():
    result = check_limits(fetched_count=12, deduped_count=9, max_items=5, run_id="r1")
    assert result["duplicates_dropped"] == 3
    assert result["items_to_classify"] == 5
    assert result["warnings"]
