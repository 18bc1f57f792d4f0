import pytest

from qrdelta.compare import MISSING, Record, build_comparison, failed_record, parse_record

def _rec(name, create_time=None, **params):
    parts = [f"{k}={v}" for k, v in params.items()]
    if create_time is not None:
        parts.append(f"createTime={create_time}")
    return parse_record("&".join(parts), name)

def test_parse_record_attaches_time_only_with_create_time():
    assert parse_record("a=1", "x.png").parsed_time is None
    rec = parse_record("a=1&createTime=2024-01-01 10:00:00", "x.png")
    assert rec.ok and rec.has_valid_time
    assert dict(rec.params) == {"a": "1", "createTime": "2024-01-01 10:00:00"}

def test_two_and_a_half_hours_rounds_half_up():
    cmp = build_comparison([_rec("a.png", "2024-01-01 10:00:00"), _rec("b.png", "2024-01-01 12:30:00")])
    assert len(cmp.deltas) == 1
    d = cmp.deltas[0]
    assert d.delta_ms == 150 * 60_000
    assert (d.unit, d.amount, d.label) == ("hours", 3, "3 hours")

def test_thirty_minutes_reports_one_hour():
    cmp = build_comparison([_rec("a", "2024-01-01 10:00:00"), _rec("b", "2024-01-01 10:30:00")])
    assert cmp.deltas[0].label == "1 hour"

def test_under_half_hour_reports_minutes():
    cmp = build_comparison([_rec("a", "2024-01-01 10:00:00"), _rec("b", "2024-01-01 10:29:59")])
    d = cmp.deltas[0]
    assert d.hours == 0
    assert (d.unit, d.amount, d.label) == ("minutes", 30, "30 minutes")

def test_uniform_and_differing_rows():
    a = _rec("a", "2024-01-01 10:00:00", signature="AAA")
    b = _rec("b", "2024-01-01 10:00:00", signature="BBB")
    cmp = build_comparison([a, b])
    rows = {r.key: r for r in cmp.rows}
    assert rows["createTime"].uniform
    assert not rows["signature"].uniform
    assert cmp.differing_keys == ["signature"]

def test_rows_are_sorted_and_aligned_with_missing_sentinel():
    cmp = build_comparison([_rec("a", zeta="1", alpha="x"), _rec("b", alpha="x", mid="m")])
    assert cmp.keys == ["alpha", "mid", "zeta"]
    rows = {r.key: r for r in cmp.rows}
    assert rows["mid"].values == (MISSING, "m")
    assert rows["zeta"].values == ("1", MISSING)
    assert rows["alpha"].uniform

def test_too_few_records():
    for records in ([], [_rec("a", k="v")]):
        cmp = build_comparison(records)
        assert cmp.insufficient
        assert cmp.rows == () and cmp.deltas == ()

def test_failed_records_do_not_count_but_show_as_missing():
    lone = build_comparison([_rec("a", k="v"), failed_record("b", "no QR")])
    assert lone.insufficient and lone.rows == ()

    cmp = build_comparison([_rec("a", k="v"), failed_record("b", "no QR"), _rec("c", k="v")])
    assert not cmp.insufficient
    assert cmp.rows[0].values == ("v", MISSING, "v")
    assert not cmp.rows[0].uniform

def test_deltas_sorted_by_instant_with_invalid_times_excluded():
    late = _rec("late", "2024-01-01 18:00:00")
    early = _rec("early", "2024-01-01 08:00:00")
    broken = _rec("broken", "yesterday-ish")
    cmp = build_comparison([late, broken, early])
    assert [(d.earlier.source, d.later.source) for d in cmp.deltas] == [("early", "late")]
    assert cmp.deltas[0].label == "10 hours"
    assert "createTime" in cmp.keys

def test_keyword_times_stay_out_of_deltas():
    cmp = build_comparison([_rec("a", "2024-01-01 10:00:00"), _rec("b", "now")])
    assert not cmp.records[1].has_valid_time
    assert cmp.deltas == () and cmp.time_insufficient

def test_ties_keep_record_order():
    cmp = build_comparison([_rec("first", "2024-01-01 08:00:00"), _rec("second", "2024-01-01 08:00:00")])
    d = cmp.deltas[0]
    assert (d.earlier.source, d.later.source) == ("first", "second")
    assert d.label == "0 minutes"

def test_not_enough_times():
    cmp = build_comparison([_rec("a", "2024-01-01 08:00:00"), _rec("b", k="v")])
    assert not cmp.insufficient
    assert cmp.time_insufficient and cmp.deltas == ()

def test_record_params_are_read_only():
    source = {"k": "v"}
    rec = Record(source="a.png", raw_text="k=v", params=source)
    source["k"] = "changed"
    assert rec.params["k"] == "v"
    with pytest.raises(TypeError):
        rec.params["k"] = "x"
    with pytest.raises(TypeError):
        parse_record("k=v", "b.png").params["other"] = "1"
