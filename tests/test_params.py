from datetime import datetime

from qrdelta.params import (
    bump_create_time_hour, extract_params, find_create_time, interpret_time,
)

# --- extract_params ---

def test_extract_url_query_last_duplicate_wins():
    params = extract_params("https://pass.example.com/check?id=42&name=Jean%20Dupont&id=43")
    assert params == {"id": "43", "name": "Jean Dupont"}

def test_extract_bare_list():
    assert extract_params("a=1&b=two&c=") == {"a": "1", "b": "two", "c": ""}

def test_extract_plus_is_space_only_in_query_string():
    assert extract_params("https://x/?q=a+b")["q"] == "a b"
    assert extract_params("sig=a+b/c==")["sig"] == "a+b/c=="

def test_extract_value_keeps_extra_equals():
    assert extract_params("https://x/?sig=YWJj==&k=v") == {"sig": "YWJj==", "k": "v"}

def test_extract_skips_malformed_segments():
    assert extract_params("a=%ZZ&b=2&novalue&=empty&c=%E2%82%AC") == {"b": "2", "c": "€"}
    assert extract_params("x=%FF&y=1") == {"y": "1"}

def test_extract_without_params():
    assert extract_params("") == {}
    assert extract_params(None) == {}
    assert extract_params("just some text") == {}
    assert extract_params("https://example.com/path?") == {}

# --- interpret_time ---

def test_interpret_time_iso_with_t():
    pt = interpret_time("2024-03-15T10:30:00")
    assert pt.valid
    assert pt.original == "2024-03-15T10:30:00"
    assert pt.formatted == "2024-03-15 10:30:00"
    assert pt.instant == int(datetime(2024, 3, 15, 10, 30).timestamp() * 1000)

def test_interpret_time_trailing_z_is_read_as_local():
    pt = interpret_time("2024-01-01T08:00:00Z")
    assert pt.valid and pt.formatted == "2024-01-01 08:00:00"

def test_interpret_time_invalid():
    for raw in ("not-a-time", "", "   ", "2024-13-45 10:00:00", "now", "today", " Today "):
        pt = interpret_time(raw)
        assert not pt.valid
        assert pt.instant is None and pt.formatted is None
        assert pt.original == raw

# --- find_create_time / bump ---

def test_find_create_time_statuses():
    assert find_create_time("id=1").status == "missing"
    assert find_create_time("createTime=2024-01-01 5:00:00").status == "malformed"
    assert find_create_time("createTime=2024/01/01 05:00:00").status == "malformed"
    assert find_create_time("createTime=2024-01-01 05:00").status == "malformed"
    m = find_create_time("a=1&createTime=2024-01-01T05:06:07&b=2")
    assert m.matched
    assert (m.date, m.separator, m.hour, m.suffix) == ("2024-01-01", "T", "05", ":06:07")
    assert m.start == 4

def test_bump_wraps_without_date_rollover():
    res = bump_create_time_hour("createTime=2024-01-01 23:00:00")
    assert res.changed
    assert res.text == "createTime=2024-01-01 00:00:00"
    assert res.new_time_display == "2024-01-01 00:00:00"

def test_bump_twice():
    first = bump_create_time_hour("id=9&createTime=2024-05-05 05:00:00")
    second = bump_create_time_hour(first.text)
    assert first.text == "id=9&createTime=2024-05-05 06:00:00"
    assert second.text == "id=9&createTime=2024-05-05 07:00:00"

def test_bump_keeps_t_separator_and_display_uses_space():
    res = bump_create_time_hour("https://x/?createTime=2024-01-01T09:15:30&sig=abc")
    assert res.text == "https://x/?createTime=2024-01-01T10:15:30&sig=abc"
    assert res.new_time_display == "2024-01-01 10:15:30"

def test_bump_no_field_is_unchanged():
    text = "no such field here"
    res = bump_create_time_hour(text)
    assert not res.changed
    assert res.text is text
    assert res.new_time_display is None

def test_bump_rejects_three_digit_hour():
    res = bump_create_time_hour("createTime=2024-01-01 123:00:00")
    assert not res.changed and res.match.status == "malformed"

def test_bump_only_first_wellformed_occurrence():
    text = "createTime=bad&createTime=2024-01-01 05:00:00&createTime=2024-01-01 05:00:00"
    res = bump_create_time_hour(text)
    assert res.text == "createTime=bad&createTime=2024-01-01 06:00:00&createTime=2024-01-01 05:00:00"

def test_bump_keeps_other_params():
    text = "https://gate.example.org/v?uid=u-77&createTime=2024-02-02 11:59:59&signature=Zm9v%2Bbar&n=a+b"
    before = extract_params(text)
    after = extract_params(bump_create_time_hour(text).text)
    assert after.pop("createTime") == "2024-02-02 12:59:59"
    before.pop("createTime")
    assert after == before
