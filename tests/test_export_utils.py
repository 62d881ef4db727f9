import os
import json

import export_utils


def _write(path, obj):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, ensure_ascii=False), encoding="utf-8")


def test_date_key_uses_beijing_time(fixed_now):
    # 2026-10-18 20:00 UTC is already the 19th in Beijing
    late = fixed_now.replace(day=18, hour=20)
    assert export_utils._date_key_cst(late) == "2026-10-19"
    assert export_utils._time_key_cst(fixed_now) == "12:00"


def test_build_snapshot_shape(fixed_now):
    news = [{"id": "a", "title": "t", "_raw": "working data"}]
    counters = {"totalSearched": 7, "realTimeNews": 3, "importantNews": 2, "deepNews": 2}
    snapshot = export_utils.build_snapshot(news, ["google", "nvidia"], counters, fixed_now)

    assert snapshot == {
        "date": fixed_now.isoformat(),
        "totalSearched": 7,
        "selected": 1,
        "realTimeNews": 3,
        "importantNews": 2,
        "deepNews": 2,
        "companies": ["google", "nvidia"],
        "news": [{"id": "a", "title": "t"}],
    }


def test_build_snapshot_without_counters(fixed_now):
    snapshot = export_utils.build_snapshot([], [], now_utc=fixed_now)
    assert snapshot["totalSearched"] == 0
    assert snapshot["selected"] == 0
    assert snapshot["news"] == []


def test_write_and_load_snapshot(tmp_path, fixed_now):
    snapshot = export_utils.build_snapshot([{"id": "a", "title": "谷歌"}], ["google"], now_utc=fixed_now)
    path = export_utils.write_snapshot(snapshot, "2026-10-19", str(tmp_path / "nested"))

    assert path == os.path.join(str(tmp_path / "nested"), "company-news-2026-10-19.json")
    assert "谷歌" in open(path, encoding="utf-8").read()
    assert export_utils.load_snapshot(path) == snapshot


def test_write_snapshot_overwrites_same_day(tmp_path, fixed_now):
    first = export_utils.build_snapshot([{"id": "a"}], [], now_utc=fixed_now)
    second = export_utils.build_snapshot([{"id": "b"}], [], now_utc=fixed_now)
    export_utils.write_snapshot(first, "2026-10-19", str(tmp_path))
    path = export_utils.write_snapshot(second, "2026-10-19", str(tmp_path))
    assert export_utils.load_snapshot(path)["news"] == [{"id": "b"}]


def test_find_snapshot_prefers_today(tmp_path):
    _write(tmp_path / "company-news-2026-10-19.json", {})
    _write(tmp_path / "company-news-2026-10-18.json", {})
    _write(tmp_path / "company-news-fixed.json", {})
    found = export_utils.find_snapshot("2026-10-19", str(tmp_path))
    assert found.endswith("company-news-2026-10-19.json")


def test_find_snapshot_falls_back_to_newest_dated(tmp_path):
    _write(tmp_path / "company-news-2026-10-01.json", {})
    _write(tmp_path / "company-news-2026-10-17.json", {})
    _write(tmp_path / "company-news-fixed.json", {})
    found = export_utils.find_snapshot("2026-10-19", str(tmp_path))
    assert found.endswith("company-news-2026-10-17.json")


def test_find_snapshot_fixed_then_test(tmp_path):
    _write(tmp_path / "company-news-test.json", {})
    assert export_utils.find_snapshot("2026-10-19", str(tmp_path)).endswith("company-news-test.json")
    _write(tmp_path / "company-news-fixed.json", {})
    assert export_utils.find_snapshot("2026-10-19", str(tmp_path)).endswith("company-news-fixed.json")


def test_find_snapshot_nothing(tmp_path):
    assert export_utils.find_snapshot("2026-10-19", str(tmp_path)) is None


def test_load_snapshot_missing_or_broken(tmp_path):
    assert export_utils.load_snapshot(str(tmp_path / "missing.json")) == {"news": [], "companies": []}

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    assert export_utils.load_snapshot(str(broken)) == {"news": [], "companies": []}


def test_load_snapshot_filters_bad_items(tmp_path):
    path = tmp_path / "snap.json"
    _write(path, {"date": "x", "news": [{"id": "a"}, "junk", None, 3]})
    data = export_utils.load_snapshot(str(path))
    assert data["news"] == [{"id": "a"}]
    assert data["companies"] == []

    _write(path, ["not", "a", "dict"])
    assert export_utils.load_snapshot(str(path))["news"] == []
