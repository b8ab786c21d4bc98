"""state（トグル保存）のテスト。"""

from pathlib import Path

from timevote.state import RuntimeFlags, load_flags, save_flags


def test_flags_roundtrip(tmp_path: Path) -> None:
    p = tmp_path / ".timevote" / "state.json"
    assert load_flags(p) == RuntimeFlags()

    save_flags(p, RuntimeFlags(enabled=False, debug=True))
    assert load_flags(p) == RuntimeFlags(enabled=False, debug=True)


def test_load_flags_corrupt_json_falls_back_and_logs(tmp_path: Path) -> None:
    d = tmp_path / ".timevote"
    d.mkdir()
    p = d / "state.json"
    p.write_text("{not json", encoding="utf-8")

    assert load_flags(p) == RuntimeFlags()
    events = (d / "events.log").read_text(encoding="utf-8")
    assert "state.json is invalid" in events
    assert "JSON" in events


def test_load_flags_ignores_non_bool(tmp_path: Path) -> None:
    p = tmp_path / "state.json"
    p.write_text('{"enabled": "yes", "debug": true}', encoding="utf-8")
    assert load_flags(p) == RuntimeFlags(enabled=None, debug=True)
