"""実行時フラグの保存（enabled / debug のトグル結果）。

- `.timevote/state.json` に保存し、次回起動時に設定ファイルより優先する
- 壊れていたら空扱いにして events.log に1回だけ警告を残す
"""

from __future__ import annotations

import json
import time
from dataclasses import asdict, dataclass
from pathlib import Path

_WARNED_CORRUPT_STATE: set[Path] = set()


@dataclass
class RuntimeFlags:
    enabled: bool | None = None
    debug: bool | None = None


def _warn_corrupt_state(path: Path, *, reason: str) -> None:
    if path in _WARNED_CORRUPT_STATE:
        return
    _WARNED_CORRUPT_STATE.add(path)

    try:
        event_log_path = path.parent / "events.log"
        event_log_path.parent.mkdir(parents=True, exist_ok=True)
        ts = time.strftime("%Y-%m-%d %H:%M:%S")
        with event_log_path.open("a", encoding="utf-8") as f:
            f.write(f"[{ts}] WARN: state.json is invalid; using config values ({reason})\n")
    except OSError:
        return


def load_flags(path: Path) -> RuntimeFlags:
    if not path.exists():
        return RuntimeFlags()

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        _warn_corrupt_state(path, reason=f"read failed: {type(e).__name__}")
        return RuntimeFlags()

    if text.strip() == "":
        _warn_corrupt_state(path, reason="empty")
        return RuntimeFlags()

    try:
        raw = json.loads(text)
    except json.JSONDecodeError:
        _warn_corrupt_state(path, reason="JSON decode error")
        return RuntimeFlags()

    if not isinstance(raw, dict):
        _warn_corrupt_state(path, reason="not an object")
        return RuntimeFlags()

    def _flag(key: str) -> bool | None:
        v = raw.get(key)
        return v if isinstance(v, bool) else None

    return RuntimeFlags(enabled=_flag("enabled"), debug=_flag("debug"))


def save_flags(path: Path, flags: RuntimeFlags) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    raw = {k: v for k, v in asdict(flags).items() if v is not None}
    path.write_text(json.dumps(raw, ensure_ascii=False, indent=2), encoding="utf-8")
