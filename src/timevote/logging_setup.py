"""logging の初期化。

- 詳細ログ: `<root>/.timevote/logs/timevote.log`（ローテーションあり）
- 人間向けイベント: `<root>/.timevote/events.log`
- debug トグルは `timevote` ロガーだけを DEBUG/INFO で切り替える
  （root のレベルは `--log-level` のまま）
"""

from __future__ import annotations

import logging
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOGGER_NAME = "timevote"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_handler: RotatingFileHandler | None = None


def log_path_for(root: Path) -> Path:
    return root / ".timevote" / "logs" / "timevote.log"


def setup_logging(*, root: Path, level: str = "INFO", debug: bool | None = None) -> Path:
    """ファイルログを root ロガーに付ける。

    2回目以降はハンドラを作り直さずレベルだけ反映する（root が変わった時だけ付け替え）。
    `debug` が None なら `timevote` ロガーのレベルには触らない。
    """
    global _handler

    path = log_path_for(root)
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if _handler is None or Path(_handler.baseFilename) != path.absolute():
        teardown_logging()
        path.parent.mkdir(parents=True, exist_ok=True)
        _handler = RotatingFileHandler(path, maxBytes=2_000_000, backupCount=3, encoding="utf-8")
        _handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root_logger.addHandler(_handler)

        # noisy lib
        for name in ("urllib3", "watchdog"):
            logging.getLogger(name).setLevel(logging.WARNING)

    if debug is not None:
        set_debug(debug)
    return path


def teardown_logging() -> None:
    global _handler
    if _handler is None:
        return
    logging.getLogger().removeHandler(_handler)
    _handler.close()
    _handler = None


def set_debug(enabled: bool) -> None:
    logging.getLogger(LOGGER_NAME).setLevel(logging.DEBUG if enabled else logging.INFO)


def append_event(event_log_path: Path | None, msg: str) -> None:
    if event_log_path is None:
        return
    try:
        event_log_path.parent.mkdir(parents=True, exist_ok=True)
        ts = time.strftime("%Y-%m-%d %H:%M:%S")
        with event_log_path.open("a", encoding="utf-8") as f:
            f.write(f"[{ts}] {msg}\n")
    except OSError:
        return
