"""設定監視のテスト（inotify なしでデバウンスのみ）。"""

import time

from timevote.reload_watch import DebouncedReload
from timevote.scheduler import MainThreadScheduler


def test_debounce_collapses_to_single_reload() -> None:
    scheduler = MainThreadScheduler()
    calls: list[int] = []
    d = DebouncedReload(scheduler, lambda: calls.append(1), debounce_seconds=0.05)

    d.trigger()
    d.trigger()
    d.trigger()
    time.sleep(0.2)

    # タイマースレッドは post するだけ。実行はメインスレッド
    assert calls == []
    scheduler.run_pending()
    assert calls == [1]


def test_cancel_drops_pending_reload() -> None:
    scheduler = MainThreadScheduler()
    calls: list[int] = []
    d = DebouncedReload(scheduler, lambda: calls.append(1), debounce_seconds=0.05)

    d.trigger()
    d.cancel()
    time.sleep(0.15)
    scheduler.run_pending()
    assert calls == []
