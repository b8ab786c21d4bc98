"""メインスレッド用の協調スケジューラ。

ゲーム状態（台帳/クールダウン/ワールド時刻）を触るのはメインスレッドだけ。

- `call_later(delay, fn)`: 一回きりの遅延タスク。TaskHandle で取り消せる
- `post(fn)`: 別スレッドから唯一呼んでよい入口（queue.Queue 経由）
- `run_pending()`: メインループが毎tick呼ぶ。post分 → 期限到来タスクの順で実行
"""

from __future__ import annotations

import heapq
import itertools
import logging
import queue
import time
from typing import Callable

log = logging.getLogger(__name__)


class TaskHandle:
    def __init__(self, due: float, fn: Callable[[], None], *, name: str = "") -> None:
        self.due = due
        self.fn = fn
        self.name = name or getattr(fn, "__name__", "task")
        self._cancelled = False
        self._done = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        return self._done

    @property
    def pending(self) -> bool:
        return not (self._cancelled or self._done)


class MainThreadScheduler:
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self.clock = clock
        self._timers: list[tuple[float, int, TaskHandle]] = []
        self._seq = itertools.count()
        self._inbox: queue.Queue[Callable[[], None]] = queue.Queue()

    def now(self) -> float:
        return self.clock()

    def call_later(self, delay: float, fn: Callable[[], None], *, name: str = "") -> TaskHandle:
        h = TaskHandle(self.clock() + max(0.0, float(delay)), fn, name=name)
        heapq.heappush(self._timers, (h.due, next(self._seq), h))
        return h

    def post(self, fn: Callable[[], None]) -> None:
        self._inbox.put(fn)

    def pending_count(self) -> int:
        return sum(1 for _d, _s, h in self._timers if h.pending)

    def run_pending(self, now: float | None = None) -> int:
        """実行したコールバック数を返す。"""
        ran = 0
        while True:
            try:
                fn = self._inbox.get_nowait()
            except queue.Empty:
                break
            self._run(fn, "posted")
            ran += 1

        if now is None:
            now = self.clock()
        while self._timers and self._timers[0][0] <= now:
            _due, _seq, h = heapq.heappop(self._timers)
            if h.cancelled:
                continue
            h._done = True
            self._run(h.fn, h.name)
            ran += 1
        return ran

    def cancel_all(self) -> None:
        for _d, _s, h in self._timers:
            h.cancel()
        self._timers.clear()

    def _run(self, fn: Callable[[], None], name: str) -> None:
        try:
            fn()
        except Exception:  # noqa: BLE001
            # 1つのタスクの失敗でループを止めない
            log.error("scheduled task failed: %s", name, exc_info=True)
