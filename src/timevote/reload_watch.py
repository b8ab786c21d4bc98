"""設定ファイルの監視（保存されたら自動リロード）。

- watchdog で設定ファイルのあるディレクトリを監視
- デバウンスで保存連打を1回にまとめる
- リロード自体はメインスレッドで行う（scheduler.post で渡すだけ）
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from timevote.scheduler import MainThreadScheduler

log = logging.getLogger(__name__)


class DebouncedReload:
    def __init__(
        self,
        scheduler: MainThreadScheduler,
        on_change: Callable[[], None],
        debounce_seconds: float = 0.25,
    ) -> None:
        self.scheduler = scheduler
        self.on_change = on_change
        self.debounce_seconds = debounce_seconds
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None

    def trigger(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            t = threading.Timer(self.debounce_seconds, self._fire)
            t.daemon = True
            self._timer = t
            t.start()

    def _fire(self) -> None:
        with self._lock:
            self._timer = None
        self.scheduler.post(self.on_change)

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None


class _Handler(FileSystemEventHandler):
    def __init__(self, path: Path, reload: DebouncedReload) -> None:
        self.path = path.resolve()
        self.reload = reload

    def _matches(self, event) -> bool:  # noqa: ANN001
        if event.is_directory:
            return False
        paths = [event.src_path, getattr(event, "dest_path", "") or ""]
        return any(p and Path(p).resolve() == self.path for p in paths)

    def on_created(self, event):  # type: ignore[override]
        if self._matches(event):
            self.reload.trigger()

    def on_modified(self, event):  # type: ignore[override]
        if self._matches(event):
            self.reload.trigger()

    def on_moved(self, event):  # type: ignore[override]
        if self._matches(event):
            self.reload.trigger()


class ConfigWatcher:
    def __init__(
        self,
        path: Path,
        scheduler: MainThreadScheduler,
        on_change: Callable[[], None],
        *,
        debounce_seconds: float = 0.25,
    ) -> None:
        self.path = path
        self.reload = DebouncedReload(scheduler, on_change, debounce_seconds)
        self._observer: Observer | None = None

    def start(self) -> None:
        if self._observer is not None:
            return
        directory = self.path.resolve().parent
        directory.mkdir(parents=True, exist_ok=True)
        obs = Observer()
        obs.schedule(_Handler(self.path, self.reload), str(directory), recursive=False)
        obs.daemon = True
        obs.start()
        self._observer = obs
        log.debug("watching config file: %s", self.path)

    def stop(self) -> None:
        self.reload.cancel()
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=2.0)
        self._observer = None
