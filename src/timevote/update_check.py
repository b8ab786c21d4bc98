"""バージョン更新チェック（SpigotMC API）。

- HTTP はワーカースレッドで実行（メインスレッドを止めない）
- ワーカーは結果を計算するだけ。`update_available` を書くのはメインスレッドのみ
  （結果は scheduler.post でメインスレッドに渡す）
- 失敗してもプラグイン自体は落とさない
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable

import requests

from timevote.scheduler import MainThreadScheduler

log = logging.getLogger(__name__)

UPDATE_URL = "https://api.spigotmc.org/legacy/update.php"
RESOURCE_URL = "https://www.spigotmc.org/resources/{resource_id}"


class UpdateCheckError(RuntimeError):
    pass


@dataclass(frozen=True)
class UpdateResult:
    ok: bool
    current: str
    latest: str | None = None
    newer: bool = False
    error: str = ""


def fetch_latest_version(resource_id: int, *, timeout: float = 5.0) -> str | None:
    """本文の1行目を返す。空なら None、200 以外は UpdateCheckError。"""
    r = requests.get(UPDATE_URL, params={"resource": resource_id}, timeout=timeout)
    if r.status_code != 200:
        raise UpdateCheckError(f"HTTP response code {r.status_code}")
    lines = (r.text or "").splitlines()
    return lines[0].strip() if lines and lines[0].strip() else None


def normalize_version(version: str) -> str:
    """`vv1.1-SNAPSHOT` → `1.1.0`。"""
    v = version
    while v.startswith("v"):
        v = v[1:]
    dash = v.find("-")
    if dash > 0:
        v = v[:dash]
    v = v.strip()
    if len(v.split(".")) == 2:
        v = v + ".0"
    return v


def _part(parts: list[str], i: int) -> int:
    if i >= len(parts):
        return 0
    digits = "".join(ch for ch in parts[i] if ch.isdigit())
    return int(digits) if digits else 0


def is_newer_version(candidate: str, current: str) -> bool:
    a = candidate.split(".")
    b = current.split(".")
    for i in range(max(len(a), len(b))):
        x, y = _part(a, i), _part(b, i)
        if x != y:
            return x > y
    return False


def check_version(resource_id: int, current: str) -> UpdateResult:
    """同期版（ワーカースレッド / CLI から呼ぶ）。例外は結果に畳む。"""
    try:
        latest = fetch_latest_version(resource_id)
    except requests.RequestException as e:
        log.warning("Failed to check for updates: %s", e, exc_info=True)
        return UpdateResult(ok=False, current=current, error=f"{type(e).__name__}: {e}")
    except UpdateCheckError as e:
        log.warning("Failed to check for updates: %s", e)
        return UpdateResult(ok=False, current=current, error=str(e))

    if latest is None:
        return UpdateResult(ok=False, current=current, error="no version in response")

    log.debug("Raw current version: %s / latest: %s", current, latest)
    newer = is_newer_version(normalize_version(latest), normalize_version(current))
    return UpdateResult(ok=True, current=current, latest=latest, newer=newer)


class UpdateChecker:
    def __init__(
        self,
        *,
        scheduler: MainThreadScheduler,
        resource_id: int,
        current_version: str,
        notify_admins: bool = True,
        fetch: Callable[[int, str], UpdateResult] = check_version,
    ) -> None:
        self.scheduler = scheduler
        self.resource_id = resource_id
        self.current_version = current_version
        self.notify_admins = notify_admins
        self._fetch = fetch
        # メインスレッドだけが書く
        self.update_available = False
        self.latest_version: str | None = None
        self.last_result: UpdateResult | None = None

    @property
    def download_url(self) -> str:
        return RESOURCE_URL.format(resource_id=self.resource_id)

    def check_for_updates(self) -> threading.Thread:
        t = threading.Thread(target=self._worker, name="timevote-update-check", daemon=True)
        t.start()
        return t

    def _worker(self) -> None:
        try:
            result = self._fetch(self.resource_id, self.current_version)
        except Exception as e:  # noqa: BLE001
            log.error("update check crashed", exc_info=True)
            result = UpdateResult(ok=False, current=self.current_version, error=f"{type(e).__name__}: {e}")
        self.scheduler.post(lambda: self.apply_result(result))

    def apply_result(self, result: UpdateResult) -> None:
        """メインスレッドで結果を反映する。"""
        self.last_result = result
        if not result.ok:
            log.warning("Failed to check for updates. (%s)", result.error)
            return
        self.latest_version = result.latest
        self.update_available = result.newer
        if result.newer:
            log.info("A new update is available: v%s", result.latest)
            log.info("You are currently running: v%s", result.current)
            log.info("Download the latest version from: %s", self.download_url)
        else:
            log.info("You are running the latest version: v%s", result.current)
