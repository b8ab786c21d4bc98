"""TimeVote プラグイン本体（各部品の組み立て）。

メインスレッドで `tick()` を回す前提:
- ワールド時刻を進める（20 tick/秒）
- scheduler の期限到来タスク / 他スレッドからの post を実行する
"""

from __future__ import annotations

import logging
from pathlib import Path

from timevote import __version__
from timevote.commands import CommandHandler
from timevote.config import DEFAULT_CONFIG_PATH, TimeVoteConfig, load_config
from timevote.coordinator import ChangeCoordinator
from timevote.logging_setup import append_event, set_debug as set_logging_debug
from timevote.messages import MessageCatalog
from timevote.notify import Broadcaster
from timevote.reload_watch import ConfigWatcher
from timevote.scheduler import MainThreadScheduler, TaskHandle
from timevote.session import PERM_UPDATE, Participant, Session
from timevote.state import RuntimeFlags, load_flags, save_flags
from timevote.update_check import UpdateChecker
from timevote.world import TICKS_PER_SECOND, World, WorldTimeSink

log = logging.getLogger(__name__)

UPDATE_NOTICE_DELAY = 2.0


class TimeVotePlugin:
    def __init__(
        self,
        *,
        root: Path = Path("."),
        config_path: Path | None = None,
        scheduler: MainThreadScheduler | None = None,
        worlds: list[World] | None = None,
        watch_config: bool = False,
        check_updates: bool | None = None,
    ) -> None:
        self.root = root
        self.config_path = config_path or (root / DEFAULT_CONFIG_PATH)
        self.state_path = root / ".timevote" / "state.json"
        self.event_log_path = root / ".timevote" / "events.log"
        self.scheduler = scheduler or MainThreadScheduler()

        self.config = self._load_effective_config()
        self.session = Session()
        self.catalog = MessageCatalog(self.config.messages)
        self.notifier = Broadcaster(self.session, self.catalog)
        self.worlds = WorldTimeSink(self.config.time, worlds if worlds is not None else [World("world")])
        self.coordinator = ChangeCoordinator(
            self.config,
            scheduler=self.scheduler,
            worlds=self.worlds,
            notifier=self.notifier,
        )

        self.commands = CommandHandler(self)

        self._watch_config = watch_config
        self._check_updates = check_updates
        self.watcher: ConfigWatcher | None = None
        self.update_checker: UpdateChecker | None = None
        self._tick_origin: float | None = None
        self._ticks_applied = 0
        self._notices: list[TaskHandle] = []

    # --- config ---

    def _load_effective_config(self) -> TimeVoteConfig:
        cfg = load_config(self.config_path)
        flags = load_flags(self.state_path)
        if flags.enabled is not None:
            cfg.enabled = flags.enabled
        if flags.debug is not None:
            cfg.debug = flags.debug
        return cfg

    def reload(self) -> None:
        """設定を読み直す。票・クールダウン・保留中の通知は維持する。"""
        cfg = self._load_effective_config()
        self.config = cfg
        self.catalog = MessageCatalog(cfg.messages)
        self.notifier.catalog = self.catalog
        self.coordinator.reconfigure(cfg)
        set_logging_debug(cfg.debug)
        log.debug("Configuration loaded")
        append_event(self.event_log_path, "config reloaded")

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    @property
    def debug(self) -> bool:
        return self.config.debug

    def set_enabled(self, enabled: bool) -> None:
        self.config.enabled = enabled
        self._save_flags()

    def set_debug(self, debug: bool) -> None:
        self.config.debug = debug
        set_logging_debug(debug)
        self._save_flags()

    def _save_flags(self) -> None:
        save_flags(self.state_path, RuntimeFlags(enabled=self.config.enabled, debug=self.config.debug))

    # --- lifecycle ---

    def enable(self) -> None:
        set_logging_debug(self.config.debug)
        self.coordinator.reset_all()

        upd = self.config.update_checker
        check = upd.enabled if self._check_updates is None else self._check_updates
        if check:
            self.update_checker = UpdateChecker(
                scheduler=self.scheduler,
                resource_id=upd.resource_id,
                current_version=__version__,
                notify_admins=upd.notify_admins,
            )
            self.update_checker.check_for_updates()
            log.debug("Update checker initialized with resource ID: %d", upd.resource_id)

        if self._watch_config and self.watcher is None:
            self.watcher = ConfigWatcher(self.config_path, self.scheduler, self.reload)
            self.watcher.start()

        log.info("TimeVoting has been enabled!")
        log.debug("Debug mode is enabled")
        append_event(self.event_log_path, f"enabled (v{__version__})")

    def disable(self) -> None:
        self.coordinator.shutdown()
        for h in self._notices:
            h.cancel()
        self._notices.clear()
        if self.watcher is not None:
            self.watcher.stop()
            self.watcher = None
        log.info("TimeVoting has been disabled!")
        append_event(self.event_log_path, "disabled")

    def tick(self, now: float | None = None) -> int:
        """メインループの1回分。実行したコールバック数を返す。"""
        if now is None:
            now = self.scheduler.now()
        if self._tick_origin is None:
            self._tick_origin = now
        else:
            # 端数 tick は次回へ持ち越す（起点からの累計で数える）
            due = int((now - self._tick_origin) * TICKS_PER_SECOND + 1e-6)
            if due > self._ticks_applied:
                self.worlds.advance_all(due - self._ticks_applied)
                self._ticks_applied = due
        return self.scheduler.run_pending(now)

    # --- participants ---

    def join(self, p: Participant) -> Participant:
        self.session.join(p)
        log.debug("Player joined: %s", p.name)

        uc = self.update_checker
        if uc is not None and uc.notify_admins and uc.update_available and p.has_permission(PERM_UPDATE):
            self._notices = [h for h in self._notices if h.pending]
            handle = self.scheduler.call_later(
                UPDATE_NOTICE_DELAY, lambda: self._send_update_notice(p), name="update-notice"
            )
            self._notices.append(handle)
        return p

    def leave(self, participant_id: str) -> Participant | None:
        return self.session.leave(participant_id)

    def run_command(self, sender: Participant | None, line: str) -> list[str]:
        """`/votetime night` のような1行を実行する。"""
        parts = line.strip().split()
        if not parts:
            return []
        return self.commands.dispatch(sender, parts[0], parts[1:])

    def _send_update_notice(self, p: Participant) -> None:
        uc = self.update_checker
        if uc is None or self.session.get(p.participant_id) is None:
            return
        self.notifier.tell(p, "update-available", latest=uc.latest_version or "")
        self.notifier.tell(p, "update-current", current=uc.current_version)
        self.notifier.tell(p, "update-download", url=uc.download_url)
