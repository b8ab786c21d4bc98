"""コマンド層（/votetime, /timevoting, /timeforecast）。

sender は Participant（プレイヤー）か None（コンソール）。
各ハンドラは sender 宛てに送った行のリストを返す（ブロードキャストは含まない）。
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from timevote.choices import complete_choices, parse_choice
from timevote.config import ConfigError
from timevote.coordinator import RejectReason
from timevote.ledger import RecordOutcome
from timevote.session import (
    PERM_DEBUG,
    PERM_FORECAST,
    PERM_RELOAD,
    PERM_STATUS,
    PERM_TOGGLE,
    PERM_VOTE,
    Participant,
)
from timevote.world import describe_time

if TYPE_CHECKING:
    from timevote.app import TimeVotePlugin
    from timevote.notify import Broadcaster

log = logging.getLogger(__name__)

ADMIN_SUBCOMMANDS: dict[str, str] = {
    "status": PERM_STATUS,
    "toggle": PERM_TOGGLE,
    "reload": PERM_RELOAD,
    "debug": PERM_DEBUG,
}


def _has(sender: Participant | None, node: str) -> bool:
    # コンソールは全権限
    return sender is None or sender.has_permission(node)


def _on_off(flag: bool) -> str:
    return "enabled" if flag else "disabled"


def _seconds(value: float) -> int:
    return int(math.ceil(value))


class CommandHandler:
    def __init__(self, plugin: TimeVotePlugin) -> None:
        self.plugin = plugin

    @property
    def notifier(self) -> Broadcaster:
        return self.plugin.notifier

    def _reply(
        self, sender: Participant | None, out: list[str], key: str, *, prefix: bool = True, **subs: object
    ) -> None:
        out.append(self.notifier.tell(sender, key, prefix=prefix, **subs))

    def dispatch(self, sender: Participant | None, label: str, args: list[str]) -> list[str]:
        label = label.lower().lstrip("/")
        if label == "votetime":
            return self.votetime(sender, args)
        if label == "timevoting":
            return self.timevoting(sender, args)
        if label == "timeforecast":
            return self.timeforecast(sender, args)
        raise KeyError(f"unknown command: {label}")

    def complete(self, sender: Participant | None, label: str, args: list[str]) -> list[str]:
        label = label.lower().lstrip("/")
        if len(args) != 1:
            return []
        if label == "votetime":
            return complete_choices(args[0])
        if label == "timevoting":
            partial = args[0].lower()
            return [s for s, perm in ADMIN_SUBCOMMANDS.items() if s.startswith(partial) and _has(sender, perm)]
        return []

    # --- /votetime ---

    def votetime(self, sender: Participant | None, args: list[str]) -> list[str]:
        out: list[str] = []
        plugin = self.plugin
        if not plugin.enabled:
            self._reply(sender, out, "plugin-disabled")
            return out
        if sender is None:
            self._reply(sender, out, "player-only")
            return out
        if not sender.has_permission(PERM_VOTE):
            self._reply(sender, out, "no-permission")
            return out

        if not args:
            self._show_vote_status(sender, out)
            return out

        choice = parse_choice(args[0])
        if choice is None:
            self._reply(sender, out, "invalid-time")
            return out

        now = plugin.scheduler.now()
        online = plugin.session.online_count()
        outcome = plugin.coordinator.cast_vote(sender.participant_id, choice, online, now)

        if outcome.rejected is RejectReason.INSUFFICIENT_POPULATION:
            self._reply(sender, out, "not-enough-players", required=plugin.config.voting.minimum_players)
            return out
        if outcome.rejected is RejectReason.VOTE_COOLDOWN_ACTIVE:
            self._reply(sender, out, "vote-cooldown", seconds=_seconds(outcome.retry_after))
            return out

        if outcome.record is RecordOutcome.UNCHANGED:
            self._reply(sender, out, "vote-already-cast", time=choice.value)
            return out

        key = "vote-changed" if outcome.record is RecordOutcome.CHANGED else "vote-cast"
        self._reply(sender, out, key, time=choice.value)
        self.notifier.broadcast(
            "vote-announcement",
            player=sender.name,
            time=choice.value,
            votes=outcome.tally,
            required=outcome.required,
        )
        if outcome.suppressed:
            self._reply(sender, out, "change-cooldown", seconds=_seconds(outcome.retry_after))
        return out

    def _show_vote_status(self, sender: Participant, out: list[str]) -> None:
        plugin = self.plugin
        snap = plugin.coordinator.status_snapshot(
            sender.participant_id, plugin.session.online_count(), plugin.scheduler.now()
        )
        self._reply(sender, out, "vote-status-header")
        for choice, votes in snap.per_choice:
            self._reply(
                sender, out, "vote-status-entry", prefix=False, time=choice.value, votes=votes, required=snap.required
            )
        if snap.player_vote is not None:
            self._reply(sender, out, "vote-status-your-vote", prefix=False, time=snap.player_vote.value)
        else:
            self._reply(sender, out, "vote-status-no-vote", prefix=False)

    # --- /timevoting ---

    def timevoting(self, sender: Participant | None, args: list[str]) -> list[str]:
        out: list[str] = []
        sub = args[0].lower() if args else ""
        perm = ADMIN_SUBCOMMANDS.get(sub)
        if perm is None:
            self._show_help(sender, out)
            return out
        if not _has(sender, perm):
            self._reply(sender, out, "no-permission")
            return out

        plugin = self.plugin
        if sub == "status":
            snap = plugin.coordinator.status_snapshot(
                sender.participant_id if sender else None,
                plugin.session.online_count(),
                plugin.scheduler.now(),
            )
            self._reply(sender, out, "status-header")
            self._reply(sender, out, "status-enabled", prefix=False, enabled=_on_off(plugin.enabled))
            self._reply(sender, out, "status-debug", prefix=False, debug=_on_off(plugin.debug))
            self._reply(sender, out, "status-votes-header", prefix=False)
            for choice, votes in snap.per_choice:
                self._reply(
                    sender, out, "status-votes-entry", prefix=False,
                    time=choice.value, votes=votes, required=snap.required,
                )
            self._reply(sender, out, "status-cooldown", prefix=False, seconds=_seconds(snap.change_cooldown_remaining))
        elif sub == "toggle":
            state = not plugin.enabled
            plugin.set_enabled(state)
            self._reply(sender, out, "toggle-success", state=_on_off(state))
        elif sub == "reload":
            try:
                plugin.reload()
            except ConfigError as e:
                log.warning("config reload failed: %s", e)
                self._reply(sender, out, "reload-failed", error=str(e))
                return out
            self._reply(sender, out, "reload-success")
        elif sub == "debug":
            state = not plugin.debug
            plugin.set_debug(state)
            self._reply(sender, out, "debug-success", state=_on_off(state))
        return out

    def _show_help(self, sender: Participant | None, out: list[str]) -> None:
        self._reply(sender, out, "help-header")
        for sub, perm in ADMIN_SUBCOMMANDS.items():
            if _has(sender, perm):
                self._reply(sender, out, f"help-{sub}", prefix=False)

    # --- /timeforecast ---

    def timeforecast(self, sender: Participant | None, args: list[str]) -> list[str]:
        out: list[str] = []
        plugin = self.plugin
        if not plugin.enabled:
            self._reply(sender, out, "plugin-disabled")
            return out
        if not _has(sender, PERM_FORECAST):
            self._reply(sender, out, "no-permission")
            return out

        worlds = plugin.worlds.worlds()
        world = plugin.worlds.get(sender.world) if sender is not None else None
        if world is None:
            world = worlds[0] if worlds else None
        if world is None:
            log.debug("timeforecast: no world loaded")
            return out

        self._reply(sender, out, "forecast", time=describe_time(world.time), enabled=_on_off(world.daylight_cycle))
        return out
