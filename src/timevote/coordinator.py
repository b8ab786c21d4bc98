"""時間変更の調停（投票 → 定足数判定 → 反映）。

定足数の判定と時間変更はここでしか起きない。

cast_vote の流れ:
1. オンライン人数が minimum_players 未満 → INSUFFICIENT_POPULATION（台帳は触らない）
2. 再投票クールダウン中 → VOTE_COOLDOWN_ACTIVE（台帳は触らない）
3. 台帳に記録。UNCHANGED なら定足数判定はしない
4. tally < required → 登録のみ
5. 変更クールダウン中 → 登録のみ（suppressed）。票は残るが、次の投票が来るまで再判定しない
6. 反映 → mark_changed → 台帳リセット → リセット通知を張り直す

リセット通知（time-reset）は情報だけ。時刻を戻すわけではない。
保留中の通知は常に1つまで。張り直すときは必ず前のものを取り消す。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Hashable

from timevote.choices import TimeChoice, parse_choice
from timevote.config import TimeVoteConfig
from timevote.cooldown import CooldownGuard
from timevote.ledger import RecordOutcome, VoteLedger
from timevote.notify import Broadcaster
from timevote.scheduler import MainThreadScheduler, TaskHandle
from timevote.threshold import required_votes
from timevote.world import WorldTimeSink

log = logging.getLogger(__name__)


class RejectReason(str, Enum):
    INSUFFICIENT_POPULATION = "insufficient_population"
    VOTE_COOLDOWN_ACTIVE = "vote_cooldown_active"
    UNKNOWN_CHOICE = "unknown_choice"


@dataclass(frozen=True)
class VoteOutcome:
    rejected: RejectReason | None = None
    record: RecordOutcome | None = None
    choice: TimeChoice | None = None
    changed: bool = False  # 台帳の中身が変わったか（NEW / CHANGED）
    is_now_quorum: bool = False  # この投票で時間が変わったか
    suppressed: bool = False  # 定足数には届いたが変更クールダウン中
    tally: int = 0
    required: int = 0
    retry_after: float = 0.0  # 拒否時: あと何秒待てばよいか

    @property
    def registered(self) -> bool:
        return self.rejected is None


@dataclass(frozen=True)
class StatusSnapshot:
    per_choice: list[tuple[TimeChoice, int]]
    required: int
    player_vote: TimeChoice | None
    change_cooldown_remaining: float


class ChangeCoordinator:
    def __init__(
        self,
        config: TimeVoteConfig,
        *,
        scheduler: MainThreadScheduler,
        worlds: WorldTimeSink,
        notifier: Broadcaster,
    ) -> None:
        self.config = config
        self.scheduler = scheduler
        self.worlds = worlds
        self.notifier = notifier
        self.ledger = VoteLedger()
        self.cooldowns = CooldownGuard(
            vote_cooldown=config.cooldowns.between_votes,
            change_cooldown=config.cooldowns.between_changes,
        )
        self._pending_revert: TaskHandle | None = None

    def reconfigure(self, config: TimeVoteConfig) -> None:
        """設定を差し替える。票とクールダウン記録はそのまま。"""
        self.config = config
        self.worlds.ticks = config.time
        self.cooldowns.configure(
            vote_cooldown=config.cooldowns.between_votes,
            change_cooldown=config.cooldowns.between_changes,
        )

    def required(self, online_count: int) -> int:
        return required_votes(online_count, self.config.voting.threshold_percentage)

    def cast_vote_by_name(
        self, participant_id: Hashable, choice_name: str, online_count: int, now: float
    ) -> VoteOutcome:
        choice = parse_choice(choice_name)
        if choice is None:
            return VoteOutcome(rejected=RejectReason.UNKNOWN_CHOICE)
        return self.cast_vote(participant_id, choice, online_count, now)

    def cast_vote(
        self, participant_id: Hashable, choice: TimeChoice, online_count: int, now: float
    ) -> VoteOutcome:
        minimum = self.config.voting.minimum_players
        if online_count < minimum:
            log.debug("Not enough players online to vote: %d/%d", online_count, minimum)
            return VoteOutcome(rejected=RejectReason.INSUFFICIENT_POPULATION, choice=choice, required=minimum)

        if not self.cooldowns.can_vote(participant_id, now):
            return VoteOutcome(
                rejected=RejectReason.VOTE_COOLDOWN_ACTIVE,
                choice=choice,
                retry_after=self.cooldowns.remaining_vote_cooldown(participant_id, now),
            )

        record = self.ledger.record(participant_id, choice)
        self.cooldowns.mark_voted(participant_id, now)
        required = self.required(online_count)
        tally = self.ledger.tally(choice)

        if record is RecordOutcome.UNCHANGED:
            return VoteOutcome(record=record, choice=choice, tally=tally, required=required)

        base = dict(record=record, choice=choice, changed=True, tally=tally, required=required)
        if tally < required:
            return VoteOutcome(**base)

        if not self.cooldowns.can_change(now):
            log.debug("Time change cooldown is still active; quorum for %s suppressed", choice)
            return VoteOutcome(
                **base,
                suppressed=True,
                retry_after=self.cooldowns.remaining_change_cooldown(now),
            )

        self._apply(choice, now)
        return VoteOutcome(**base, is_now_quorum=True)

    def _apply(self, choice: TimeChoice, now: float) -> None:
        applied = self.worlds.apply_time(choice)
        self.cooldowns.mark_changed(now)
        self.ledger.reset()
        log.info("time changed to %s in %d world(s)", choice, applied)

        self._arm_revert(float(self.config.time.duration))
        self.notifier.broadcast("time-changed", time=choice.value)

    def _arm_revert(self, delay: float) -> None:
        self.cancel_pending_revert()
        if delay <= 0:
            return
        self._pending_revert = self.scheduler.call_later(delay, self._fire_revert, name="time-reset")

    def _fire_revert(self) -> None:
        self._pending_revert = None
        self.notifier.broadcast("time-reset")
        log.debug("Time has been reset to normal cycle")

    def cancel_pending_revert(self) -> None:
        if self._pending_revert is not None:
            self._pending_revert.cancel()
            self._pending_revert = None

    @property
    def pending_revert(self) -> TaskHandle | None:
        return self._pending_revert

    def status_snapshot(
        self, participant_id: Hashable | None, online_count: int, now: float
    ) -> StatusSnapshot:
        return StatusSnapshot(
            per_choice=self.ledger.tallies(),
            required=self.required(online_count),
            player_vote=self.ledger.vote_of(participant_id) if participant_id is not None else None,
            change_cooldown_remaining=self.cooldowns.remaining_change_cooldown(now),
        )

    def reset_all(self) -> None:
        """管理者用: 台帳のみ全消去（クールダウンは触らない）。"""
        self.ledger.reset()
        log.debug("Votes have been reset")

    def shutdown(self) -> None:
        self.cancel_pending_revert()
