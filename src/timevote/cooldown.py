"""クールダウン管理。

2つのタイマーを独立に持つ:
- 参加者ごとの再投票間隔（between_votes）
- 時間変更後のグローバル間隔（between_changes）

`now` は呼び出し側が渡す単調時計の値（秒）。壁時計は使わない。
mark_* は実際に行動が成立したときだけ呼ぶ（拒否された試行では呼ばない）。
"""

from __future__ import annotations

from typing import Hashable


class CooldownGuard:
    def __init__(self, *, vote_cooldown: float, change_cooldown: float) -> None:
        self.vote_cooldown = float(vote_cooldown)
        self.change_cooldown = float(change_cooldown)
        self._last_vote: dict[Hashable, float] = {}
        self._last_change: float | None = None

    def configure(self, *, vote_cooldown: float, change_cooldown: float) -> None:
        """設定リロード時に間隔だけ差し替える（記録済みの時刻は保持）。"""
        self.vote_cooldown = float(vote_cooldown)
        self.change_cooldown = float(change_cooldown)

    # --- per-voter ---

    def remaining_vote_cooldown(self, participant_id: Hashable, now: float) -> float:
        last = self._last_vote.get(participant_id)
        if last is None:
            return 0.0
        return max(0.0, self.vote_cooldown - (now - last))

    def can_vote(self, participant_id: Hashable, now: float) -> bool:
        return self.remaining_vote_cooldown(participant_id, now) <= 0.0

    def mark_voted(self, participant_id: Hashable, now: float) -> None:
        self._last_vote[participant_id] = now

    # --- global ---

    def remaining_change_cooldown(self, now: float) -> float:
        if self._last_change is None:
            return 0.0
        return max(0.0, self.change_cooldown - (now - self._last_change))

    def can_change(self, now: float) -> bool:
        return self.remaining_change_cooldown(now) <= 0.0

    def mark_changed(self, now: float) -> None:
        self._last_change = now

    @property
    def last_change(self) -> float | None:
        return self._last_change
