"""投票台帳（誰がどの時間帯に投票したか）。

- 参加者ごとに有効な票は1つだけ
- 集計（tally）は票の増減と同時に更新する（O(1)で読める）
- 集計キーは固定の4択。リセット後も全選択肢が 0 で残る
"""

from __future__ import annotations

from enum import Enum
from typing import Hashable

from timevote.choices import ALL_CHOICES, TimeChoice


class RecordOutcome(str, Enum):
    NEW = "new"
    CHANGED = "changed"
    UNCHANGED = "unchanged"


class VoteLedger:
    def __init__(self) -> None:
        self._votes: dict[Hashable, TimeChoice] = {}
        self._tally: dict[TimeChoice, int] = {}
        self.reset()

    def record(self, participant_id: Hashable, choice: TimeChoice) -> RecordOutcome:
        prev = self._votes.get(participant_id)
        if prev == choice:
            return RecordOutcome.UNCHANGED

        if prev is not None:
            self._tally[prev] -= 1
        self._votes[participant_id] = choice
        self._tally[choice] += 1
        return RecordOutcome.NEW if prev is None else RecordOutcome.CHANGED

    def tally(self, choice: TimeChoice) -> int:
        return self._tally.get(choice, 0)

    def tallies(self) -> list[tuple[TimeChoice, int]]:
        """全選択肢の集計（宣言順）。"""
        return [(c, self._tally[c]) for c in ALL_CHOICES]

    def vote_of(self, participant_id: Hashable) -> TimeChoice | None:
        return self._votes.get(participant_id)

    def voter_count(self) -> int:
        return len(self._votes)

    def reset(self) -> None:
        self._votes.clear()
        self._tally = {c: 0 for c in ALL_CHOICES}
