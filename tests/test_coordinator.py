"""coordinator のテスト（投票 → 定足数 → 反映）。"""

from __future__ import annotations

import pytest

from timevote.choices import ALL_CHOICES, TimeChoice
from timevote.config import TimeVoteConfig, parse_config
from timevote.coordinator import ChangeCoordinator, RejectReason
from timevote.ledger import RecordOutcome
from timevote.messages import MessageCatalog
from timevote.notify import Broadcaster
from timevote.scheduler import MainThreadScheduler
from timevote.session import Session
from timevote.world import World, WorldTimeSink


class RecordingSink(WorldTimeSink):
    def __init__(self, cfg: TimeVoteConfig) -> None:
        super().__init__(cfg.time, [World("world")])
        self.applied: list[TimeChoice] = []

    def apply_time(self, choice: TimeChoice) -> int:
        self.applied.append(choice)
        return super().apply_time(choice)


@pytest.fixture()
def cfg() -> TimeVoteConfig:
    return parse_config(
        {
            "voting": {"minimum_players": 2, "threshold_percentage": 75},
            "cooldowns": {"between_votes": 60, "between_changes": 300},
            "time": {"duration": 120},
        }
    )


@pytest.fixture()
def broadcasts() -> list[str]:
    return []


@pytest.fixture()
def sink(cfg: TimeVoteConfig) -> RecordingSink:
    return RecordingSink(cfg)


@pytest.fixture()
def coord(cfg, scheduler: MainThreadScheduler, sink: RecordingSink, broadcasts) -> ChangeCoordinator:  # noqa: ANN001
    notifier = Broadcaster(Session(), MessageCatalog(), listener=lambda _t, line: broadcasts.append(line))
    return ChangeCoordinator(cfg, scheduler=scheduler, worlds=sink, notifier=notifier)


def test_insufficient_population_does_not_touch_ledger(coord: ChangeCoordinator) -> None:
    out = coord.cast_vote("a", TimeChoice.NIGHT, online_count=1, now=0.0)
    assert out.rejected is RejectReason.INSUFFICIENT_POPULATION
    assert not out.registered
    assert coord.ledger.voter_count() == 0
    # 拒否された試行ではクールダウンを記録しない
    assert coord.cooldowns.can_vote("a", 0.0)


def test_unknown_choice_is_rejected_before_ledger(coord: ChangeCoordinator) -> None:
    out = coord.cast_vote_by_name("a", "noon", online_count=4, now=0.0)
    assert out.rejected is RejectReason.UNKNOWN_CHOICE
    assert coord.ledger.voter_count() == 0


def test_three_of_four_reaches_quorum(coord: ChangeCoordinator, sink: RecordingSink, broadcasts) -> None:  # noqa: ANN001
    o1 = coord.cast_vote("a", TimeChoice.NIGHT, 4, now=0.0)
    o2 = coord.cast_vote("b", TimeChoice.NIGHT, 4, now=1.0)
    assert (o1.changed, o1.is_now_quorum) == (True, False)
    assert (o2.tally, o2.required, o2.is_now_quorum) == (2, 3, False)
    assert sink.applied == []

    o3 = coord.cast_vote("c", TimeChoice.NIGHT, 4, now=2.0)
    assert o3.is_now_quorum and o3.changed
    assert sink.applied == [TimeChoice.NIGHT]
    assert sink.get("world").time == 13000
    assert coord.ledger.tallies() == [(c, 0) for c in ALL_CHOICES]
    assert not coord.cooldowns.can_change(3.0)
    assert any("Time has been set to" in b and "night" in b for b in broadcasts)


def test_quorum_suppressed_during_change_cooldown(coord: ChangeCoordinator, sink: RecordingSink) -> None:
    for i, pid in enumerate("abc"):
        coord.cast_vote(pid, TimeChoice.NIGHT, 4, now=float(i))
    assert sink.applied == [TimeChoice.NIGHT]

    # 変更直後、別の選択肢で定足数に届いても反映されない
    for i, pid in enumerate("abd"):
        out = coord.cast_vote(pid, TimeChoice.DAY, 4, now=100.0 + i)
    assert out.registered
    assert out.changed is True
    assert out.is_now_quorum is False
    assert out.suppressed is True
    assert out.retry_after == pytest.approx(300 - (102.0 - 2.0))
    assert sink.applied == [TimeChoice.NIGHT]
    assert coord.ledger.tally(TimeChoice.DAY) == 3


def test_stuck_quorum_needs_another_vote_after_cooldown(
    coord: ChangeCoordinator, sink: RecordingSink, scheduler: MainThreadScheduler, clock  # noqa: ANN001
) -> None:
    for i, pid in enumerate("abc"):
        coord.cast_vote(pid, TimeChoice.NIGHT, 4, now=float(i))
    for i, pid in enumerate("abd"):
        coord.cast_vote(pid, TimeChoice.DAY, 4, now=100.0 + i)

    # クールダウンが明けても時間経過だけでは再判定しない
    clock.advance(1000)
    scheduler.run_pending()
    assert sink.applied == [TimeChoice.NIGHT]

    out = coord.cast_vote("c", TimeChoice.DAY, 4, now=1000.0)
    assert out.is_now_quorum
    assert sink.applied == [TimeChoice.NIGHT, TimeChoice.DAY]


def test_revote_within_cooldown_is_rejected(coord: ChangeCoordinator) -> None:
    coord.cast_vote("a", TimeChoice.DAY, 4, now=0.0)
    out = coord.cast_vote("a", TimeChoice.NIGHT, 4, now=30.0)
    assert out.rejected is RejectReason.VOTE_COOLDOWN_ACTIVE
    assert out.retry_after == pytest.approx(30.0)
    assert coord.ledger.vote_of("a") is TimeChoice.DAY

    out = coord.cast_vote("a", TimeChoice.NIGHT, 4, now=60.0)
    assert out.record is RecordOutcome.CHANGED
    assert coord.ledger.tally(TimeChoice.DAY) == 0


def test_unchanged_vote_skips_quorum_check(coord: ChangeCoordinator, sink: RecordingSink, cfg) -> None:  # noqa: ANN001
    cfg.cooldowns.between_votes = 0
    coord.reconfigure(cfg)
    coord.cast_vote("a", TimeChoice.DAY, 2, now=0.0)
    assert sink.applied == []  # required = ceil(0.75*2) = 2

    out = coord.cast_vote("a", TimeChoice.DAY, 2, now=1.0)
    assert out.record is RecordOutcome.UNCHANGED
    assert out.changed is False
    assert not out.is_now_quorum


def test_single_online_participant_is_enough(coord: ChangeCoordinator, sink: RecordingSink, cfg) -> None:  # noqa: ANN001
    cfg.voting.minimum_players = 1
    out = coord.cast_vote("solo", TimeChoice.SUNSET, 1, now=0.0)
    assert out.required == 1
    assert out.is_now_quorum
    assert sink.applied == [TimeChoice.SUNSET]


def test_revert_notice_fires_once(coord: ChangeCoordinator, scheduler: MainThreadScheduler, clock, broadcasts) -> None:  # noqa: ANN001
    for i, pid in enumerate("abc"):
        coord.cast_vote(pid, TimeChoice.NIGHT, 4, now=clock())
    assert coord.pending_revert is not None

    clock.advance(119)
    scheduler.run_pending()
    assert not any("normal cycle" in b for b in broadcasts)

    clock.advance(2)
    scheduler.run_pending()
    assert sum("normal cycle" in b for b in broadcasts) == 1
    assert coord.pending_revert is None


def test_second_change_supersedes_pending_revert(
    coord: ChangeCoordinator, scheduler: MainThreadScheduler, clock, broadcasts, cfg  # noqa: ANN001
) -> None:
    cfg.cooldowns.between_changes = 0
    cfg.cooldowns.between_votes = 0
    coord.reconfigure(cfg)

    for pid in "abc":
        coord.cast_vote(pid, TimeChoice.NIGHT, 4, now=clock())
    first = coord.pending_revert
    clock.advance(60)
    for pid in "abc":
        coord.cast_vote(pid, TimeChoice.DAY, 4, now=clock())
    second = coord.pending_revert

    assert first is not None and first.cancelled
    assert second is not None and second is not first

    clock.advance(1000)
    scheduler.run_pending()
    assert sum("normal cycle" in b for b in broadcasts) == 1


def test_zero_duration_disables_revert_notice(coord: ChangeCoordinator, cfg) -> None:  # noqa: ANN001
    cfg.time.duration = 0
    for pid in "abc":
        coord.cast_vote(pid, TimeChoice.NIGHT, 4, now=0.0)
    assert coord.pending_revert is None


def test_status_snapshot_and_reset_all(coord: ChangeCoordinator) -> None:
    coord.cast_vote("a", TimeChoice.SUNRISE, 4, now=0.0)
    snap = coord.status_snapshot("a", 4, now=0.0)
    assert snap.per_choice[2] == (TimeChoice.SUNRISE, 1)
    assert snap.required == 3
    assert snap.player_vote is TimeChoice.SUNRISE
    assert snap.change_cooldown_remaining == 0.0

    coord.reset_all()
    assert coord.status_snapshot("a", 4, now=0.0).player_vote is None
    # クールダウンは残る
    assert not coord.cooldowns.can_vote("a", 1.0)


def test_absent_world_is_skipped(coord: ChangeCoordinator, sink: RecordingSink) -> None:
    gone = sink.add(World("world_the_end"))
    gone.loaded = False
    for i, pid in enumerate("abc"):
        coord.cast_vote(pid, TimeChoice.SUNRISE, 4, now=float(i))
    assert sink.get("world").time == 23000
    assert gone.time == 0
