from __future__ import annotations

from pathlib import Path

import pytest

from timevote.app import TimeVotePlugin
from timevote.scheduler import MainThreadScheduler
from timevote.session import ADMIN_PERMISSIONS, Participant
from timevote.world import World


class FakeClock:
    def __init__(self, t: float = 1000.0) -> None:
        self.t = t

    def __call__(self) -> float:
        return self.t

    def advance(self, seconds: float) -> None:
        self.t += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def scheduler(clock: FakeClock) -> MainThreadScheduler:
    return MainThreadScheduler(clock=clock)


@pytest.fixture()
def config_path(tmp_path: Path) -> Path:
    p = tmp_path / "timevote.toml"
    p.write_text(
        """
[voting]
minimum_players = 2
threshold_percentage = 75

[cooldowns]
between_votes = 60
between_changes = 300

[time]
duration = 120
""",
        encoding="utf-8",
    )
    return p


@pytest.fixture()
def plugin(tmp_path: Path, config_path: Path, scheduler: MainThreadScheduler) -> TimeVotePlugin:
    pl = TimeVotePlugin(
        root=tmp_path,
        config_path=config_path,
        scheduler=scheduler,
        worlds=[World("world"), World("world_nether", daylight_cycle=False)],
        check_updates=False,
    )
    pl.enable()
    return pl


@pytest.fixture()
def join_players(plugin: TimeVotePlugin):  # noqa: ANN201
    """名前を渡すとプレイヤーとして参加させる。"""

    def _join(*names: str) -> list[Participant]:
        return [plugin.join(Participant(participant_id=n, name=n.capitalize())) for n in names]

    return _join


@pytest.fixture()
def admin(plugin: TimeVotePlugin) -> Participant:
    name = "op"
    return plugin.join(Participant(participant_id=name, name=name, permissions=ADMIN_PERMISSIONS))
