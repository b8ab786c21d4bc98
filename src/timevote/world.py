"""ワールド時刻の反映と時刻表示。

時刻は tick（0..23999）。1秒 = 20 tick。
変更後の「リセット」は状態を戻さない。昼夜サイクルがそのまま進むだけ。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from timevote.choices import TimeChoice
from timevote.config import TimeTicks

log = logging.getLogger(__name__)

TICKS_PER_DAY = 24000
TICKS_PER_SECOND = 20


class WorldAbsent(LookupError):
    """反映中にワールドが消えていた。"""


@dataclass
class World:
    name: str
    time: int = 0
    daylight_cycle: bool = True
    loaded: bool = True

    def set_time(self, ticks: int) -> None:
        if not self.loaded:
            raise WorldAbsent(self.name)
        self.time = int(ticks) % TICKS_PER_DAY

    def advance(self, ticks: int) -> None:
        if self.loaded and self.daylight_cycle:
            self.time = (self.time + int(ticks)) % TICKS_PER_DAY


class WorldTimeSink:
    def __init__(self, ticks: TimeTicks, worlds: list[World] | None = None) -> None:
        self.ticks = ticks
        self._worlds: dict[str, World] = {}
        for w in worlds or []:
            self.add(w)

    def add(self, w: World) -> World:
        self._worlds[w.name] = w
        return w

    def remove(self, name: str) -> World | None:
        return self._worlds.pop(name, None)

    def get(self, name: str) -> World | None:
        return self._worlds.get(name)

    def worlds(self) -> list[World]:
        return list(self._worlds.values())

    def apply_time(self, choice: TimeChoice) -> int:
        """全ワールドに時刻を反映する。反映できたワールド数を返す。"""
        ticks = self.ticks.ticks_for(choice)
        applied = 0
        for w in self.worlds():
            try:
                w.set_time(ticks)
            except WorldAbsent:
                log.debug("world %s is gone; skip", w.name)
                continue
            applied += 1
            log.debug("Set time to %d in world %s", ticks, w.name)
        return applied

    def advance_all(self, ticks: int) -> None:
        for w in self.worlds():
            w.advance(ticks)


def describe_time(time: int) -> str:
    """tick を `h:MM AM (Phase)` 形式にする。"""
    t = int(time) % TICKS_PER_DAY
    hours = (t // 1000 + 6) % 24
    minutes = (t % 1000) * 60 // 1000

    ampm = "PM" if hours >= 12 else "AM"
    hours = hours % 12 or 12
    text = f"{hours}:{minutes:02d} {ampm}"

    if t < 1000:
        phase = "Sunrise"
    elif t < 12000:
        phase = "Day"
    elif t < 13000:
        phase = "Sunset"
    else:
        phase = "Night"
    return f"{text} ({phase})"
