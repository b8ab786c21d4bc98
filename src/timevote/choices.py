"""時間帯の選択肢（day / night / sunrise / sunset）。

選択肢は閉じた列挙。文字列のまま ledger に流さず、
入口（コマンド層）で `parse_choice` に通してから扱う。
"""

from __future__ import annotations

from enum import Enum


class TimeChoice(str, Enum):
    DAY = "day"
    NIGHT = "night"
    SUNRISE = "sunrise"
    SUNSET = "sunset"

    def __str__(self) -> str:
        return self.value


ALL_CHOICES: tuple[TimeChoice, ...] = tuple(TimeChoice)


def parse_choice(text: str | None) -> TimeChoice | None:
    """名前から選択肢を引く。知らない名前は None。"""
    t = (text or "").strip().lower()
    for c in ALL_CHOICES:
        if c.value == t:
            return c
    return None


def complete_choices(prefix: str) -> list[str]:
    p = (prefix or "").lower()
    return [c.value for c in ALL_CHOICES if c.value.startswith(p)]
