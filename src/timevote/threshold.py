"""必要票数の計算。"""

from __future__ import annotations

import math


def clamp_percentage(percentage: float) -> float:
    return max(0.0, min(100.0, float(percentage)))


def required_votes(online_count: int, percentage: float) -> int:
    """オンライン人数と閾値(%)から必要票数を返す。

    常に 1 以上。誰もいない部屋でも 0 票で成立することはない。
    範囲外の percentage は 0..100 に丸める。
    """
    pct = clamp_percentage(percentage)
    return max(1, math.ceil(pct * max(0, int(online_count)) / 100.0))
