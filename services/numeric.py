# services/numeric.py

from __future__ import annotations

import math
from typing import Mapping, Union

Number = Union[int, float]


def round_half_up(value: float, ndigits: int = 0) -> Union[int, float]:
    """
    0.5 を常に +∞ 方向へ丸める四捨五入。
    Python 組み込みの round() は偶数丸め（2.5 → 2）なので、スコア計算ではこちらを使う。

    ndigits=0 のときは int を返す。
    """
    if ndigits == 0:
        return int(math.floor(value + 0.5))
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def clamp_score(value: Number) -> int:
    """丸めたうえで 0〜100 の整数に収める。"""
    return max(0, min(100, round_half_up(value)))


def weighted_score(parts: Mapping[str, Number], weights: Mapping[str, float]) -> int:
    """
    サブスコア（0〜100）を重み付きで合算して 0〜100 の整数にする。
    weights のキーはすべて parts に存在している前提。
    """
    total = sum(parts[key] * weight for key, weight in weights.items())
    return clamp_score(total)
