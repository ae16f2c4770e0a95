"""Reward curves.

Every function here is pure and clamps its arithmetic to the unsigned 64-bit
range, so no combination of inputs can wrap around or go negative.
"""

from __future__ import annotations

from typing import Iterable

U64_MAX = 2**64 - 1
U32_MAX = 2**32 - 1

MAX_LEVEL = 40
DAILY_REWARD_CAP = 100
WEEKLY_REWARD_CAP = 100
OVERFLOW_LEVEL_REWARD = 1000


def saturating_add(a: int, b: int, *, limit: int = U64_MAX) -> int:
    return max(0, min(a + b, limit))


def saturating_sub(a: int, b: int, *, limit: int = U64_MAX) -> int:
    return max(0, min(a - b, limit))


def saturating_mul(a: int, b: int, *, limit: int = U64_MAX) -> int:
    return max(0, min(a * b, limit))


# (first level, last level, base amount, amount per level into the band)
_LEVEL_BANDS = (
    (1, 10, 10, 5),
    (11, 20, 60, 10),
    (21, 30, 160, 20),
    (31, 40, 360, 40),
)


def level_reward(level: int) -> int:
    """Primary tokens granted for completing ``level``."""
    for first, last, base, step in _LEVEL_BANDS:
        if first <= level <= last:
            offset = level if first == 1 else level - (first - 1)
            return saturating_add(base, saturating_mul(offset, step))
    return OVERFLOW_LEVEL_REWARD


def daily_reward(streak_days: int) -> int:
    bonus = saturating_mul(max(streak_days, 0), 5)
    return min(saturating_add(25, bonus), DAILY_REWARD_CAP)


def weekly_reward(levels_completed: int, bosses_defeated: int, achievement_count: int) -> int:
    total = 10
    for count, weight in ((levels_completed, 2), (bosses_defeated, 5), (achievement_count, 3)):
        total = saturating_add(total, saturating_mul(max(count, 0), weight))
    return min(total, WEEKLY_REWARD_CAP)


def reward_curve(levels: Iterable[int] = range(1, MAX_LEVEL + 1)) -> list[tuple[int, int]]:
    return [(level, level_reward(level)) for level in levels]


class RewardCalculator:
    """Namespace bundling the curves for injection into services."""

    level_reward = staticmethod(level_reward)
    daily_reward = staticmethod(daily_reward)
    weekly_reward = staticmethod(weekly_reward)


__all__ = [
    "U64_MAX",
    "U32_MAX",
    "MAX_LEVEL",
    "RewardCalculator",
    "daily_reward",
    "level_reward",
    "reward_curve",
    "saturating_add",
    "saturating_mul",
    "saturating_sub",
    "weekly_reward",
]
