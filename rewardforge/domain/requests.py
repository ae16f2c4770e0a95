"""Typed transition requests accepted by ``TransitionEngine.submit``."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .economy import TokenType


@dataclass(slots=True, frozen=True)
class CreateProfile:
    username: str


@dataclass(slots=True, frozen=True)
class LevelUpdate:
    level: int
    score: int
    level_completed: bool = False


@dataclass(slots=True, frozen=True)
class AddAchievement:
    achievement_id: str
    name: str
    reward: int = 0


@dataclass(slots=True, frozen=True)
class RecordBossDefeat:
    boss_id: str
    boss_level: int = 1
    reward: int = 0


@dataclass(slots=True, frozen=True)
class ClaimDaily:
    pass


@dataclass(slots=True, frozen=True)
class ClaimWeekly:
    pass


@dataclass(slots=True, frozen=True)
class TouchLogin:
    pass


@dataclass(slots=True, frozen=True)
class Payout:
    amount: int
    token_type: TokenType = TokenType.PRIMARY
    destination: str | None = None


@dataclass(slots=True, frozen=True)
class Deactivate:
    pass


TransitionRequest = Union[
    CreateProfile,
    LevelUpdate,
    AddAchievement,
    RecordBossDefeat,
    ClaimDaily,
    ClaimWeekly,
    TouchLogin,
    Payout,
    Deactivate,
]
