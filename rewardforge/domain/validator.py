"""Pre-mutation checks for every player transition.

All checks compare the proposal against the record as it was read at the
start of the operation. Nothing here mutates state.
"""

from __future__ import annotations

from dataclasses import dataclass

from .economy import TokenType, balance_of
from .exceptions import (
    AchievementAlreadyExists,
    DailyRewardNotReady,
    InsufficientBalance,
    InvalidAchievementData,
    InvalidPayoutAmount,
    InvalidRewardAmount,
    InvalidLevelProgression,
    InvalidScore,
    InvalidUsername,
    ProfileInactive,
    ProfileNotFound,
    WeeklyRewardNotReady,
)
from .rewards import MAX_LEVEL, saturating_sub
from ..storage.base import PlayerRecord

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
ACHIEVEMENT_ID_MAX_LENGTH = 50
ACHIEVEMENT_NAME_MAX_LENGTH = 100
DAILY_COOLDOWN_SECONDS = 86_400
WEEKLY_COOLDOWN_SECONDS = 604_800


@dataclass(slots=True, frozen=True)
class LevelDecision:
    completion: bool


class TransitionValidator:
    """Reject invalid transitions before any mutation is applied."""

    def __init__(
        self,
        *,
        daily_cooldown: int = DAILY_COOLDOWN_SECONDS,
        weekly_cooldown: int = WEEKLY_COOLDOWN_SECONDS,
    ) -> None:
        self.daily_cooldown = daily_cooldown
        self.weekly_cooldown = weekly_cooldown

    def username(self, username: str) -> None:
        size = _byte_length(username)
        if not USERNAME_MIN_LENGTH <= size <= USERNAME_MAX_LENGTH:
            raise InvalidUsername(
                f"Username must be {USERNAME_MIN_LENGTH}-{USERNAME_MAX_LENGTH} bytes, got {size}"
            )

    def active(self, record: PlayerRecord | None, identity: str) -> PlayerRecord:
        if record is None:
            raise ProfileNotFound(f"Profile {identity} not found")
        if not record.is_active:
            raise ProfileInactive(f"Profile {identity} is inactive")
        return record

    def level_update(
        self, record: PlayerRecord, level: int, score: int, level_completed: bool
    ) -> LevelDecision:
        if level < record.level or level > MAX_LEVEL:
            raise InvalidLevelProgression(
                f"Level {level} not allowed from level {record.level} (max {MAX_LEVEL})"
            )
        if score < record.score:
            raise InvalidScore(f"Score {score} is below current score {record.score}")
        return LevelDecision(completion=level_completed and level > record.level)

    def achievement(self, record: PlayerRecord, achievement_id: str, name: str, reward: int) -> None:
        if achievement_id in record.achievements:
            raise AchievementAlreadyExists(f"Achievement {achievement_id} already unlocked")
        if (
            _byte_length(achievement_id) > ACHIEVEMENT_ID_MAX_LENGTH
            or _byte_length(name) > ACHIEVEMENT_NAME_MAX_LENGTH
        ):
            raise InvalidAchievementData("Achievement id or name too long")
        if reward < 0:
            raise InvalidAchievementData("Achievement reward cannot be negative")

    def boss_defeat(self, reward: int) -> None:
        if reward < 0:
            raise InvalidRewardAmount("Reward must not be negative")

    def daily_claim(self, record: PlayerRecord, now: int) -> None:
        remaining = self._remaining(record.last_daily_claim, now, self.daily_cooldown)
        if remaining > 0:
            raise DailyRewardNotReady(remaining)

    def weekly_claim(self, record: PlayerRecord, now: int) -> None:
        remaining = self._remaining(record.last_weekly_claim, now, self.weekly_cooldown)
        if remaining > 0:
            raise WeeklyRewardNotReady(remaining)

    def payout(self, record: PlayerRecord, amount: int, token: TokenType) -> None:
        if amount <= 0:
            raise InvalidPayoutAmount("Amount must be positive")
        available = balance_of(record, token)
        if amount > available:
            raise InsufficientBalance(token.value, available, amount)

    @staticmethod
    def _remaining(last_claim: int, now: int, cooldown: int) -> int:
        elapsed = saturating_sub(now, last_claim)
        return max(0, cooldown - elapsed)


def _byte_length(value: str) -> int:
    # Limits are measured in UTF-8 bytes, as stored on the ledger side.
    return len(value.encode("utf-8"))
