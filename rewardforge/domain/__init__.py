"""Domain models and services."""

from .exceptions import (
    AchievementAlreadyExists,
    ConcurrentModification,
    DailyRewardNotReady,
    InfrastructureError,
    InsufficientBalance,
    InvalidAchievementData,
    InvalidLevelProgression,
    InvalidPayoutAmount,
    InvalidRewardAmount,
    InvalidScore,
    InvalidUsername,
    LedgerTransferFailed,
    LedgerUnavailable,
    PayoutReconciliationRequired,
    ProfileAlreadyExists,
    ProfileInactive,
    ProfileNotFound,
    RewardForgeError,
    TransitionRejected,
    WeeklyRewardNotReady,
)
from .clock import Clock, FrozenClock, SystemClock
from .economy import TokenType
from .ledger import InMemoryTokenLedger, TokenLedger, TransferReceipt
from .player import PlayerProfile
from .rewards import RewardCalculator, daily_reward, level_reward, weekly_reward
from .validator import TransitionValidator
from .engine import TransitionEngine, TransitionResult

__all__ = [
    "AchievementAlreadyExists",
    "ConcurrentModification",
    "DailyRewardNotReady",
    "InfrastructureError",
    "InsufficientBalance",
    "InvalidAchievementData",
    "InvalidLevelProgression",
    "InvalidPayoutAmount",
    "InvalidRewardAmount",
    "InvalidScore",
    "InvalidUsername",
    "LedgerTransferFailed",
    "LedgerUnavailable",
    "PayoutReconciliationRequired",
    "ProfileAlreadyExists",
    "ProfileInactive",
    "ProfileNotFound",
    "RewardForgeError",
    "TransitionRejected",
    "WeeklyRewardNotReady",
    "Clock",
    "FrozenClock",
    "SystemClock",
    "TokenType",
    "InMemoryTokenLedger",
    "TokenLedger",
    "TransferReceipt",
    "PlayerProfile",
    "RewardCalculator",
    "daily_reward",
    "level_reward",
    "weekly_reward",
    "TransitionValidator",
    "TransitionEngine",
    "TransitionResult",
]
