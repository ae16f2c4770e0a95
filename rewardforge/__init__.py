"""RewardForge public API."""

from .app import GameApp
from .config import RewardForgeConfig
from .domain.economy import TokenType
from .domain.engine import TransitionEngine, TransitionResult

__all__ = [
    "GameApp",
    "RewardForgeConfig",
    "TokenType",
    "TransitionEngine",
    "TransitionResult",
]
