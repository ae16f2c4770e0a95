"""Testing utilities for RewardForge."""

from .factory import PlayerFactory
from .fixtures import app_fixture, memory_app
from .ledgers import ScriptedLedger

__all__ = [
    "PlayerFactory",
    "app_fixture",
    "memory_app",
    "ScriptedLedger",
]
