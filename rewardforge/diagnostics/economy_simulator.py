"""Economy simulation helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from ..app import GameApp
from ..config import RewardForgeConfig, StorageConfig
from ..domain.clock import FrozenClock
from ..domain.economy import TokenType
from ..domain.rewards import MAX_LEVEL
from ..domain.validator import DAILY_COOLDOWN_SECONDS

_IDENTITY = "simulated-player"


@dataclass(slots=True)
class PlayerArchetype:
    """How often a simulated player plays and what they achieve."""

    levels_per_day: float = 1.0
    bosses_per_week: int = 1
    achievements_per_week: int = 1
    claims_daily: bool = True
    claims_weekly: bool = True


@dataclass(slots=True)
class SimulationResult:
    days: int
    issued: Dict[str, int] = field(default_factory=dict)
    final_level: int = 1
    final_streak: int = 0
    levels_completed: int = 0

    def add(self, token: TokenType, amount: int) -> None:
        self.issued[token.value] = self.issued.get(token.value, 0) + amount


class EconomySimulator:
    """Replay a scripted player through a throwaway in-memory engine."""

    def __init__(self, config: RewardForgeConfig | None = None) -> None:
        base = config or RewardForgeConfig()
        self._config = RewardForgeConfig(
            storage=StorageConfig(backend="memory"),
            ledger=base.ledger,
            progression=base.progression,
        )

    async def simulate(self, archetype: PlayerArchetype, *, days: int = 30) -> SimulationResult:
        clock = FrozenClock()
        app = GameApp(self._config, clock=clock)
        engine = app.engine
        await engine.initialize_player(_IDENTITY, "simulated")
        result = SimulationResult(days=days)
        progress = 0.0
        score = 0

        for day in range(days):
            progress += archetype.levels_per_day
            while progress >= 1.0:
                progress -= 1.0
                profile = await engine.get_profile(_IDENTITY)
                if profile.level >= MAX_LEVEL:
                    break
                score += 100
                outcome = await engine.update_level(_IDENTITY, profile.level + 1, score, True)
                result.add(TokenType.PRIMARY, outcome.reward)
            if archetype.claims_daily:
                outcome = await engine.claim_daily(_IDENTITY)
                result.add(TokenType.PRIMARY, outcome.reward)
            if day % 7 == 6:
                for index in range(archetype.bosses_per_week):
                    await engine.record_boss_defeat(_IDENTITY, f"boss-{day}-{index}")
                for index in range(archetype.achievements_per_week):
                    await engine.add_achievement(_IDENTITY, f"ach-{day}-{index}", "Simulated")
                if archetype.claims_weekly:
                    outcome = await engine.claim_weekly(_IDENTITY)
                    result.add(TokenType.PREMIUM, outcome.reward)
            clock.advance(DAILY_COOLDOWN_SECONDS)

        profile = await engine.get_profile(_IDENTITY)
        result.final_level = profile.level
        result.final_streak = profile.streak_days
        result.levels_completed = profile.levels_completed
        return result
