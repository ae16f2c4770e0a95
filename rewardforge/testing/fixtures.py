"""Pytest fixtures for RewardForge."""

from __future__ import annotations

import pytest

from ..app import GameApp
from ..config import RewardForgeConfig
from ..domain.clock import FrozenClock
from .ledgers import ScriptedLedger


@pytest.fixture()
def memory_app() -> GameApp:
    return app_fixture()


def app_fixture(*, treasury_funds: int = 1_000_000, **kwargs) -> GameApp:
    """Helper for ad-hoc tests where pytest is not available."""
    config = RewardForgeConfig(**kwargs)
    ledger = ScriptedLedger(
        {
            config.ledger.primary_treasury: treasury_funds,
            config.ledger.premium_treasury: treasury_funds,
        }
    )
    return GameApp(config, ledger=ledger, clock=FrozenClock())
