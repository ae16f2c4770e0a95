"""Diagnostics for RewardForge deployments."""

from .checklist import ChecklistIssue, run_checklist
from .economy_simulator import EconomySimulator, PlayerArchetype, SimulationResult

__all__ = [
    "ChecklistIssue",
    "run_checklist",
    "EconomySimulator",
    "PlayerArchetype",
    "SimulationResult",
]
