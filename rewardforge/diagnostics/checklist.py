"""Automated checks to highlight risky deployments."""

from __future__ import annotations

from dataclasses import dataclass

from ..app import GameApp
from ..domain.ledger import InMemoryTokenLedger


@dataclass(slots=True)
class ChecklistIssue:
    severity: str
    message: str


def run_checklist(app: GameApp) -> list[ChecklistIssue]:
    issues: list[ChecklistIssue] = []
    ledger = app.config.ledger

    if ledger.primary_treasury == ledger.premium_treasury:
        issues.append(
            ChecklistIssue("error", "Primary and premium payouts share one treasury account.")
        )
    if "{identity}" not in ledger.player_account_template:
        issues.append(
            ChecklistIssue(
                "error",
                "Player account template has no {identity} placeholder; all payouts would go to one account.",
            )
        )
    if ledger.transfer_timeout_seconds > 60:
        issues.append(
            ChecklistIssue("warning", "Ledger transfer timeout exceeds 60 seconds.")
        )
    if ledger.primary_symbol == ledger.premium_symbol:
        issues.append(ChecklistIssue("warning", "Primary and premium tokens use the same symbol."))

    if isinstance(app.ledger, InMemoryTokenLedger):
        issues.append(
            ChecklistIssue("warning", "In-memory token ledger configured; payouts never leave this process.")
        )
    if app.config.storage.backend == "memory":
        issues.append(
            ChecklistIssue("warning", "Memory storage configured; player records are lost on restart.")
        )
    if not app.config.admin.admin_ids:
        issues.append(
            ChecklistIssue("warning", "No admin ids configured; reconciliation commands are unreachable.")
        )
    if app.config.progression.reset_streak_on_missed_day:
        issues.append(
            ChecklistIssue("info", "Daily streaks reset after a missed day.")
        )
    return issues
