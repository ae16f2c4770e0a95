"""Command line helpers for RewardForge."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from aiogram import Bot, Dispatcher
from rich.console import Console
from rich.table import Table

from .admin import app_admin_service, build_admin_router
from .app import GameApp
from .config import RewardForgeConfig
from .diagnostics.checklist import run_checklist as checklist_run
from .diagnostics.economy_simulator import EconomySimulator, PlayerArchetype
from .domain.exceptions import RewardForgeError
from .domain.player import PlayerProfile
from .domain.rewards import daily_reward, reward_curve
from .telegram import build_router

console = Console()


def run_curves() -> None:
    parser = argparse.ArgumentParser(description="Print RewardForge reward curves")
    parser.add_argument("--max-streak", type=int, default=16, help="Last streak day to print")
    args = parser.parse_args()

    config = RewardForgeConfig.from_env()
    _configure_logging(config)

    levels = Table(title=f"Level rewards ({config.ledger.primary_symbol})")
    levels.add_column("Level", justify="right")
    levels.add_column("Reward", justify="right")
    for level, amount in reward_curve():
        levels.add_row(str(level), str(amount))
    console.print(levels)

    streaks = Table(title=f"Daily rewards ({config.ledger.primary_symbol})")
    streaks.add_column("Streak", justify="right")
    streaks.add_column("Reward", justify="right")
    for streak in range(args.max_streak + 1):
        streaks.add_row(str(streak), str(daily_reward(streak)))
    console.print(streaks)


def run_simulator() -> None:
    parser = argparse.ArgumentParser(description="RewardForge issuance simulator")
    parser.add_argument("--days", type=int, default=30, help="Number of days to simulate")
    parser.add_argument("--levels-per-day", type=float, default=1.0)
    parser.add_argument("--bosses-per-week", type=int, default=1)
    parser.add_argument("--achievements-per-week", type=int, default=1)
    args = parser.parse_args()

    config = RewardForgeConfig.from_env()
    _configure_logging(config)
    archetype = PlayerArchetype(
        levels_per_day=args.levels_per_day,
        bosses_per_week=args.bosses_per_week,
        achievements_per_week=args.achievements_per_week,
    )
    result = asyncio.run(EconomySimulator(config).simulate(archetype, days=args.days))

    table = Table(title=f"Issuance over {result.days} days")
    table.add_column("Token")
    table.add_column("Issued", justify="right")
    table.add_row(config.ledger.primary_symbol, str(result.issued.get("primary", 0)))
    table.add_row(config.ledger.premium_symbol, str(result.issued.get("premium", 0)))
    console.print(table)
    console.print(
        f"Final level: {result.final_level}, levels completed: {result.levels_completed}, "
        f"streak: {result.final_streak}"
    )


def run_profile() -> None:
    parser = argparse.ArgumentParser(description="Show a stored player profile")
    parser.add_argument("identity", help="Verified player identity")
    args = parser.parse_args()

    config = RewardForgeConfig.from_env()
    _configure_logging(config)
    try:
        profile = asyncio.run(_load_profile(config, args.identity))
    except RewardForgeError as exc:
        console.print(f"[bold red]{exc}[/bold red]")
        sys.exit(1)

    table = Table(title=f"Profile {profile.identity}")
    table.add_column("Field")
    table.add_column("Value", justify="right")
    table.add_row("Username", profile.username)
    table.add_row("Active", "yes" if profile.is_active else "no")
    table.add_row("Level", str(profile.level))
    table.add_row("Score / total", f"{profile.score} / {profile.total_score}")
    table.add_row(config.ledger.primary_symbol, str(profile.primary_balance))
    table.add_row(config.ledger.premium_symbol, str(profile.premium_balance))
    table.add_row("Levels completed", str(profile.levels_completed))
    table.add_row("Bosses defeated", str(profile.bosses_defeated))
    table.add_row("Achievements", ", ".join(sorted(profile.achievements)) or "-")
    table.add_row("Streak", str(profile.streak_days))
    console.print(table)


def run_checklist() -> None:
    argparse.ArgumentParser(description="RewardForge deployment sanity checks").parse_args()
    config = RewardForgeConfig.from_env()
    _configure_logging(config)
    issues = checklist_run(GameApp(config))
    if not issues:
        console.print("[bold green]No issues found[/bold green]")
        return
    for issue in issues:
        console.print(f"[{issue.severity.upper()}] {issue.message}", markup=False)
    if any(issue.severity == "error" for issue in issues):
        sys.exit(1)


def run_reconciliations() -> None:
    parser = argparse.ArgumentParser(description="List payouts awaiting reconciliation")
    parser.add_argument("--limit", type=int, default=50)
    args = parser.parse_args()

    config = RewardForgeConfig.from_env()
    _configure_logging(config)
    entries = asyncio.run(_pending_reconciliations(config, args.limit))
    if not entries:
        console.print("[bold green]Nothing to reconcile[/bold green]")
        return
    table = Table(title="Pending reconciliations")
    for column in ("Entry", "Identity", "Token", "Amount", "Transfer", "Reason"):
        table.add_column(column)
    for entry in entries:
        table.add_row(
            entry.entry_id,
            entry.identity,
            entry.token_type,
            str(entry.amount),
            entry.transfer_id or "-",
            entry.reason,
        )
    console.print(table)
    sys.exit(1)


def run_bot() -> None:
    argparse.ArgumentParser(description="Run the RewardForge Telegram bot").parse_args()
    config = RewardForgeConfig.from_env()
    _configure_logging(config)
    if not config.bot_token:
        console.print("[bold red]REWARDFORGE_BOT_TOKEN is not set[/bold red]")
        sys.exit(1)
    asyncio.run(_run_bot(config))


async def _run_bot(config: RewardForgeConfig) -> None:
    app = GameApp(config)
    await app.init_backend()
    bot = Bot(config.bot_token)
    dp = Dispatcher()
    dp.include_router(build_router(app))
    dp.include_router(build_admin_router(app))
    console.print("[bold green]RewardForge bot ready![/bold green]")
    try:
        await dp.start_polling(bot)
    finally:
        await app.close()


async def _load_profile(config: RewardForgeConfig, identity: str) -> PlayerProfile:
    app = GameApp(config)
    await app.init_backend()
    try:
        return await app.engine.get_profile(identity)
    finally:
        await app.close()


async def _pending_reconciliations(config: RewardForgeConfig, limit: int):
    app = GameApp(config)
    await app.init_backend()
    try:
        return await app_admin_service(app).pending(limit)
    finally:
        await app.close()


def _configure_logging(config: RewardForgeConfig) -> None:
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
