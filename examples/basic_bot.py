"""Пример интеграции RewardForge: бот, игровой сервер и оповещения о сверке."""

from __future__ import annotations

import asyncio
import logging

from rewardforge import GameApp, RewardForgeConfig
from rewardforge.diagnostics.economy_simulator import EconomySimulator, PlayerArchetype
from rewardforge.domain import events
from rewardforge.domain.requests import AddAchievement, LevelUpdate, RecordBossDefeat

logger = logging.getLogger("rewardforge.example")


async def on_reconciliation(payload) -> None:
    # Здесь можно отправить сообщение в чат администраторов.
    logger.error("Нужна сверка выплаты %s для %s", payload["entry_id"], payload["identity"])


async def on_level(payload) -> None:
    if payload["reward"]:
        logger.info("Игрок %s прошёл уровень %s", payload["identity"], payload["level"])


def register(app: GameApp) -> None:
    """Подписываемся на события движка."""
    app.event_bus.subscribe(events.RECONCILIATION_REQUIRED, on_reconciliation)
    app.event_bus.subscribe(events.LEVEL_UPDATED, on_level)


async def game_server_report(app: GameApp, identity: str) -> None:
    """Так игровой сервер передаёт результаты матча от имени проверенного игрока."""
    await app.engine.submit(identity, LevelUpdate(level=2, score=1200, level_completed=True))
    await app.engine.submit(identity, RecordBossDefeat(boss_id="kraken", boss_level=2, reward=40))
    await app.engine.submit(identity, AddAchievement("first_boss", "Первый босс", reward=25))


def simulate() -> None:
    config = RewardForgeConfig.from_env()
    result = asyncio.run(EconomySimulator(config).simulate(PlayerArchetype(levels_per_day=2), days=30))
    print(f"Выдано за {result.days} дн.: {result.issued}, уровень {result.final_level}")


async def run_bot() -> None:
    from aiogram import Bot, Dispatcher
    from rewardforge.admin import build_admin_router
    from rewardforge.telegram import build_router

    app = GameApp(RewardForgeConfig.from_env())
    register(app)
    await app.init_backend()

    bot = Bot(app.config.bot_token)
    dp = Dispatcher()
    dp.include_router(build_router(app))
    dp.include_router(build_admin_router(app))
    try:
        await dp.start_polling(bot)
    finally:
        await app.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(run_bot())
