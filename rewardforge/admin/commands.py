"""Admin command wiring for aiogram."""

from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message

from ..app import GameApp
from ..domain.exceptions import RewardForgeError
from ..storage.base import ReconciliationEntry
from ..telegram.filters import AdminFilter
from .service import AdminService


def build_admin_router(app: GameApp) -> Router:
    router = Router()
    router.message.filter(AdminFilter(app.config.admin))
    service = app_admin_service(app)

    @router.message(Command("reconciliations"))
    async def handle_list(message: Message) -> None:
        entries = await service.pending()
        await message.answer(format_reconciliation_list(entries))

    @router.message(Command("resolve"))
    async def handle_resolve(message: Message) -> None:
        parts = (message.text or "").split()
        if len(parts) < 2:
            await message.answer("Использование: /resolve <entry_id>")
            return
        try:
            await service.resolve_by_commit(parts[1], operator=str(message.from_user.id))
        except (KeyError, ValueError, RewardForgeError) as exc:
            await message.answer(f"Не удалось закрыть запись: {exc}")
            return
        await message.answer(f"Запись {parts[1]} закрыта, списание применено.")

    @router.message(Command("dismiss"))
    async def handle_dismiss(message: Message) -> None:
        parts = (message.text or "").split(maxsplit=2)
        if len(parts) < 2:
            await message.answer("Использование: /dismiss <entry_id> [комментарий]")
            return
        note = parts[2] if len(parts) > 2 else None
        try:
            await service.dismiss(parts[1], operator=str(message.from_user.id), note=note)
        except (KeyError, ValueError) as exc:
            await message.answer(f"Не удалось отклонить запись: {exc}")
            return
        await message.answer(f"Запись {parts[1]} отклонена.")

    return router


def format_reconciliation_list(entries: list[ReconciliationEntry]) -> str:
    if not entries:
        return "Нет записей, ожидающих сверки ✅"
    lines = ["⚠️ Ожидают сверки:"]
    for entry in entries:
        lines.append(
            f"• {entry.entry_id}: {entry.amount} {entry.token_type} → {entry.identity} ({entry.reason})"
        )
    return "\n".join(lines)


def app_admin_service(app: GameApp) -> AdminService:
    return AdminService(
        player_store=app.player_store,
        reconciliation_store=app.reconciliation_store,
        audit_store=app.audit_store,
        clock=app.clock,
        event_bus=app.event_bus,
    )
