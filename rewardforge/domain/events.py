"""Domain event dispatch."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Awaitable, Callable, DefaultDict, Iterable, Mapping

EventPayload = Mapping[str, Any]
EventListener = Callable[[EventPayload], Awaitable[None]]

PLAYER_CREATED = "player.created"
LEVEL_UPDATED = "player.level.updated"
ACHIEVEMENT_ADDED = "player.achievement.added"
BOSS_DEFEATED = "player.boss.defeated"
DAILY_CLAIMED = "player.daily.claimed"
WEEKLY_CLAIMED = "player.weekly.claimed"
LOGIN_TOUCHED = "player.login.touched"
PAYOUT_COMPLETED = "player.payout.completed"
PLAYER_DEACTIVATED = "player.deactivated"
RECONCILIATION_REQUIRED = "payout.reconciliation.required"
RECONCILIATION_RESOLVED = "admin.reconciliation.resolved"
RECONCILIATION_DISMISSED = "admin.reconciliation.dismissed"


class EventBus:
    """Async pub-sub for committed transitions."""

    def __init__(self) -> None:
        self._listeners: DefaultDict[str, list[EventListener]] = defaultdict(list)

    def subscribe(self, event_name: str, listener: EventListener) -> None:
        self._listeners[event_name].append(listener)

    async def publish(self, event_name: str, payload: EventPayload) -> None:
        for listener in list(self._listeners.get(event_name, ())):
            await listener(payload)

    def clear(self) -> None:
        self._listeners.clear()

    def listeners(self, event_name: str) -> Iterable[EventListener]:
        return tuple(self._listeners.get(event_name, ()))
