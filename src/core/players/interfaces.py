# src/core/players/interfaces.py
"""
Контракты внешних зависимостей PlayerService.
Реализации: RedisClient (кэш) и PlayerRepository (PostgreSQL).
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

from src.core.players.models import Player


class KeyValueCache(Protocol):
    """Распределённый key-value кэш со строковыми значениями."""

    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> Any: ...

    async def delete(self, key: str) -> Any: ...


class PlayerStore(Protocol):
    """
    Основное хранилище игроков.
    Игроки адресуются по Telegram ID, кроме get_by_id (внутренний ID).
    """

    async def get_all(self) -> list[Player]: ...

    async def get_by_id(self, player_id: int) -> Optional[Player]: ...

    async def get_by_external_id(self, telegram_id: int) -> Optional[Player]: ...

    async def get_top_by_rating(self, count: int) -> list[Player]: ...

    async def insert(self, player: Player) -> Player: ...

    async def update(self, telegram_id: int, fields: dict[str, Any]) -> bool: ...

    async def adjust_rating(self, telegram_id: int, delta: float) -> bool: ...

    async def delete(self, telegram_id: int) -> bool: ...

    async def get_referrals(self, telegram_id: int) -> list[Player]: ...

    async def get_referrer(self, telegram_id: int) -> Optional[Player]: ...

    async def assign_region(self, telegram_id: int, region_id: int) -> bool: ...

    async def get_region_endpoint(self, telegram_id: int) -> Optional[str]: ...
