# src/core/players/repository.py
"""
Репозитории игроков и регионов в PostgreSQL.
Основное хранилище (источник истины) для PlayerService.

Ошибки подключения поднимаются как StoreUnavailableError (см. DatabaseManager)
и не подменяются пустыми данными.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

import asyncpg

from src.common.constants import TypeMsg
from src.common.exceptions import DuplicateExternalIdError
from src.common.logger import log_info
from src.core.players.models import Player, Region
from src.infra.database import DatabaseManager

PLAYER_COLUMNS = "id, telegram_id, username, rating, region_id, referrer_id, created_at"

# Поля, которые разрешено менять через update()
UPDATABLE_FIELDS = ("username", "rating", "region_id", "referrer_id")


def _affected_rows(status: str) -> int:
    """Количество строк из статуса asyncpg ("UPDATE 1" -> 1)."""
    try:
        return int(status.split()[-1])
    except (AttributeError, IndexError, ValueError):
        return 0


def _row_to_player(row: Any) -> Player:
    return Player(
        id=row["id"],
        telegram_id=row["telegram_id"],
        username=row["username"],
        rating=row["rating"],
        region_id=row["region_id"],
        referrer_id=row["referrer_id"],
        created_at=row["created_at"],
    )


class PlayerRepository:
    """Репозиторий игроков."""

    def __init__(self, db: DatabaseManager) -> None:
        """
        Args:
            db: Менеджер базы данных
        """
        self._db = db

    async def get_all(self) -> list[Player]:
        """Все игроки в порядке регистрации."""
        rows = await self._db.fetch(
            f"SELECT {PLAYER_COLUMNS} FROM players ORDER BY id"
        )
        return [_row_to_player(row) for row in rows]

    async def get_by_id(self, player_id: int) -> Optional[Player]:
        """Игрок по внутреннему ID."""
        row = await self._db.fetchrow(
            f"SELECT {PLAYER_COLUMNS} FROM players WHERE id = $1",
            player_id,
        )
        return _row_to_player(row) if row is not None else None

    async def get_by_external_id(self, telegram_id: int) -> Optional[Player]:
        """Игрок по Telegram ID."""
        row = await self._db.fetchrow(
            f"SELECT {PLAYER_COLUMNS} FROM players WHERE telegram_id = $1",
            telegram_id,
        )
        return _row_to_player(row) if row is not None else None

    async def get_top_by_rating(self, count: int) -> list[Player]:
        """
        Топ игроков по рейтингу.
        При равном рейтинге выше игрок с меньшим Telegram ID.
        """
        rows = await self._db.fetch(
            f"""
            SELECT {PLAYER_COLUMNS}
            FROM players
            ORDER BY rating DESC, telegram_id ASC
            LIMIT $1
            """,
            count,
        )
        return [_row_to_player(row) for row in rows]

    async def insert(self, player: Player) -> Player:
        """
        Создаёт игрока.

        Raises:
            DuplicateExternalIdError: Telegram ID уже занят
        """
        try:
            row = await self._db.fetchrow(
                f"""
                INSERT INTO players (telegram_id, username, rating, region_id, referrer_id, created_at)
                VALUES ($1, $2, $3, $4, $5, $6)
                RETURNING {PLAYER_COLUMNS}
                """,
                player.telegram_id,
                player.username,
                player.rating,
                player.region_id,
                player.referrer_id,
                player.created_at,
            )
        except asyncpg.UniqueViolationError as e:
            raise DuplicateExternalIdError(player.telegram_id) from e

        await log_info(f"Игрок {player.telegram_id} создан", type_msg=TypeMsg.DEBUG)
        return _row_to_player(row)

    async def update(self, telegram_id: int, fields: dict[str, Any]) -> bool:
        """
        Обновляет разрешённые поля игрока.

        Returns:
            True, если игрок найден
        """
        changes = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}
        if not changes:
            return await self.get_by_external_id(telegram_id) is not None

        assignments = ", ".join(f"{name} = ${i}" for i, name in enumerate(changes, start=2))
        status = await self._db.execute(
            f"UPDATE players SET {assignments} WHERE telegram_id = $1",
            telegram_id,
            *changes.values(),
        )
        return _affected_rows(status) > 0

    async def adjust_rating(self, telegram_id: int, delta: float) -> bool:
        """
        Атомарно изменяет рейтинг на delta.
        Запрос не повторяется при обрыве связи.

        Returns:
            False, если игрока нет
        """
        status = await self._db.execute_once(
            "UPDATE players SET rating = rating + $2 WHERE telegram_id = $1",
            telegram_id,
            delta,
        )
        return _affected_rows(status) > 0

    async def delete(self, telegram_id: int) -> bool:
        """Удаляет игрока. True, если строка была удалена."""
        status = await self._db.execute(
            "DELETE FROM players WHERE telegram_id = $1",
            telegram_id,
        )
        return _affected_rows(status) > 0

    async def get_referrals(self, telegram_id: int) -> list[Player]:
        """Игроки, приглашённые данным игроком."""
        rows = await self._db.fetch(
            f"""
            SELECT {PLAYER_COLUMNS}
            FROM players
            WHERE referrer_id = $1
            ORDER BY created_at, telegram_id
            """,
            telegram_id,
        )
        return [_row_to_player(row) for row in rows]

    async def get_referrer(self, telegram_id: int) -> Optional[Player]:
        """Игрок, пригласивший данного."""
        row = await self._db.fetchrow(
            """
            SELECT r.id, r.telegram_id, r.username, r.rating, r.region_id, r.referrer_id, r.created_at
            FROM players p
            JOIN players r ON r.telegram_id = p.referrer_id
            WHERE p.telegram_id = $1
            """,
            telegram_id,
        )
        return _row_to_player(row) if row is not None else None

    async def assign_region(self, telegram_id: int, region_id: int) -> bool:
        """
        Назначает игроку регион.

        Returns:
            False, если нет игрока или региона
        """
        status = await self._db.execute(
            """
            UPDATE players SET region_id = $2
            WHERE telegram_id = $1
              AND EXISTS (SELECT 1 FROM regions WHERE id = $2)
            """,
            telegram_id,
            region_id,
        )
        return _affected_rows(status) > 0

    async def get_region_endpoint(self, telegram_id: int) -> Optional[str]:
        """Адрес сервера региона игрока."""
        return await self._db.fetchval(
            """
            SELECT r.ip
            FROM players p
            JOIN regions r ON r.id = p.region_id
            WHERE p.telegram_id = $1
            """,
            telegram_id,
        )


class RegionRepository:
    """Репозиторий регионов."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def get_all(self) -> list[Region]:
        rows = await self._db.fetch("SELECT id, name, ip FROM regions ORDER BY id")
        return [Region(id=row["id"], name=row["name"], ip=row["ip"]) for row in rows]

    async def seed(self, regions: Iterable[Any]) -> int:
        """
        Создаёт отсутствующие регионы (по имени), существующие не меняет.

        Args:
            regions: Объекты с атрибутами name и ip

        Returns:
            Количество созданных регионов
        """
        created = 0
        for region in regions:
            status = await self._db.execute(
                "INSERT INTO regions (name, ip) VALUES ($1, $2) ON CONFLICT (name) DO NOTHING",
                region.name,
                region.ip,
            )
            created += _affected_rows(status)

        if created:
            await log_info(f"Создано регионов: {created}", type_msg=TypeMsg.INFO)
        return created
