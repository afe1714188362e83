# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional
from unittest.mock import AsyncMock

import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("BOT_TOKEN", "test_bot_token")
os.environ.setdefault("JWT_KEY", "test_jwt_key_with_enough_length_0123456789")
os.environ.setdefault("SERVICE_USERNAME", "backend")
os.environ.setdefault("SERVICE_PASSWORD", "backend_password")
os.environ.setdefault("DB_PASSWORD", "test_password")
os.environ.setdefault("REDIS_PASSWORD", "")

from src.common.exceptions import CacheUnavailableError, DuplicateExternalIdError
from src.core.players.models import Player


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    """Путь к файлу конфигурации."""
    return project_root / "config" / "config.json"


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Мок конфигурации для тестов."""
    return {
        "_comment_system": "Системные настройки",
        "PROJECT_NAME": "game_api_test",
        "VERSION": "1.0.0-test",
        "DEBUG": True,
        "ENVIRONMENT": "test",
        "LOG_LEVEL": "DEBUG",
        "LOG_FORMAT": "json",
        "LOG_TO_FILE": False,
        "LOG_FILE_PATH": "logs/test.log",
        "DB_HOST": "localhost",
        "DB_PORT": 5432,
        "DB_NAME": "game_api_test",
        "DB_USER": "postgres",
        "DB_MIN_POOL_SIZE": 2,
        "DB_MAX_POOL_SIZE": 5,
        "DB_COMMAND_TIMEOUT": 30,
        "REDIS_HOST": "localhost",
        "REDIS_PORT": 6379,
        "REDIS_DB": 1,
        "REDIS_NAMESPACE": "game_test",
        "REDIS_MAX_CONNECTIONS": 10,
        "CACHE_OPERATION_TIMEOUT": 0.25,
        "DEFAULT_TTL": 60,
        "LEADERBOARD_TTL": 30,
        "LEADERBOARD_SIZE": 50,
        "API_HOST": "127.0.0.1",
        "API_PORT": 8081,
        "REGIONS": [
            {"name": "eu-central", "ip": "10.0.1.10"},
            {"name": "us-east", "ip": "10.0.2.10"},
        ],
    }


# =============================================================================
# ФИКСТУРЫ ИНФРАСТРУКТУРЫ (МОКИ)
# =============================================================================

@pytest.fixture
def mock_db() -> AsyncMock:
    """Мок менеджера базы данных."""
    db = AsyncMock()
    db.fetchrow = AsyncMock(return_value=None)
    db.fetch = AsyncMock(return_value=[])
    db.execute = AsyncMock(return_value="INSERT 0 1")
    db.execute_once = AsyncMock(return_value="UPDATE 1")
    db.fetchval = AsyncMock(return_value=None)
    return db


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Мок key-value кэша."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock(return_value=True)
    redis.delete = AsyncMock(return_value=1)
    return redis


class InMemoryCache:
    """
    Кэш в памяти с интерфейсом RedisClient.
    TTL запоминается, но не истекает: истечение в тестах делается через expire().
    """

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, Optional[int]] = {}
        self.available = True

    def _check(self) -> None:
        if not self.available:
            raise CacheUnavailableError("кэш выключен в тесте")

    async def get(self, key: str) -> Optional[str]:
        self._check()
        return self.data.get(key)

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        self._check()
        self.data[key] = value
        self.ttls[key] = ttl
        return True

    async def delete(self, key: str) -> int:
        self._check()
        self.ttls.pop(key, None)
        return 1 if self.data.pop(key, None) is not None else 0

    def expire(self, key: str) -> None:
        self.data.pop(key, None)
        self.ttls.pop(key, None)


class InMemoryPlayerStore:
    """Хранилище игроков в памяти с тем же контрактом, что PlayerRepository."""

    def __init__(self) -> None:
        self.players: dict[int, Player] = {}
        self.regions: dict[int, str] = {}
        self.calls: list[str] = []
        self._next_id = 1

    def _call(self, name: str) -> None:
        self.calls.append(name)

    async def get_all(self) -> list[Player]:
        self._call("get_all")
        return sorted(self.players.values(), key=lambda p: p.id or 0)

    async def get_by_id(self, player_id: int) -> Optional[Player]:
        self._call("get_by_id")
        return next((p for p in self.players.values() if p.id == player_id), None)

    async def get_by_external_id(self, telegram_id: int) -> Optional[Player]:
        self._call("get_by_external_id")
        return self.players.get(telegram_id)

    async def get_top_by_rating(self, count: int) -> list[Player]:
        self._call("get_top_by_rating")
        ranked = sorted(self.players.values(), key=lambda p: (-p.rating, p.telegram_id))
        return ranked[:count]

    async def insert(self, player: Player) -> Player:
        self._call("insert")
        if player.telegram_id in self.players:
            raise DuplicateExternalIdError(player.telegram_id)
        stored = player.model_copy(update={"id": self._next_id})
        self._next_id += 1
        self.players[stored.telegram_id] = stored
        return stored

    async def update(self, telegram_id: int, fields: dict[str, Any]) -> bool:
        self._call("update")
        player = self.players.get(telegram_id)
        if player is None:
            return False
        self.players[telegram_id] = player.model_copy(update=fields)
        return True

    async def adjust_rating(self, telegram_id: int, delta: float) -> bool:
        self._call("adjust_rating")
        player = self.players.get(telegram_id)
        if player is None:
            return False
        self.players[telegram_id] = player.model_copy(update={"rating": player.rating + delta})
        return True

    async def delete(self, telegram_id: int) -> bool:
        self._call("delete")
        return self.players.pop(telegram_id, None) is not None

    async def get_referrals(self, telegram_id: int) -> list[Player]:
        self._call("get_referrals")
        return [p for p in self.players.values() if p.referrer_id == telegram_id]

    async def get_referrer(self, telegram_id: int) -> Optional[Player]:
        self._call("get_referrer")
        player = self.players.get(telegram_id)
        if player is None or player.referrer_id is None:
            return None
        return self.players.get(player.referrer_id)

    async def assign_region(self, telegram_id: int, region_id: int) -> bool:
        self._call("assign_region")
        if telegram_id not in self.players or region_id not in self.regions:
            return False
        self.players[telegram_id] = self.players[telegram_id].model_copy(update={"region_id": region_id})
        return True

    async def get_region_endpoint(self, telegram_id: int) -> Optional[str]:
        self._call("get_region_endpoint")
        player = self.players.get(telegram_id)
        if player is None or player.region_id is None:
            return None
        return self.regions.get(player.region_id)


@pytest.fixture
def memory_cache() -> InMemoryCache:
    return InMemoryCache()


@pytest.fixture
def memory_store() -> InMemoryPlayerStore:
    return InMemoryPlayerStore()


# =============================================================================
# ФИКСТУРЫ МОДЕЛЕЙ
# =============================================================================

@pytest.fixture
def sample_player_data() -> dict[str, Any]:
    """Пример данных игрока."""
    return {
        "id": 1,
        "telegram_id": 123456789,
        "username": "test_player",
        "rating": 42.0,
        "region_id": None,
        "referrer_id": None,
        "created_at": datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    }


@pytest.fixture
def sample_player_row(sample_player_data: dict[str, Any]) -> dict[str, Any]:
    """Строка таблицы players в виде, который возвращает asyncpg."""
    return dict(sample_player_data)


# =============================================================================
# УТИЛИТЫ
# =============================================================================

@pytest.fixture
def temp_config_file(tmp_path: Path, mock_config: dict[str, Any]) -> Path:
    """Создаёт временный файл конфигурации."""
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps(mock_config, ensure_ascii=False, indent=2))
    return config_file
