# src/services/game_api/dependencies.py
"""
Сборка зависимостей Game API.
Все коллабораторы передаются в сервисы явно через конструктор.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.common.exceptions import InvalidTokenError
from src.config import settings
from src.core.auth.telegram_auth import TelegramInitDataVerifier
from src.core.auth.tokens import TokenService, build_token_service
from src.core.players.repository import PlayerRepository
from src.core.players.service import PlayerService
from src.infra.database import DatabaseManager
from src.infra.redis_client import RedisClient, get_redis

bearer_scheme = HTTPBearer(auto_error=False)


def get_database() -> DatabaseManager:
    return DatabaseManager()


def get_cache() -> RedisClient:
    return get_redis()


def get_player_repository() -> PlayerRepository:
    return PlayerRepository(get_database())


def get_player_service() -> PlayerService:
    return PlayerService(
        get_player_repository(),
        get_cache(),
        default_ttl=settings.cache.DEFAULT_TTL,
        leaderboard_ttl=settings.cache.LEADERBOARD_TTL,
        cache_timeout=settings.redis.CACHE_OPERATION_TIMEOUT,
    )


@lru_cache()
def get_token_service() -> TokenService:
    return build_token_service()


@lru_cache()
def get_init_data_verifier() -> TelegramInitDataVerifier:
    return TelegramInitDataVerifier(settings.telegram.BOT_TOKEN)


async def require_service_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> dict[str, Any]:
    """
    Пропускает только запросы доверенного backend-клиента.

    Returns:
        Claims проверенного токена
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return tokens.decode_token(credentials.credentials)
    except InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
