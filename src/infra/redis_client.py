# src/infra/redis_client.py
"""
Клиент Redis — распределённый key-value кэш со скользящим TTL.

Запись хранится как hash из двух полей:
    data    — строковое значение (JSON, сериализацию выбирает вызывающий код)
    sldexp  — окно скользящего TTL в секундах (пусто, если TTL не задан)
Каждое успешное чтение продлевает TTL записи на её окно.
"""

from __future__ import annotations

import redis.asyncio as redis
from redis.exceptions import RedisError

from src.common.constants import TypeMsg
from src.common.exceptions import CacheUnavailableError
from src.common.logger import log_error, log_info

DATA_FIELD = "data"
SLIDING_FIELD = "sldexp"


class RedisClient:
    """
    Асинхронный клиент Redis (Singleton).
    Ошибки Redis и сети поднимаются как CacheUnavailableError.
    """

    _instance: RedisClient | None = None
    _client: redis.Redis | None = None

    def __new__(cls) -> RedisClient:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if hasattr(self, "_initialized"):
            return
        self._initialized = True
        self._client = None
        self._namespace = ""

    @property
    def client(self) -> redis.Redis:
        """Низкоуровневый клиент redis.asyncio."""
        if self._client is None:
            raise CacheUnavailableError("Redis клиент не инициализирован. Вызовите connect() сначала.")
        return self._client

    def _make_key(self, key: str) -> str:
        """Добавляет namespace к ключу. Пустой namespace оставляет ключ как есть."""
        if not self._namespace:
            return key
        return f"{self._namespace}:{key}"

    async def connect(
        self,
        url: str,
        max_connections: int = 50,
        namespace: str | None = None,
    ) -> None:
        """
        Подключается к Redis.

        Args:
            url: URL Redis
            max_connections: Максимальное количество соединений
            namespace: Префикс всех ключей (пустая строка: без префикса)
        """
        if self._client is not None:
            return

        if namespace is not None:
            self._namespace = namespace

        await log_info("Подключение к Redis...", type_msg=TypeMsg.INFO)

        self._client = redis.from_url(
            url,
            max_connections=max_connections,
            decode_responses=True,
        )
        await self._client.ping()

        await log_info("Подключение к Redis установлено", type_msg=TypeMsg.INFO)

    async def disconnect(self) -> None:
        """Закрывает соединение с Redis."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            await log_info("Соединение с Redis закрыто", type_msg=TypeMsg.INFO)

    # =========================================================================
    # KEY-VALUE С ЖИВУЩИМ ОКНОМ
    # =========================================================================

    async def get(self, key: str) -> str | None:
        """
        Возвращает значение и продлевает скользящий TTL.

        Returns:
            Значение или None, если ключа нет
        """
        full_key = self._make_key(key)
        try:
            data, sliding = await self.client.hmget(full_key, [DATA_FIELD, SLIDING_FIELD])
            if data is None:
                return None
            if sliding:
                await self.client.expire(full_key, int(sliding))
            return data
        except (RedisError, OSError) as e:
            raise CacheUnavailableError(f"Ошибка чтения ключа {key}: {e}") from e

    async def set(
        self,
        key: str,
        value: str,
        ttl: int | None = None,
    ) -> bool:
        """
        Сохраняет значение.

        Args:
            key: Ключ
            value: Значение
            ttl: Скользящее окно в секундах (None — без срока)

        Returns:
            True если успешно
        """
        full_key = self._make_key(key)
        try:
            pipe = self.client.pipeline(transaction=True)
            pipe.delete(full_key)
            pipe.hset(full_key, mapping={DATA_FIELD: value, SLIDING_FIELD: str(ttl) if ttl else ""})
            if ttl:
                pipe.expire(full_key, ttl)
            await pipe.execute()
            return True
        except (RedisError, OSError) as e:
            raise CacheUnavailableError(f"Ошибка записи ключа {key}: {e}") from e

    async def delete(self, key: str) -> int:
        """Удаляет ключ. Возвращает количество удалённых ключей."""
        try:
            return await self.client.delete(self._make_key(key))
        except (RedisError, OSError) as e:
            raise CacheUnavailableError(f"Ошибка удаления ключа {key}: {e}") from e

    # =========================================================================
    # HEALTH CHECK
    # =========================================================================

    async def health_check(self) -> bool:
        """True, если Redis отвечает на PING."""
        try:
            return await self.client.ping()
        except Exception as e:
            await log_error(f"Health check Redis failed: {e}")
            return False


def get_redis() -> RedisClient:
    """Глобальный экземпляр RedisClient."""
    return RedisClient()


async def init_redis() -> RedisClient:
    """
    Подключается к Redis по настройкам.
    """
    from src.config import settings

    redis_client = get_redis()
    await redis_client.connect(
        url=settings.redis.url,
        max_connections=settings.redis.REDIS_MAX_CONNECTIONS,
        namespace=settings.redis.REDIS_NAMESPACE,
    )
    await log_info(
        f"Redis подключён: {settings.redis.REDIS_HOST}:{settings.redis.REDIS_PORT}/{settings.redis.REDIS_DB}",
        type_msg=TypeMsg.INFO,
    )
    return redis_client


async def close_redis() -> None:
    """Закрывает подключение к Redis."""
    await get_redis().disconnect()
