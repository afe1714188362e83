# src/core/players/service.py
"""
Сервис игроков: cache-aside доступ к игрокам и лидерборду.

Чтение: сначала кэш, при промахе хранилище и (где указано) повторное заполнение кэша.
Запись: сначала хранилище, затем инвалидация или обновление кэша.

Кэш — только оптимизация. Любая ошибка или таймаут кэша логируется и
обрабатывается как промах (для чтения) или no-op (для записи). Ошибки
хранилища пробрасываются вызывающему коду без изменений.

Ключи кэша:
    players                 — список всех игроков
    player:{telegram_id}    — отдельный игрок
    players:leaderboard     — снимок лидерборда
    referrer:{telegram_id}  — реферер игрока
"""

from __future__ import annotations

import asyncio
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from src.common.constants import (
    DEFAULT_CACHE_TTL,
    DEFAULT_LEADERBOARD_SIZE,
    LEADERBOARD_CACHE_TTL,
    LEADERBOARD_KEY,
    PLAYERS_KEY,
    TypeMsg,
    legacy_player_key,
    player_key,
    referrer_key,
)
from src.common.exceptions import CacheUnavailableError, PlayerNotFoundError
from src.common.logger import log_info, log_warning
from src.core.players.interfaces import KeyValueCache, PlayerStore
from src.core.players.models import (
    LeaderboardEntry,
    LeaderboardSnapshot,
    Player,
    PlayerUpdateDTO,
)

_players_adapter = TypeAdapter(list[Player])

CACHE_ERRORS = (CacheUnavailableError, asyncio.TimeoutError, ConnectionError, OSError)


class PlayerService:
    """
    Cache-aside доступ к игрокам и лидерборду.
    Не хранит изменяемого состояния между запросами.
    """

    def __init__(
        self,
        store: PlayerStore,
        cache: KeyValueCache,
        *,
        default_ttl: int = DEFAULT_CACHE_TTL,
        leaderboard_ttl: int = LEADERBOARD_CACHE_TTL,
        cache_timeout: float = 0.5,
    ) -> None:
        """
        Args:
            store: Основное хранилище игроков
            cache: Key-value кэш
            default_ttl: Скользящий TTL записей игроков (секунды)
            leaderboard_ttl: TTL снимка лидерборда (секунды)
            cache_timeout: Предельное время одной операции с кэшем (секунды)
        """
        self._store = store
        self._cache = cache
        self._default_ttl = default_ttl
        self._leaderboard_ttl = leaderboard_ttl
        self._cache_timeout = cache_timeout

    # =========================================================================
    # ОПЕРАЦИИ С КЭШЕМ (best-effort)
    # =========================================================================

    async def _cache_get(self, key: str) -> Optional[str]:
        try:
            return await asyncio.wait_for(self._cache.get(key), timeout=self._cache_timeout)
        except CACHE_ERRORS as e:
            await log_warning(f"Кэш недоступен при чтении {key}, читаем из хранилища: {e!r}")
            return None

    async def _cache_set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        try:
            await asyncio.wait_for(
                self._cache.set(key, value, ttl=ttl or self._default_ttl),
                timeout=self._cache_timeout,
            )
        except CACHE_ERRORS as e:
            await log_warning(f"Кэш недоступен при записи {key}: {e!r}")

    async def _cache_remove(self, *keys: str) -> None:
        for key in keys:
            try:
                await asyncio.wait_for(self._cache.delete(key), timeout=self._cache_timeout)
            except CACHE_ERRORS as e:
                await log_warning(f"Кэш недоступен при удалении {key}: {e!r}")

    async def _cached_player(self, key: str) -> Optional[Player]:
        cached = await self._cache_get(key)
        if not cached:
            return None
        try:
            return Player.model_validate_json(cached)
        except ValidationError as e:
            await log_warning(f"Повреждённая запись кэша {key}, считаем промахом: {e}")
            return None

    # =========================================================================
    # ИГРОКИ
    # =========================================================================

    async def get_all_players(self) -> list[Player]:
        """
        Все игроки.
        При попадании в кэш хранилище не вызывается.

        Raises:
            StoreUnavailableError: Хранилище недоступно (кэш не изменяется)
        """
        cached = await self._cache_get(PLAYERS_KEY)
        if cached:
            try:
                return _players_adapter.validate_json(cached)
            except ValidationError as e:
                await log_warning(f"Повреждённая запись кэша {PLAYERS_KEY}, считаем промахом: {e}")

        players = await self._store.get_all()
        await self._cache_set(PLAYERS_KEY, _players_adapter.dump_json(players).decode())
        return players

    async def get_player_by_id(self, telegram_id: int) -> Optional[Player]:
        """
        Игрок по Telegram ID.

        При промахе кэш не заполняется, запись player:{telegram_id}
        появляется только на путях записи (создание, смена региона).
        """
        cached = await self._cached_player(player_key(telegram_id))
        if cached is not None:
            return cached

        return await self._store.get_by_external_id(telegram_id)

    async def create_player(self, player: Player) -> Player:
        """
        Создаёт игрока и кэширует его под player:{telegram_id}.

        Список players не инвалидируется: новый игрок появится в нём
        после истечения TTL.

        Raises:
            DuplicateExternalIdError: Telegram ID уже занят
        """
        stored = await self._store.insert(player)
        await self._cache_set(player_key(stored.telegram_id), stored.model_dump_json())

        await log_info(f"Игрок зарегистрирован: {stored.telegram_id}", type_msg=TypeMsg.INFO)
        return stored

    async def update_player(self, telegram_id: int, values: PlayerUpdateDTO) -> None:
        """
        Обновляет игрока в хранилище.
        Кэшированные копии не обновляются и живут до истечения TTL.

        Raises:
            PlayerNotFoundError: Игрок не найден
        """
        existing = await self._store.get_by_external_id(telegram_id)
        if existing is None:
            raise PlayerNotFoundError(telegram_id)

        if not await self._store.update(telegram_id, values.changed_fields()):
            raise PlayerNotFoundError(telegram_id)

    async def update_rating(self, telegram_id: int, delta: float) -> bool:
        """
        Изменяет рейтинг на delta и сбрасывает агрегированные кэши,
        чтобы следующее чтение пересчиталось из хранилища.

        Returns:
            False, если игрока нет (кэш не трогается)
        """
        if not await self._store.adjust_rating(telegram_id, delta):
            return False

        await self._cache_remove(PLAYERS_KEY, LEADERBOARD_KEY)
        return True

    async def delete_player(self, telegram_id: int) -> None:
        """
        Удаляет игрока и его персональную запись кэша.
        Агрегированные кэши очистятся по TTL.
        """
        await self._store.delete(telegram_id)
        await self._cache_remove(player_key(telegram_id), legacy_player_key(telegram_id))

    # =========================================================================
    # ЛИДЕРБОРД
    # =========================================================================

    async def get_top_players(self, count: int = DEFAULT_LEADERBOARD_SIZE) -> list[LeaderboardEntry]:
        """
        Топ игроков по убыванию рейтинга, при равенстве — по возрастанию Telegram ID.

        Снимок в кэше подходит, если он рассчитан минимум на count мест.
        Иначе он пересчитывается из хранилища и заменяется целиком.
        """
        if count <= 0:
            return []

        cached = await self._cache_get(LEADERBOARD_KEY)
        if cached:
            try:
                snapshot = LeaderboardSnapshot.model_validate_json(cached)
                if snapshot.size >= count:
                    return list(snapshot.entries[:count])
            except ValidationError as e:
                await log_warning(f"Повреждённый снимок лидерборда, пересчитываем: {e}")

        players = await self._store.get_top_by_rating(count)
        ranked = sorted(players, key=lambda p: (-p.rating, p.telegram_id))[:count]
        snapshot = LeaderboardSnapshot(
            size=count,
            entries=tuple(LeaderboardEntry(telegram_id=p.telegram_id, rating=p.rating) for p in ranked),
        )

        await self._cache_set(LEADERBOARD_KEY, snapshot.model_dump_json(), ttl=self._leaderboard_ttl)
        return list(snapshot.entries)

    # =========================================================================
    # РЕГИОНЫ И РЕФЕРАЛЫ
    # =========================================================================

    async def assign_region(self, telegram_id: int, region_id: int) -> bool:
        """
        Назначает регион и записывает свежую копию игрока в кэш.

        Returns:
            False, если нет игрока или региона
        """
        if not await self._store.assign_region(telegram_id, region_id):
            return False

        player = await self._store.get_by_external_id(telegram_id)
        if player is not None:
            await self._cache_set(player_key(telegram_id), player.model_dump_json())
        return True

    async def get_region_endpoint(self, telegram_id: int) -> Optional[str]:
        """Адрес сервера региона игрока."""
        return await self._store.get_region_endpoint(telegram_id)

    async def get_referrals(self, telegram_id: int) -> list[Player]:
        """Приглашённые игроком."""
        return await self._store.get_referrals(telegram_id)

    async def get_referrer(self, telegram_id: int) -> Optional[Player]:
        """
        Пригласивший игрок.
        Найденный реферер кэшируется под referrer:{telegram_id}.
        """
        key = referrer_key(telegram_id)
        cached = await self._cached_player(key)
        if cached is not None:
            return cached

        referrer = await self._store.get_referrer(telegram_id)
        if referrer is not None:
            await self._cache_set(key, referrer.model_dump_json())
        return referrer

