# src/common/exceptions.py
"""
Иерархия исключений сервиса.

Ошибки кэша поглощаются в PlayerService, ошибки хранилища пробрасываются
вызывающему коду, ошибки конфигурации останавливают запуск.
"""

from __future__ import annotations


class GameApiError(Exception):
    """Базовое исключение сервиса."""
    pass


class NotFoundError(GameApiError):
    """Запрошенный объект не существует."""
    pass


class PlayerNotFoundError(NotFoundError):
    """Игрок с указанным Telegram ID не найден."""

    def __init__(self, telegram_id: int) -> None:
        self.telegram_id = telegram_id
        super().__init__(f"Игрок {telegram_id} не найден")


class DuplicateExternalIdError(GameApiError):
    """Игрок с таким Telegram ID уже существует."""

    def __init__(self, telegram_id: int) -> None:
        self.telegram_id = telegram_id
        super().__init__(f"Игрок с Telegram ID {telegram_id} уже существует")


class StoreUnavailableError(GameApiError):
    """Основное хранилище (PostgreSQL) недоступно."""
    pass


class CacheUnavailableError(GameApiError):
    """Кэш (Redis) недоступен."""
    pass


class InvalidPayloadError(GameApiError):
    """Некорректные входные данные initData."""
    pass


class InvalidTokenError(GameApiError):
    """Невалидный или просроченный bearer-токен."""
    pass


class ConfigurationError(GameApiError):
    """Отсутствует обязательная настройка (токен бота, ключ JWT)."""
    pass
