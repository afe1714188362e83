# src/core/auth/telegram_auth.py
"""
Проверка подписи initData Telegram Mini App.

Алгоритм:
    1. initData разбирается как query string, при повторе ключа побеждает последний.
       Поле hash извлекается, без него данные невалидны.
    2. data_check_string — оставшиеся пары "key=value" (значения декодированы),
       отсортированные по ключу побайтно и склеенные через "\\n".
    3. secret_key = HMAC-SHA256(key=<bot_token>, msg=b"WebAppData").
    4. hash = hex(HMAC-SHA256(key=secret_key, msg=data_check_string)).
    5. Сравнение с полученным hash за постоянное время.

Наружу отдаётся только bool: причина отказа не раскрывается.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Mapping
from urllib.parse import parse_qsl, urlencode

from src.common.constants import WEB_APP_DATA_CONSTANT
from src.common.exceptions import ConfigurationError, InvalidPayloadError

HASH_FIELD = "hash"


def parse_init_data(init_data: str) -> dict[str, str]:
    """
    Разбирает initData в словарь (ключи и значения URL-декодированы).

    Raises:
        InvalidPayloadError: Строка не является корректной query string
    """
    if not isinstance(init_data, str):
        raise InvalidPayloadError("initData должна быть строкой")
    try:
        pairs = parse_qsl(init_data, keep_blank_values=True, strict_parsing=True)
    except ValueError as e:
        raise InvalidPayloadError(f"Ошибка парсинга initData: {e}") from e
    return dict(pairs)


def build_data_check_string(fields: Mapping[str, str]) -> str:
    """Строка для подписи: пары без hash, сортировка по ключу побайтно."""
    keys = sorted((k for k in fields if k != HASH_FIELD), key=lambda k: k.encode("utf-8"))
    return "\n".join(f"{key}={fields[key]}" for key in keys)


def derive_secret_key(bot_token: str) -> bytes:
    """Секретный ключ бота (32 байта)."""
    if not bot_token:
        raise ConfigurationError("Не задан токен бота")
    return hmac.new(bot_token.encode("utf-8"), WEB_APP_DATA_CONSTANT, hashlib.sha256).digest()


def sign_data_check_string(data_check_string: str, bot_token: str) -> str:
    """Ожидаемый hash для data_check_string в нижнем hex."""
    return hmac.new(
        derive_secret_key(bot_token),
        data_check_string.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def sign_init_data(fields: Mapping[str, str], bot_token: str) -> str:
    """
    Собирает подписанную initData из полей.
    Используется в тестах и при локальной отладке Mini App.
    """
    signature = sign_data_check_string(build_data_check_string(fields), bot_token)
    return urlencode({**{k: v for k, v in fields.items() if k != HASH_FIELD}, HASH_FIELD: signature})


def verify_init_data(init_data: str, bot_token: str) -> bool:
    """
    Проверяет, что initData подписана Telegram для данного бота.

    Args:
        init_data: URL-encoded строка Telegram.WebApp.initData
        bot_token: Токен бота

    Returns:
        True если подпись верна. Некорректные данные и неверная подпись дают False.

    Raises:
        ConfigurationError: Не задан токен бота
    """
    secret_key = derive_secret_key(bot_token)

    try:
        fields = parse_init_data(init_data)
    except InvalidPayloadError:
        return False

    received_hash = fields.pop(HASH_FIELD, None)
    if not received_hash:
        return False

    expected_hash = hmac.new(
        secret_key,
        build_data_check_string(fields).encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()

    return hmac.compare_digest(expected_hash.encode("utf-8"), received_hash.encode("utf-8"))


class TelegramInitDataVerifier:
    """
    Проверка initData с токеном, заданным при создании.
    Пустой токен — ошибка конфигурации на старте, а не на запросе.
    """

    def __init__(self, bot_token: str) -> None:
        if not bot_token:
            raise ConfigurationError("BOT_TOKEN не задан: проверка initData невозможна")
        self._bot_token = bot_token

    def verify(self, init_data: str) -> bool:
        return verify_init_data(init_data, self._bot_token)
