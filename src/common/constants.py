# src/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


# =============================================================================
# КЛЮЧИ КЭША
# =============================================================================

# Ключи должны совпадать с уже развёрнутыми инсталляциями
PLAYERS_KEY = "players"
PLAYER_KEY_PREFIX = "player"
LEADERBOARD_KEY = "players:leaderboard"
REFERRER_KEY_PREFIX = "referrer"


def player_key(telegram_id: int) -> str:
    """Ключ кэша отдельного игрока."""
    return f"{PLAYER_KEY_PREFIX}:{telegram_id}"


def legacy_player_key(telegram_id: int) -> str:
    """Старый ключ игрока (players:{id}), очищается при удалении."""
    return f"{PLAYERS_KEY}:{telegram_id}"


def referrer_key(telegram_id: int) -> str:
    """Ключ кэша реферера игрока."""
    return f"{REFERRER_KEY_PREFIX}:{telegram_id}"


# Значения по умолчанию (секунды)
DEFAULT_CACHE_TTL = 300
LEADERBOARD_CACHE_TTL = 300
DEFAULT_LEADERBOARD_SIZE = 100

# Константа для вывода секретного ключа Telegram Mini App
WEB_APP_DATA_CONSTANT = b"WebAppData"
