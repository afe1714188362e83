# src/core/auth/__init__.py
"""
Аутентификация: проверка initData Telegram и токены backend-клиента.
"""

from src.core.auth.telegram_auth import TelegramInitDataVerifier, verify_init_data
from src.core.auth.tokens import TokenService

__all__ = [
    "TelegramInitDataVerifier",
    "verify_init_data",
    "TokenService",
]
