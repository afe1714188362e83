# src/core/__init__.py
"""
Доменный слой (Core Domain).
Игроки и лидерборд, аутентификация клиентов.
"""

from src.core.players import Player, LeaderboardEntry, PlayerService
from src.core.auth import TelegramInitDataVerifier, TokenService

__all__ = [
    "Player",
    "LeaderboardEntry",
    "PlayerService",
    "TelegramInitDataVerifier",
    "TokenService",
]
