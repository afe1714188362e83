# src/core/players/__init__.py
"""
Домен игроков.
Модели, репозитории и cache-aside сервис игроков и лидерборда.
"""

from src.core.players.models import LeaderboardEntry, Player, Region
from src.core.players.repository import PlayerRepository, RegionRepository
from src.core.players.service import PlayerService

__all__ = [
    "LeaderboardEntry",
    "Player",
    "Region",
    "PlayerRepository",
    "RegionRepository",
    "PlayerService",
]
