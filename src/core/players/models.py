# src/core/players/models.py
"""
Модели данных игроков, регионов и лидерборда.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Region(BaseModel):
    """Игровой регион с адресом сервера."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="ID региона")
    name: str = Field(..., description="Название региона")
    ip: str = Field(..., description="Адрес игрового сервера региона")


class Player(BaseModel):
    """Модель игрока."""

    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = Field(None, description="Внутренний ID (назначает хранилище)")
    telegram_id: int = Field(..., description="Telegram ID, внешний ключ игрока")
    username: Optional[str] = Field(None, description="Username в Telegram")
    rating: float = Field(0.0, description="Рейтинг")
    region_id: Optional[int] = Field(None, description="Назначенный регион")
    referrer_id: Optional[int] = Field(None, description="Telegram ID пригласившего игрока")
    created_at: datetime = Field(default_factory=_utcnow, description="Дата регистрации")


class PlayerCreateDTO(BaseModel):
    """DTO для создания игрока."""

    telegram_id: int
    username: Optional[str] = None
    rating: float = 0.0
    region_id: Optional[int] = None
    referrer_id: Optional[int] = None

    def to_player(self) -> Player:
        return Player(**self.model_dump())


class PlayerUpdateDTO(BaseModel):
    """
    DTO для обновления игрока.
    Применяются только явно переданные поля.
    """

    username: Optional[str] = None
    rating: Optional[float] = None
    region_id: Optional[int] = None
    referrer_id: Optional[int] = None

    @field_validator("rating")
    @classmethod
    def rating_not_null(cls, value: Optional[float]) -> Optional[float]:
        # В БД rating NOT NULL: явный null не пропускаем
        if value is None:
            raise ValueError("rating не может быть null")
        return value

    def changed_fields(self) -> dict[str, object]:
        return self.model_dump(exclude_unset=True)


class LeaderboardEntry(BaseModel):
    """Строка лидерборда: (Telegram ID, рейтинг)."""

    model_config = ConfigDict(frozen=True)

    telegram_id: int
    rating: float


class LeaderboardSnapshot(BaseModel):
    """
    Снимок лидерборда в кэше.
    Неизменяемый, при пересчёте заменяется целиком.
    size — сколько мест запрашивалось при расчёте.
    """

    model_config = ConfigDict(frozen=True)

    size: int
    entries: tuple[LeaderboardEntry, ...] = ()
