# src/services/game_api/schemas.py
"""
Тела запросов и ответов HTTP API.
Имена полей в JSON совпадают с существующими клиентами (camelCase).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class VerifyRequest(BaseModel):
    """Запрос проверки initData."""

    model_config = ConfigDict(populate_by_name=True)

    init_data: str = Field("", alias="initData")


class VerifyResponse(BaseModel):
    valid: bool


class LoginRequest(BaseModel):
    """Учётные данные сервисного аккаунта."""
    username: str
    password: str


class TokenResponse(BaseModel):
    token: str


class SetRegionRequest(BaseModel):
    """Назначение региона игроку."""

    model_config = ConfigDict(populate_by_name=True)

    player_id: int = Field(..., alias="playerId")
    region_id: int = Field(..., alias="regionId")


class RegionIpResponse(BaseModel):

    model_config = ConfigDict(populate_by_name=True)

    region_ip: str = Field(..., alias="regionIp")
