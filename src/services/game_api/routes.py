# src/services/game_api/routes.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response, status

from src.config import settings
from src.common.logger import log_warning
from src.core.auth.telegram_auth import TelegramInitDataVerifier
from src.core.auth.tokens import TokenService
from src.core.players.models import LeaderboardEntry, Player, PlayerCreateDTO, PlayerUpdateDTO
from src.core.players.service import PlayerService
from src.services.game_api.dependencies import (
    get_init_data_verifier,
    get_player_service,
    get_token_service,
    require_service_token,
)
from src.services.game_api.schemas import (
    LoginRequest,
    RegionIpResponse,
    SetRegionRequest,
    TokenResponse,
    VerifyRequest,
    VerifyResponse,
)

router = APIRouter(prefix="/api", tags=["game"])


# =============================================================================
# ИГРОКИ
# =============================================================================

@router.get("/players", response_model=list[Player])
async def get_players(
    _: dict[str, Any] = Depends(require_service_token),
    service: PlayerService = Depends(get_player_service),
):
    return await service.get_all_players()


@router.get("/players/{telegram_id}", response_model=Player)
async def get_player(
    telegram_id: int,
    service: PlayerService = Depends(get_player_service),
):
    player = await service.get_player_by_id(telegram_id)
    if player is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Player not found")
    return player


@router.post("/players", response_model=Player)
async def create_player(
    player_data: PlayerCreateDTO,
    service: PlayerService = Depends(get_player_service),
):
    return await service.create_player(player_data.to_player())


@router.put("/players/{telegram_id}")
async def update_player(
    telegram_id: int,
    values: PlayerUpdateDTO,
    service: PlayerService = Depends(get_player_service),
):
    await service.update_player(telegram_id, values)
    return {}


@router.put("/players/{telegram_id}/rating")
async def update_rating(
    telegram_id: int,
    rating_change: int = Body(...),
    service: PlayerService = Depends(get_player_service),
):
    if not await service.update_rating(telegram_id, rating_change):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Player with Telegram ID {telegram_id} not found.",
        )
    return {}


@router.delete("/players/{telegram_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_player(
    telegram_id: int,
    _: dict[str, Any] = Depends(require_service_token),
    service: PlayerService = Depends(get_player_service),
):
    await service.delete_player(telegram_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# ЛИДЕРБОРД
# =============================================================================

@router.get("/leaders", response_model=list[LeaderboardEntry])
async def get_leaders(
    count: int = Query(settings.cache.LEADERBOARD_SIZE, ge=1, le=1000),
    service: PlayerService = Depends(get_player_service),
):
    leaders = await service.get_top_players(count)
    if not leaders:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No leaders found.")
    return leaders


# =============================================================================
# АУТЕНТИФИКАЦИЯ
# =============================================================================

@router.post("/verify", response_model=VerifyResponse)
async def verify_init_data(
    request: VerifyRequest,
    verifier: TelegramInitDataVerifier = Depends(get_init_data_verifier),
):
    """
    Проверяет initData Telegram Mini App.
    Любая причина отказа отдаётся одинаковым 400.
    """
    if not request.init_data or not verifier.verify(request.init_data):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST)
    return VerifyResponse(valid=True)


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: LoginRequest,
    tokens: TokenService = Depends(get_token_service),
):
    if not tokens.authenticate(credentials.username, credentials.password):
        await log_warning("Неудачная попытка входа сервисного аккаунта")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return TokenResponse(token=tokens.create_access_token(credentials.username))


# =============================================================================
# РЕФЕРАЛЫ И РЕГИОНЫ
# =============================================================================

@router.get("/players/referrals/{telegram_id}", response_model=list[Player])
async def get_referrals(
    telegram_id: int,
    service: PlayerService = Depends(get_player_service),
):
    return await service.get_referrals(telegram_id)


@router.get("/players/referrer/{telegram_id}", response_model=Player)
async def get_referrer(
    telegram_id: int,
    service: PlayerService = Depends(get_player_service),
):
    referrer = await service.get_referrer(telegram_id)
    if referrer is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Referrer not found.")
    return referrer


@router.get("/players/ip/{telegram_id}", response_model=RegionIpResponse, response_model_by_alias=True)
async def get_player_region_ip(
    telegram_id: int,
    service: PlayerService = Depends(get_player_service),
):
    region_ip = await service.get_region_endpoint(telegram_id)
    if not region_ip:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return RegionIpResponse(region_ip=region_ip)


@router.post("/players/region")
async def set_player_region(
    request: SetRegionRequest,
    service: PlayerService = Depends(get_player_service),
):
    if not await service.assign_region(request.player_id, request.region_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST)
    return {}
