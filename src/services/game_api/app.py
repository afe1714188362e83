# src/services/game_api/app.py
"""
FastAPI приложение Game API.

Endpoints:
- GET    /api/players                      - все игроки (service token)
- GET    /api/players/{telegram_id}        - игрок по Telegram ID
- POST   /api/players                      - создать игрока
- PUT    /api/players/{telegram_id}        - обновить игрока
- PUT    /api/players/{telegram_id}/rating - изменить рейтинг
- DELETE /api/players/{telegram_id}        - удалить игрока (service token)
- GET    /api/leaders                      - лидерборд
- POST   /api/verify                       - проверка initData
- POST   /api/login                        - токен backend-клиента
- GET    /api/players/referrals/{id}       - рефералы игрока
- GET    /api/players/referrer/{id}        - пригласивший игрок
- GET    /api/players/ip/{id}              - адрес игрового сервера региона
- POST   /api/players/region               - назначить регион
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from src.common.exceptions import (
    CacheUnavailableError,
    DuplicateExternalIdError,
    NotFoundError,
    StoreUnavailableError,
)
from src.common.logger import log_error, log_info, log_warning, setup_logging
from src.config import settings
from src.core.players.repository import RegionRepository
from src.infra.database import close_db, get_db, init_db
from src.infra.redis_client import close_redis, get_redis, init_redis
from src.services.game_api.routes import router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Жизненный цикл приложения."""
    setup_logging()
    settings.validate_required()

    await log_info("Запуск Game API...")
    db = await init_db()
    await RegionRepository(db).seed(settings.regions)

    try:
        await init_redis()
    except (RedisError, OSError, CacheUnavailableError) as e:
        await log_warning(f"Redis недоступен, кэш отключён: {e}")

    yield

    await log_info("Остановка Game API...")
    await close_redis()
    await close_db()


app = FastAPI(
    title="Game API",
    description="Игроки, лидерборд и проверка Telegram initData",
    version=settings.system.VERSION,
    lifespan=lifespan,
)

app.include_router(router)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(DuplicateExternalIdError)
async def duplicate_handler(request: Request, exc: DuplicateExternalIdError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError) -> JSONResponse:
    await log_error(f"Хранилище недоступно: {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Storage unavailable"},
    )


@app.get("/health")
async def health_check():
    """Состояние PostgreSQL и Redis. Недоступный Redis не делает сервис нездоровым."""
    database_ok = await get_db().health_check()
    redis_ok = await get_redis().health_check()
    return JSONResponse(
        status_code=status.HTTP_200_OK if database_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ok" if database_ok else "degraded",
            "service": "game_api",
            "database": database_ok,
            "redis": redis_ok,
        },
    )
