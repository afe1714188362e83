# src/config/loader.py
"""
Загрузчик конфигурации сервиса.
Основной источник — config/config.json, секреты переопределяются
переменными окружения (и файлом .env).
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.common.constants import (
    DEFAULT_CACHE_TTL,
    DEFAULT_LEADERBOARD_SIZE,
    LEADERBOARD_CACHE_TTL,
)
from src.common.exceptions import ConfigurationError


# =============================================================================
# ПУТИ
# =============================================================================

def get_project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent.parent


def get_config_path() -> Path:
    """Путь к config.json."""
    return get_project_root() / "config" / "config.json"


def load_config_json(path: Path | None = None) -> dict[str, Any]:
    """
    Загружает config.json.

    Raises:
        FileNotFoundError: Файл конфигурации отсутствует
    """
    config_path = path or get_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Файл конфигурации не найден: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


# =============================================================================
# СЕКЦИИ КОНФИГУРАЦИИ
# =============================================================================

class SystemSettings(BaseModel):
    """Системные настройки."""
    PROJECT_NAME: str = "game_api"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"


class LoggingSettings(BaseModel):
    """Настройки логирования."""
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "colored"
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/game_api.log"
    LOG_MAX_BYTES: int = 10485760
    LOG_BACKUP_COUNT: int = 5


class TelegramSettings(BaseModel):
    """Настройки Telegram."""
    BOT_TOKEN: str = ""

    @field_validator("BOT_TOKEN", mode="before")
    @classmethod
    def get_from_env(cls, v: str | None) -> str:
        """Берёт токен из окружения, если он не задан в конфиге."""
        if not v:
            return os.getenv("BOT_TOKEN", "")
        return v


class DatabaseSettings(BaseModel):
    """Настройки PostgreSQL."""
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "game_api"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_MIN_POOL_SIZE: int = 5
    DB_MAX_POOL_SIZE: int = 50
    DB_COMMAND_TIMEOUT: int = 30

    @field_validator("DB_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str | None) -> str:
        if not v:
            return os.getenv("DB_PASSWORD", "")
        return v

    @property
    def dsn(self) -> str:
        """DSN для подключения к PostgreSQL."""
        return (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )


class RedisSettings(BaseModel):
    """Настройки Redis."""
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""
    # Пусто: ключи пишутся без префикса
    REDIS_NAMESPACE: str = ""
    REDIS_MAX_CONNECTIONS: int = 50
    # Должен быть заметно меньше таймаута запроса целиком
    CACHE_OPERATION_TIMEOUT: float = 0.5

    @field_validator("REDIS_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str | None) -> str:
        if not v:
            return os.getenv("REDIS_PASSWORD", "")
        return v

    @property
    def url(self) -> str:
        """URL для подключения к Redis."""
        auth = f":{self.REDIS_PASSWORD}@" if self.REDIS_PASSWORD else ""
        return f"redis://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"


class CacheSettings(BaseModel):
    """TTL кэша (секунды, скользящее окно)."""
    DEFAULT_TTL: int = DEFAULT_CACHE_TTL
    LEADERBOARD_TTL: int = LEADERBOARD_CACHE_TTL
    LEADERBOARD_SIZE: int = DEFAULT_LEADERBOARD_SIZE


class AuthSettings(BaseModel):
    """Настройки выдачи токенов доверенному backend-клиенту."""
    JWT_KEY: str = ""
    JWT_ISSUER: str = "game_api"
    JWT_AUDIENCE: str = "game_backend"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 60
    SERVICE_USERNAME: str = ""
    SERVICE_PASSWORD: str = ""


class ApiSettings(BaseModel):
    """Настройки HTTP сервера."""
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8080


class RegionSeed(BaseModel):
    """Регион, создаваемый при старте."""
    name: str
    ip: str


class Settings(BaseSettings):
    """
    Главный класс настроек.
    Агрегирует все секции конфигурации.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    system: SystemSettings = Field(default_factory=SystemSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    telegram: TelegramSettings = Field(default_factory=TelegramSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
    regions: list[RegionSeed] = Field(default_factory=list)

    @classmethod
    def from_config_dict(cls, config_data: dict[str, Any]) -> "Settings":
        """
        Создаёт Settings из плоского словаря config.json.
        Секреты и адреса инфраструктуры переопределяются из окружения.
        """
        data = {k: v for k, v in config_data.items() if not k.startswith("_comment_")}

        return cls(
            system=SystemSettings(
                PROJECT_NAME=data.get("PROJECT_NAME", "game_api"),
                VERSION=data.get("VERSION", "1.0.0"),
                DEBUG=data.get("DEBUG", False),
                ENVIRONMENT=os.getenv("ENVIRONMENT", data.get("ENVIRONMENT", "development")),
            ),
            logging=LoggingSettings(
                LOG_LEVEL=os.getenv("LOG_LEVEL", data.get("LOG_LEVEL", "INFO")),
                LOG_FORMAT=data.get("LOG_FORMAT", "colored"),
                LOG_TO_FILE=data.get("LOG_TO_FILE", False),
                LOG_FILE_PATH=data.get("LOG_FILE_PATH", "logs/game_api.log"),
                LOG_MAX_BYTES=data.get("LOG_MAX_BYTES", 10485760),
                LOG_BACKUP_COUNT=data.get("LOG_BACKUP_COUNT", 5),
            ),
            telegram=TelegramSettings(
                BOT_TOKEN=os.getenv("BOT_TOKEN", data.get("BOT_TOKEN", "")),
            ),
            database=DatabaseSettings(
                DB_HOST=os.getenv("DB_HOST", data.get("DB_HOST", "localhost")),
                DB_PORT=int(os.getenv("DB_PORT", data.get("DB_PORT", 5432))),
                DB_NAME=os.getenv("DB_NAME", data.get("DB_NAME", "game_api")),
                DB_USER=os.getenv("DB_USER", data.get("DB_USER", "postgres")),
                DB_PASSWORD=os.getenv("DB_PASSWORD", data.get("DB_PASSWORD", "")),
                DB_MIN_POOL_SIZE=data.get("DB_MIN_POOL_SIZE", 5),
                DB_MAX_POOL_SIZE=data.get("DB_MAX_POOL_SIZE", 50),
                DB_COMMAND_TIMEOUT=data.get("DB_COMMAND_TIMEOUT", 30),
            ),
            redis=RedisSettings(
                REDIS_HOST=os.getenv("REDIS_HOST", data.get("REDIS_HOST", "localhost")),
                REDIS_PORT=int(os.getenv("REDIS_PORT", data.get("REDIS_PORT", 6379))),
                REDIS_DB=data.get("REDIS_DB", 0),
                REDIS_PASSWORD=os.getenv("REDIS_PASSWORD", data.get("REDIS_PASSWORD", "")),
                REDIS_NAMESPACE=data.get("REDIS_NAMESPACE", ""),
                REDIS_MAX_CONNECTIONS=data.get("REDIS_MAX_CONNECTIONS", 50),
                CACHE_OPERATION_TIMEOUT=data.get("CACHE_OPERATION_TIMEOUT", 0.5),
            ),
            cache=CacheSettings(
                DEFAULT_TTL=data.get("DEFAULT_TTL", DEFAULT_CACHE_TTL),
                LEADERBOARD_TTL=data.get("LEADERBOARD_TTL", LEADERBOARD_CACHE_TTL),
                LEADERBOARD_SIZE=data.get("LEADERBOARD_SIZE", DEFAULT_LEADERBOARD_SIZE),
            ),
            auth=AuthSettings(
                JWT_KEY=os.getenv("JWT_KEY", data.get("JWT_KEY", "")),
                JWT_ISSUER=os.getenv("JWT_ISSUER", data.get("JWT_ISSUER", "game_api")),
                JWT_AUDIENCE=os.getenv("JWT_AUDIENCE", data.get("JWT_AUDIENCE", "game_backend")),
                JWT_EXPIRE_MINUTES=int(os.getenv("JWT_EXPIRE_MINUTES", data.get("JWT_EXPIRE_MINUTES", 60))),
                SERVICE_USERNAME=os.getenv("SERVICE_USERNAME", data.get("SERVICE_USERNAME", "")),
                SERVICE_PASSWORD=os.getenv("SERVICE_PASSWORD", data.get("SERVICE_PASSWORD", "")),
            ),
            api=ApiSettings(
                API_HOST=data.get("API_HOST", "0.0.0.0"),
                API_PORT=int(os.getenv("API_PORT", data.get("API_PORT", 8080))),
            ),
            regions=[RegionSeed(**region) for region in data.get("REGIONS", [])],
        )

    @classmethod
    def from_config_json(cls) -> "Settings":
        """
        Создаёт Settings из config/config.json.
        Без файла используются значения по умолчанию и окружение.
        """
        config_path = get_config_path()
        config_data = load_config_json(config_path) if config_path.exists() else {}
        return cls.from_config_dict(config_data)

    def validate_required(self) -> None:
        """
        Проверяет обязательные секреты перед приёмом трафика.

        Raises:
            ConfigurationError: Не задан BOT_TOKEN или JWT_KEY
        """
        missing = []
        if not self.telegram.BOT_TOKEN:
            missing.append("BOT_TOKEN")
        if not self.auth.JWT_KEY:
            missing.append("JWT_KEY")
        if missing:
            raise ConfigurationError(f"Не заданы обязательные настройки: {', '.join(missing)}")


@lru_cache()
def get_settings() -> Settings:
    """
    Синглтон настроек приложения.
    """
    from dotenv import load_dotenv

    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings.from_config_json()


settings = get_settings()
