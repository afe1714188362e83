# src/core/auth/tokens.py
"""
JWT токены доверенного backend-клиента.

Один сервисный аккаунт (SERVICE_USERNAME / SERVICE_PASSWORD) получает
access token через /api/login и передаёт его в заголовке Authorization.
"""

from __future__ import annotations

import hmac
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError, jwt

from src.common.exceptions import ConfigurationError, InvalidTokenError


class TokenService:
    """Выдача и проверка JWT (HS256)."""

    def __init__(
        self,
        secret_key: str,
        *,
        issuer: str,
        audience: str,
        expire_minutes: int = 60,
        algorithm: str = "HS256",
        service_username: str = "",
        service_password: str = "",
    ) -> None:
        if not secret_key:
            raise ConfigurationError("JWT_KEY не задан: выдача токенов невозможна")
        self._secret_key = secret_key
        self._issuer = issuer
        self._audience = audience
        self._expire_minutes = expire_minutes
        self._algorithm = algorithm
        self._service_username = service_username
        self._service_password = service_password

    def authenticate(self, username: str, password: str) -> bool:
        """
        Проверяет учётные данные сервисного аккаунта.
        Пустые настройки не пускают никого.
        """
        if not self._service_username or not self._service_password:
            return False
        username_ok = hmac.compare_digest(username.encode("utf-8"), self._service_username.encode("utf-8"))
        password_ok = hmac.compare_digest(password.encode("utf-8"), self._service_password.encode("utf-8"))
        return username_ok and password_ok

    def create_access_token(
        self,
        subject: str,
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        """
        Создаёт access token.

        Args:
            subject: Имя сервисного аккаунта (claim sub)
            expires_delta: Время жизни (по умолчанию из настроек)

        Returns:
            Подписанный JWT
        """
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=self._expire_minutes))

        claims = {
            "sub": subject,
            "jti": str(uuid.uuid4()),
            "iss": self._issuer,
            "aud": self._audience,
            "iat": int(now.timestamp()),
            "exp": int(expire.timestamp()),
        }
        return jwt.encode(claims, self._secret_key, algorithm=self._algorithm)

    def decode_token(self, token: str) -> dict[str, Any]:
        """
        Проверяет подпись, издателя, аудиторию и срок действия.

        Raises:
            InvalidTokenError: Токен невалиден или просрочен
        """
        try:
            return jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                audience=self._audience,
                issuer=self._issuer,
            )
        except JWTError as e:
            raise InvalidTokenError(str(e)) from e


def build_token_service() -> TokenService:
    """TokenService по текущим настройкам."""
    from src.config import settings

    return TokenService(
        settings.auth.JWT_KEY,
        issuer=settings.auth.JWT_ISSUER,
        audience=settings.auth.JWT_AUDIENCE,
        expire_minutes=settings.auth.JWT_EXPIRE_MINUTES,
        algorithm=settings.auth.JWT_ALGORITHM,
        service_username=settings.auth.SERVICE_USERNAME,
        service_password=settings.auth.SERVICE_PASSWORD,
    )
