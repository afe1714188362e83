# tests/core/test_tokens.py
"""
Тесты JWT сервисного аккаунта.
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from jose import jwt

from src.common.exceptions import ConfigurationError, InvalidTokenError
from src.core.auth.tokens import TokenService

SECRET = "unit_test_secret_key_0123456789abcdef"


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(
        SECRET,
        issuer="game_api",
        audience="game_backend",
        expire_minutes=5,
        service_username="backend",
        service_password="s3cret",
    )


class TestTokenService:
    """Тесты TokenService."""

    def test_empty_key_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            TokenService("", issuer="i", audience="a")

    def test_authenticate(self, token_service: TokenService) -> None:
        assert token_service.authenticate("backend", "s3cret") is True
        assert token_service.authenticate("backend", "wrong") is False
        assert token_service.authenticate("other", "s3cret") is False

    def test_authenticate_without_configured_account(self) -> None:
        """Без настроенного аккаунта вход невозможен даже с пустыми данными."""
        service = TokenService(SECRET, issuer="i", audience="a")

        assert service.authenticate("", "") is False

    def test_round_trip_claims(self, token_service: TokenService) -> None:
        token = token_service.create_access_token("backend")

        claims = token_service.decode_token(token)

        assert claims["sub"] == "backend"
        assert claims["iss"] == "game_api"
        assert claims["aud"] == "game_backend"
        assert claims["exp"] - claims["iat"] == 300
        assert claims["jti"]

    def test_expired_token(self, token_service: TokenService) -> None:
        token = token_service.create_access_token("backend", expires_delta=timedelta(seconds=-1))

        with pytest.raises(InvalidTokenError):
            token_service.decode_token(token)

    def test_foreign_signature(self, token_service: TokenService) -> None:
        token = jwt.encode(
            {"sub": "backend", "iss": "game_api", "aud": "game_backend"},
            "another_secret",
            algorithm="HS256",
        )

        with pytest.raises(InvalidTokenError):
            token_service.decode_token(token)

    def test_wrong_audience(self, token_service: TokenService) -> None:
        other = TokenService(SECRET, issuer="game_api", audience="someone_else")

        with pytest.raises(InvalidTokenError):
            token_service.decode_token(other.create_access_token("backend"))

    def test_garbage(self, token_service: TokenService) -> None:
        with pytest.raises(InvalidTokenError):
            token_service.decode_token("not.a.token")
