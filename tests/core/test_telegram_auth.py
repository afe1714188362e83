# tests/core/test_telegram_auth.py
"""
Тесты проверки подписи initData Telegram.
"""

from __future__ import annotations

import hashlib
import hmac
from urllib.parse import quote

import pytest

from src.common.exceptions import ConfigurationError, InvalidPayloadError
from src.core.auth.telegram_auth import (
    TelegramInitDataVerifier,
    build_data_check_string,
    derive_secret_key,
    parse_init_data,
    sign_init_data,
    verify_init_data,
)

TEST_TOKEN = "TEST_TOKEN"


def _expected_hash(data_check_string: str, bot_token: str) -> str:
    secret = hmac.new(bot_token.encode(), b"WebAppData", hashlib.sha256).digest()
    return hmac.new(secret, data_check_string.encode(), hashlib.sha256).hexdigest()


@pytest.fixture
def signed_payload() -> str:
    """initData с правильной подписью для TEST_TOKEN."""
    return sign_init_data(
        {
            "auth_date": "1700000000",
            "query_id": "AAHdF6IQAAAAAN0XohDhrOrc",
            "user": '{"id":123,"first_name":"Ivan","username":"ivan"}',
        },
        TEST_TOKEN,
    )


class TestVerifyInitData:
    """Тесты verify_init_data."""

    def test_concrete_payload(self) -> None:
        """Эталонная строка с вручную посчитанной подписью."""
        expected = _expected_hash('auth_date=1700000000\nuser={"id":123}', TEST_TOKEN)
        payload = f"auth_date=1700000000&user=%7B%22id%22%3A123%7D&hash={expected}"

        assert verify_init_data(payload, TEST_TOKEN) is True

    def test_signed_payload_verifies(self, signed_payload: str) -> None:
        assert verify_init_data(signed_payload, TEST_TOKEN) is True

    def test_wrong_token(self, signed_payload: str) -> None:
        assert verify_init_data(signed_payload, "OTHER_TOKEN") is False

    def test_flipped_hash_character(self, signed_payload: str) -> None:
        """Изменение любого символа hash ломает подпись."""
        fields = parse_init_data(signed_payload)
        original = fields["hash"]

        for index in (0, len(original) // 2, len(original) - 1):
            flipped = "0" if original[index] != "0" else "1"
            fields["hash"] = original[:index] + flipped + original[index + 1:]
            tampered = "&".join(f"{k}={quote(v)}" for k, v in fields.items())
            assert verify_init_data(tampered, TEST_TOKEN) is False

    def test_tampered_field_value(self, signed_payload: str) -> None:
        """Изменение значения любого поля ломает подпись."""
        tampered = signed_payload.replace("auth_date=1700000000", "auth_date=1700000001")

        assert tampered != signed_payload
        assert verify_init_data(tampered, TEST_TOKEN) is False

    def test_field_order_does_not_matter(self, signed_payload: str) -> None:
        """Перестановка пар в строке не меняет результат."""
        pairs = signed_payload.split("&")

        assert verify_init_data("&".join(reversed(pairs)), TEST_TOKEN) is True

    def test_missing_hash(self) -> None:
        assert verify_init_data("auth_date=1700000000&user=%7B%7D", TEST_TOKEN) is False

    def test_empty_hash(self) -> None:
        assert verify_init_data("auth_date=1700000000&hash=", TEST_TOKEN) is False

    @pytest.mark.parametrize("payload", ["", "no_equals_sign", "a=1&&b=2", "hash"])
    def test_malformed_payload(self, payload: str) -> None:
        """Некорректная строка даёт False, а не исключение."""
        assert verify_init_data(payload, TEST_TOKEN) is False

    def test_duplicate_keys_last_wins(self) -> None:
        """При повторе ключа подпись считается по последнему значению."""
        expected = _expected_hash("auth_date=2", TEST_TOKEN)

        assert verify_init_data(f"auth_date=1&auth_date=2&hash={expected}", TEST_TOKEN) is True
        assert verify_init_data(f"auth_date=2&auth_date=1&hash={expected}", TEST_TOKEN) is False

    def test_uppercase_hash_rejected(self, signed_payload: str) -> None:
        """Подпись сравнивается в нижнем регистре hex."""
        fields = parse_init_data(signed_payload)
        fields["hash"] = fields["hash"].upper()
        payload = "&".join(f"{k}={quote(v)}" for k, v in fields.items())

        assert verify_init_data(payload, TEST_TOKEN) is False

    def test_empty_token_is_configuration_error(self, signed_payload: str) -> None:
        with pytest.raises(ConfigurationError):
            verify_init_data(signed_payload, "")


class TestCanonicalization:
    """Тесты построения data_check_string."""

    def test_sorted_and_hash_excluded(self) -> None:
        fields = {"user": "{}", "hash": "abc", "auth_date": "1", "query_id": "q"}

        assert build_data_check_string(fields) == "auth_date=1\nquery_id=q\nuser={}"

    def test_bytewise_sort(self) -> None:
        """Сортировка по байтам: заглавные раньше строчных."""
        fields = {"b": "1", "B": "2", "a": "3"}

        assert build_data_check_string(fields) == "B=2\na=3\nb=1"

    def test_values_are_decoded(self) -> None:
        fields = parse_init_data("user=%7B%22id%22%3A1%7D&auth_date=5")

        assert build_data_check_string(fields) == 'auth_date=5\nuser={"id":1}'

    def test_parse_rejects_non_string(self) -> None:
        with pytest.raises(InvalidPayloadError):
            parse_init_data(None)  # type: ignore[arg-type]

    def test_secret_key_length(self) -> None:
        assert len(derive_secret_key(TEST_TOKEN)) == 32

