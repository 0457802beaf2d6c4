"""
Unit tests for API key encryption.
"""

import pytest
from cryptography.fernet import InvalidToken

from fxtrader.services.ai.encryption import decrypt_secret, encrypt_secret


class TestEncryption:
    def test_roundtrip(self) -> None:
        token = encrypt_secret("sk-proj-secret")
        assert token != "sk-proj-secret"
        assert decrypt_secret(token) == "sk-proj-secret"

    def test_tokens_are_randomized(self) -> None:
        assert encrypt_secret("same") != encrypt_secret("same")

    def test_empty_values_stay_empty(self) -> None:
        assert encrypt_secret("") == ""
        assert decrypt_secret("") == ""

    def test_tampered_token_rejected(self) -> None:
        with pytest.raises(InvalidToken):
            decrypt_secret("gAAAAABtampered")
