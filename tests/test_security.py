"""Tests for password hashing, temporary passwords and the token pair."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from sima.core.exceptions import TokenInvalidException
from sima.core.security import (
    TEMP_PASSWORD_ALPHABET,
    build_identity,
    generate_temp_password,
)

USER = {
    "id": 7,
    "usuario": "jgomez",
    "rol": "usuario",
    "nombre": "Juan",
    "apellido": "Gómez",
    "token_version": 3,
    "password_hash": "irrelevant",
}

# ── Password hashing ─────────────────────────────────────────────


class TestPasswordHasher:
    def test_hash_is_not_plaintext(self, hasher):
        hashed = hasher.hash_sync("secreto123")
        assert hashed != "secreto123"
        assert hashed.startswith("$2")

    def test_verify_roundtrip(self, hasher):
        hashed = hasher.hash_sync("secreto123")
        assert hasher.verify_sync("secreto123", hashed)
        assert not hasher.verify_sync("otro", hashed)

    def test_verify_rejects_empty_or_garbage(self, hasher):
        assert not hasher.verify_sync("", "$2b$04$abc")
        assert not hasher.verify_sync("secreto123", None)
        assert not hasher.verify_sync("secreto123", "not-a-hash")

    def test_long_passwords_are_not_truncated(self, hasher):
        base = "x" * 80
        hashed = hasher.hash_sync(base + "a")
        assert not hasher.verify_sync(base + "b", hashed)

    async def test_async_wrappers(self, hasher):
        hashed = await hasher.hash("secreto123")
        assert await hasher.verify("secreto123", hashed)


# ── Temporary passwords ─────────────────────────────────────────────


class TestTempPassword:
    def test_length_and_alphabet(self):
        pwd = generate_temp_password(12)
        assert len(pwd) == 12
        assert set(pwd) <= set(TEMP_PASSWORD_ALPHABET)

    def test_alphabet_has_no_ambiguous_characters(self):
        for ch in "0O1lI":
            assert ch not in TEMP_PASSWORD_ALPHABET

    def test_not_constant(self):
        assert len({generate_temp_password(12) for _ in range(20)}) > 1


# ── Tokens ─────────────────────────────────────────────


class TestTokenService:
    def test_identity_is_a_snapshot(self):
        identity = build_identity(USER)
        assert identity == {
            "id": 7, "usuario": "jgomez", "rol": "usuario",
            "nombre": "Juan", "apellido": "Gómez", "token_version": 3,
        }

    def test_pair_carries_identity(self, tokens):
        pair = tokens.create_token_pair(build_identity(USER))
        access = tokens.decode_access_token(pair["accessToken"])
        refresh = tokens.decode_refresh_token(pair["refreshToken"])
        for payload in (access, refresh):
            assert payload["id"] == 7
            assert payload["token_version"] == 3
            assert "password_hash" not in payload

    def test_expiry_windows(self, tokens, settings):
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        pair = tokens.create_token_pair(build_identity(USER), now=now)
        access = jwt.get_unverified_claims(pair["accessToken"])
        refresh = jwt.get_unverified_claims(pair["refreshToken"])
        assert access["exp"] - access["iat"] == settings.JWT_ACCESS_EXPIRE_MINUTES * 60
        assert refresh["exp"] - refresh["iat"] == settings.JWT_REFRESH_EXPIRE_DAYS * 86400

    def test_secrets_are_not_interchangeable(self, tokens):
        pair = tokens.create_token_pair(build_identity(USER))
        with pytest.raises(TokenInvalidException):
            tokens.decode_access_token(pair["refreshToken"])
        with pytest.raises(TokenInvalidException):
            tokens.decode_refresh_token(pair["accessToken"])

    def test_expired_token_rejected(self, tokens):
        past = datetime.now(timezone.utc) - timedelta(days=30)
        pair = tokens.create_token_pair(build_identity(USER), now=past)
        with pytest.raises(TokenInvalidException):
            tokens.decode_refresh_token(pair["refreshToken"])

    @pytest.mark.parametrize("bad", ["", None, "abc.def.ghi"])
    def test_malformed_tokens(self, tokens, bad):
        with pytest.raises(TokenInvalidException):
            tokens.decode_access_token(bad)
