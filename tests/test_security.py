"""
Inventory API — Security Layer Tests
Covers inventory_api/core/security.py: password hashing, token issuance and
verification, and startup failure without a signing key.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from jose import jwt

from inventory_api.config import Settings
from inventory_api.core.exceptions import AuthenticationError, ConfigurationError
from inventory_api.core.security import TokenService, hash_password, verify_password

SECRET = "unit-test-signing-key-with-enough-entropy-0123456789"


def _settings(**overrides) -> Settings:
    values = {
        "JWT_SECRET": SECRET,
        "JWT_ISSUER": "inventory-api",
        "JWT_AUDIENCE": "inventory-clients",
        "DATABASE_URL": "sqlite:///:memory:",
    }
    values.update(overrides)
    return Settings(**values)


def _identity(**overrides):
    values = {"id": 7, "name": "Ana Cajera", "email": "ana@store.com", "role": "Employee"}
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(_settings())


# ═══════════════════════════════════════════════════════════════════════════════
# PASSWORD HASHING
# ═══════════════════════════════════════════════════════════════════════════════


class TestPasswordHashing:
    def test_hash_then_verify(self):
        hashed = hash_password("S3cure!pass")
        assert verify_password("S3cure!pass", hashed) is True

    def test_wrong_password_rejected(self):
        hashed = hash_password("S3cure!pass")
        assert verify_password("s3cure!pass", hashed) is False

    def test_same_input_different_salt(self):
        first = hash_password("repeat-me")
        second = hash_password("repeat-me")
        assert first != second
        assert verify_password("repeat-me", first)
        assert verify_password("repeat-me", second)

    def test_hash_does_not_contain_plaintext(self):
        assert "plaintext-marker" not in hash_password("plaintext-marker")

    @pytest.mark.parametrize("stored", ["", "not-a-hash", "$pbkdf2-sha256$broken", None])
    def test_malformed_hash_returns_false(self, stored):
        assert verify_password("anything", stored) is False

    def test_empty_password_returns_false(self):
        assert verify_password("", hash_password("x")) is False


# ═══════════════════════════════════════════════════════════════════════════════
# TOKEN ISSUER
# ═══════════════════════════════════════════════════════════════════════════════


class TestTokenIssuer:
    def test_missing_secret_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            TokenService(_settings(JWT_SECRET=""))

    def test_blank_secret_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            TokenService(_settings(JWT_SECRET="   "))

    def test_claims_embed_identity(self, tokens):
        issued = tokens.issue(_identity())
        claims = jwt.get_unverified_claims(issued.token)
        assert claims["sub"] == "7"
        assert claims["name"] == "Ana Cajera"
        assert claims["email"] == "ana@store.com"
        assert claims["role"] == "Employee"
        assert claims["iss"] == "inventory-api"
        assert claims["aud"] == "inventory-clients"
        assert claims["jti"]

    def test_signed_with_hs256(self, tokens):
        issued = tokens.issue(_identity())
        assert jwt.get_unverified_header(issued.token)["alg"] == "HS256"

    def test_expiry_uses_requested_ttl(self, tokens):
        now = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)
        issued = tokens.issue(_identity(), ttl_minutes=15, now=now)
        assert issued.expires_at == now + timedelta(minutes=15)
        claims = jwt.get_unverified_claims(issued.token)
        assert claims["exp"] == int((now + timedelta(minutes=15)).timestamp())

    def test_zero_ttl_is_rejected(self, tokens):
        with pytest.raises(ValueError):
            tokens.issue(_identity(), ttl_minutes=0)

    def test_negative_ttl_is_rejected(self, tokens):
        with pytest.raises(ValueError):
            tokens.issue(_identity(), ttl_minutes=-5)

    def test_default_ttl_from_settings(self):
        service = TokenService(_settings(JWT_EXPIRY_MINUTES=5))
        now = datetime.now(timezone.utc)
        issued = service.issue(_identity(), now=now)
        assert issued.expires_at == now + timedelta(minutes=5)

    def test_same_instant_tokens_differ(self, tokens):
        now = datetime.now(timezone.utc)
        first = tokens.issue(_identity(), now=now)
        second = tokens.issue(_identity(), now=now)
        assert first.token != second.token
        assert (
            jwt.get_unverified_claims(first.token)["jti"]
            != jwt.get_unverified_claims(second.token)["jti"]
        )


# ═══════════════════════════════════════════════════════════════════════════════
# TOKEN VERIFIER
# ═══════════════════════════════════════════════════════════════════════════════


class TestTokenVerifier:
    def test_round_trip_identity(self, tokens):
        user = tokens.verify(tokens.issue(_identity(id=42, role="Admin")).token)
        assert user.user_id == 42
        assert user.role == "Admin"
        assert user.is_admin is True
        assert user.email == "ana@store.com"

    def test_expired_token_rejected(self, tokens):
        issued_at = datetime.now(timezone.utc) - timedelta(hours=2)
        token = tokens.issue(_identity(), ttl_minutes=60, now=issued_at).token
        with pytest.raises(AuthenticationError):
            tokens.verify(token)

    def test_wrong_signature_rejected(self, tokens):
        other = TokenService(_settings(JWT_SECRET="a-completely-different-signing-key"))
        with pytest.raises(AuthenticationError):
            tokens.verify(other.issue(_identity()).token)

    def test_wrong_issuer_rejected(self, tokens):
        other = TokenService(_settings(JWT_ISSUER="someone-else"))
        with pytest.raises(AuthenticationError):
            tokens.verify(other.issue(_identity()).token)

    def test_wrong_audience_rejected(self, tokens):
        other = TokenService(_settings(JWT_AUDIENCE="another-app"))
        with pytest.raises(AuthenticationError):
            tokens.verify(other.issue(_identity()).token)

    def test_tampered_payload_rejected(self, tokens):
        header, payload, signature = tokens.issue(_identity()).token.split(".")
        forged = tokens.issue(_identity(role="Admin")).token.split(".")[1]
        with pytest.raises(AuthenticationError):
            tokens.verify(".".join([header, forged, signature]))

    def test_garbage_rejected(self, tokens):
        with pytest.raises(AuthenticationError):
            tokens.verify("not.a.token")

    def test_unknown_role_rejected(self, tokens):
        token = tokens.issue(_identity(role="Superuser")).token
        with pytest.raises(AuthenticationError):
            tokens.verify(token)

    def test_missing_jti_rejected(self, tokens):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "sub": "1",
                "role": "Admin",
                "iss": "inventory-api",
                "aud": "inventory-clients",
                "exp": now + timedelta(minutes=5),
            },
            SECRET,
            algorithm="HS256",
        )
        with pytest.raises(AuthenticationError):
            tokens.verify(token)

    def test_error_message_is_generic(self, tokens):
        with pytest.raises(AuthenticationError) as exc_info:
            tokens.verify("not.a.token")
        assert exc_info.value.message == "Invalid or expired token"
        assert exc_info.value.http_status_code == 401
