"""Unit tests for core/config.py -- Settings and the signing-secret policy.

Covers:
- DEBUG=true with no secret auto-generates a usable 32-byte key
- Production mode with no secret refuses to start
- Too-short secrets and non-positive lifetimes refuse to start
- signing_config() hands the values to TokenIssuer/TokenValidator
- get_settings() is a cached singleton
"""

from __future__ import annotations

import base64

import pytest
from conftest import SECRET
from pydantic import ValidationError

from auth.keys import resolve_key_material
from auth.tokens import TokenIssuer
from core.config import Settings, get_settings


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in ("JWT_ISSUER", "JWT_AUDIENCE", "JWT_SECRET_KEY", "JWT_EXPIRES_IN_MINUTES", "PASSWORD_HASH_ITERATIONS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DEBUG", "true")
    return monkeypatch


class TestSecretPolicy:
    def test_debug_generates_secret(self, clean_env: pytest.MonkeyPatch) -> None:
        settings = Settings(_env_file=None)
        assert len(base64.b64decode(settings.jwt_secret_key)) == 32
        assert len(resolve_key_material(settings.jwt_secret_key)) == 32

    def test_debug_secrets_differ_per_instance(self, clean_env: pytest.MonkeyPatch) -> None:
        assert Settings(_env_file=None).jwt_secret_key != Settings(_env_file=None).jwt_secret_key

    def test_production_requires_secret(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("DEBUG", "false")
        with pytest.raises(ValidationError, match="JWT_SECRET_KEY is required"):
            Settings(_env_file=None)

    def test_short_secret_rejected(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("JWT_SECRET_KEY", "short-secret")
        with pytest.raises(ValidationError, match="too short"):
            Settings(_env_file=None)

    def test_short_secret_rejected_in_debug_too(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("DEBUG", "true")
        clean_env.setenv("JWT_SECRET_KEY", "x" * 31)
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_non_positive_expiry_rejected(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("JWT_SECRET_KEY", SECRET)
        clean_env.setenv("JWT_EXPIRES_IN_MINUTES", "0")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)


class TestSigningConfig:
    def test_values_from_env(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("DEBUG", "false")
        clean_env.setenv("JWT_ISSUER", "Exercise:Backend")
        clean_env.setenv("JWT_AUDIENCE", "Exercise:Frontend")
        clean_env.setenv("JWT_SECRET_KEY", SECRET)
        clean_env.setenv("JWT_EXPIRES_IN_MINUTES", "15")

        config = Settings(_env_file=None).signing_config()
        assert config.issuer == "Exercise:Backend"
        assert config.audience == "Exercise:Frontend"
        assert config.secret == SECRET
        assert config.expiry_minutes == 15

    def test_secret_not_in_repr(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("JWT_SECRET_KEY", SECRET)
        settings = Settings(_env_file=None)
        assert SECRET not in repr(settings)
        assert SECRET not in repr(settings.signing_config())

    def test_issuer_from_settings(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("JWT_SECRET_KEY", SECRET)
        clean_env.setenv("JWT_EXPIRES_IN_MINUTES", "5")
        issuer = TokenIssuer.from_settings()
        assert issuer.config.expiry_minutes == 5
        assert issuer.key_length == 32


class TestGetSettings:
    def test_singleton(self, clean_env: pytest.MonkeyPatch) -> None:
        assert get_settings() is get_settings()

    def test_cache_clear_picks_up_env(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("PASSWORD_HASH_ITERATIONS", "1234")
        assert get_settings().password_hash_iterations == 1234
        clean_env.setenv("PASSWORD_HASH_ITERATIONS", "4321")
        get_settings.cache_clear()
        assert get_settings().password_hash_iterations == 4321
