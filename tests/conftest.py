"""
tests/conftest.py -- Shared fixtures for the credential core tests.

This module provides:
  - FrozenClock: a controllable clock injected into issuer/validator
  - signing_config / issuer / validator: the reference configuration
    (Exercise:Backend -> Exercise:Frontend, 32-byte UTF-8 secret, 60 minutes)
  - hasher: a CredentialHasher with a low iteration count so tests stay fast
  - fresh settings: get_settings() cache cleared around every test

The DEBUG env var must be set before any core/auth import so get_settings()
auto-generates JWT_SECRET_KEY in dev mode rather than raising.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from datetime import datetime, timedelta, timezone

# CRITICAL: Set DEBUG before any auth/core import so get_settings() can
# auto-generate a secret in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest

from auth.models import Identity, SigningConfig
from auth.passwords import CredentialHasher
from auth.tokens import TokenIssuer, TokenValidator
from core.config import get_settings

# 32 bytes of UTF-8 that is NOT valid base64 (contains ':' and '!').
SECRET = "exercise:backend-signing-secret!"
ISSUER = "Exercise:Backend"
AUDIENCE = "Exercise:Frontend"
T0 = datetime(2025, 1, 15, 9, 0, 0, tzinfo=timezone.utc)

FAST_ITERATIONS = 1_000


class FrozenClock:
    """Callable clock that only moves when a test moves it."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now = self.now + timedelta(**delta)

    def set(self, now: datetime) -> None:
        self.now = now


# ---------------------------------------------------------------------------
# Settings isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _fresh_settings() -> Generator[None, None, None]:
    """Clear the lru_cache singleton so env changes in one test never leak."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ---------------------------------------------------------------------------
# Token fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def signing_config() -> SigningConfig:
    return SigningConfig(issuer=ISSUER, audience=AUDIENCE, secret=SECRET, expiry_minutes=60)


@pytest.fixture
def issuer(signing_config: SigningConfig, clock: FrozenClock) -> TokenIssuer:
    return TokenIssuer(signing_config, clock=clock)


@pytest.fixture
def validator(signing_config: SigningConfig, clock: FrozenClock) -> TokenValidator:
    return TokenValidator(signing_config, clock=clock)


@pytest.fixture
def alice() -> Identity:
    return Identity(id="u1", display_name="alice", email="alice@example.com")


# ---------------------------------------------------------------------------
# Password fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def hasher() -> CredentialHasher:
    """Hasher with a low work factor. Production default is far higher."""
    return CredentialHasher(iterations=FAST_ITERATIONS)
