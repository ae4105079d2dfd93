"""
auth/errors.py -- Exception taxonomy for the credential core.

Only two conditions are raised as exceptions during normal operation:
  ConfigurationError: bad signing configuration, detected once when a
      component is constructed. Fatal -- the owning process must not start.
  DomainError: a domain value was built with broken invariants.

Token validation failures and password mismatches are NOT exceptions. They
come back as ValidationResult / Verdict values the caller branches on.
TokenValidationError exists only for callers that opt in through
ValidationResult.require().

Layer rule: no imports from core/ or main.py.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from auth.models import FailureReason


class AuthCoreError(Exception):
    """Base class for every exception raised by the auth package."""


class ConfigurationError(AuthCoreError, ValueError):
    """Signing configuration is missing or too weak. Never retried."""


class DomainError(AuthCoreError, ValueError):
    """A domain object was constructed with values that violate its invariants."""


class TokenValidationError(AuthCoreError):
    """A token was rejected. Carries the FailureReason for the caller."""

    def __init__(self, reason: FailureReason, detail: str = "") -> None:
        self.reason = reason
        self.detail = detail
        super().__init__(f"{reason.value}: {detail}" if detail else reason.value)
