"""
auth/models.py -- Domain dataclasses and outcome types for the credential core.

Pattern: Data class (pure data container, minimal logic). Issuer, validator,
and hasher do the work; these types only carry shape and guard invariants.

ClaimSet is a plain dict (insertion ordered) rather than a class -- it is what
python-jose produces and what callers already index by claim name.

Layer rule: no imports from core/ or main.py.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from auth.errors import ConfigurationError, DomainError, TokenValidationError

ClaimSet = dict[str, Any]


@dataclass(frozen=True)
class Identity:
    """The user facts embedded in a token. Supplied by the external user store."""

    id: str
    display_name: str
    email: str


@dataclass(frozen=True)
class SigningConfig:
    """Token signing settings, fixed for the lifetime of an issuer/validator.

    An empty issuer or audience disables that claim on issue and its check
    on validation.
    """

    issuer: str
    audience: str
    secret: str = field(repr=False)
    expiry_minutes: int = 60

    def __post_init__(self) -> None:
        if self.expiry_minutes <= 0:
            raise ConfigurationError(f"expiry_minutes must be positive, got {self.expiry_minutes}")


@dataclass(frozen=True)
class IssuedToken:
    """A freshly signed bearer token and its validity window.

    Never persisted server-side -- the caller hands the token string to the
    client and discards this object. There is no revoked state; logging out
    means the client drops the token.
    """

    token: str
    issued_at: datetime
    expires_at: datetime
    token_id: str
    user_id: str

    def __post_init__(self) -> None:
        if not self.user_id or not self.user_id.strip():
            raise DomainError("user_id is required")
        if not self.token or not self.token.strip():
            raise DomainError("token is required")
        if self.expires_at <= self.issued_at:
            raise DomainError("expires_at must be later than issued_at")

    def is_valid(self, now: datetime) -> bool:
        """True while now is before the expiry instant."""
        return now < self.expires_at

    def __repr__(self) -> str:
        preview = self.token[:16] + "..." if len(self.token) > 16 else self.token
        return (
            f"IssuedToken(token_id={self.token_id!r}, user_id={self.user_id!r}, token={preview!r}, "
            f"issued_at={self.issued_at.isoformat()}, expires_at={self.expires_at.isoformat()})"
        )


class FailureReason(str, Enum):
    BAD_SIGNATURE = "bad_signature"
    MALFORMED = "malformed"
    ISSUER_MISMATCH = "issuer_mismatch"
    AUDIENCE_MISMATCH = "audience_mismatch"
    EXPIRED = "expired"
    NOT_YET_VALID = "not_yet_valid"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of TokenValidator.validate(): claims on success, a reason otherwise.

    Exactly one of claims / reason is set. Use the success() and failure()
    constructors rather than building instances by hand.
    """

    claims: ClaimSet | None = None
    reason: FailureReason | None = None
    detail: str = ""

    @classmethod
    def success(cls, claims: ClaimSet) -> ValidationResult:
        return cls(claims=claims)

    @classmethod
    def failure(cls, reason: FailureReason, detail: str = "") -> ValidationResult:
        return cls(reason=reason, detail=detail)

    @property
    def ok(self) -> bool:
        return self.reason is None

    @property
    def subject(self) -> str | None:
        if self.claims is None:
            return None
        return self.claims.get("sub")

    def require(self) -> ClaimSet:
        """Return the claims, or raise TokenValidationError for a failed result."""
        if self.reason is not None:
            raise TokenValidationError(self.reason, self.detail)
        return self.claims or {}


class Verdict(str, Enum):
    """Three-way result of a password check.

    MATCH_BUT_WEAK means the password is correct but the stored record uses an
    outdated scheme or cost -- re-hash and overwrite the stored record.
    """

    MATCH = "match"
    NO_MATCH = "no_match"
    MATCH_BUT_WEAK = "match_but_weak"

    @property
    def ok(self) -> bool:
        return self is not Verdict.NO_MATCH

    @property
    def needs_rehash(self) -> bool:
        return self is Verdict.MATCH_BUT_WEAK
