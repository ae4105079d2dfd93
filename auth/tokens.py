"""
auth/tokens.py -- Bearer token issuance and verification (HS256 JWT).

Security design decisions:
  Signing: python-jose with HS256. The key comes from resolve_key_material(),
       run once in the constructor; a weak or missing secret makes the
       component refuse to construct (ConfigurationError). After that,
       issue() cannot fail.

  Verification: done segment by segment rather than through jwt.decode() so
       each rejection maps to one FailureReason and so time checks use the
       injected clock. The header alg must be HS256 ("none" and alg swaps are
       rejected as BAD_SIGNATURE). The recomputed signature is base64url
       encoded and compared against the raw signature segment with
       hmac.compare_digest, so a change to any signature character -- even one
       that only touches base64 padding bits -- is rejected.

  Time: exp and nbf are checked with ZERO clock skew. A token is valid for
       now in [nbf, exp). This is stricter than most JWT libraries' default
       leeway and is intentional; do not add a grace window.

  Claims: sub, jti, iat, name, email, then caller extras (last write wins,
       extras may replace jti, iat, name and email), then nbf, exp, iss, aud.
       sub always comes from the identity. The envelope claims are written
       last so extras cannot forge them.

  No revocation: logout is a client-side discard. Tokens stay valid until exp.

Layer rule: may import from core/ (config, clock). No imports from main.py.
"""

from __future__ import annotations

import hmac
import json
import logging
import math
import uuid
from collections.abc import Mapping
from datetime import timedelta
from typing import Any

from jose import jwk, jwt
from jose.constants import ALGORITHMS
from jose.exceptions import JWKError
from jose.utils import base64url_decode, base64url_encode

from auth.errors import ConfigurationError
from auth.keys import resolve_key_material
from auth.models import ClaimSet, FailureReason, Identity, IssuedToken, SigningConfig, ValidationResult
from core.clock import Clock, utc_now
from core.config import Settings, get_settings

logger = logging.getLogger("tokensmith.auth")

_ALGORITHM = ALGORITHMS.HS256

# Never taken from extra_claims. sub is the identity id; the rest are written after extras.
RESERVED_CLAIMS = frozenset({"sub", "nbf", "exp", "iss", "aud"})


class _SigningComponent:
    """Shared construction for issuer and validator: config, key, clock."""

    def __init__(self, config: SigningConfig, clock: Clock | None = None) -> None:
        self._config = config
        self._clock: Clock = clock or utc_now
        self._key_bytes = resolve_key_material(config.secret)
        try:
            self._key = jwk.construct(self._key_bytes, _ALGORITHM)
        except JWKError as exc:
            raise ConfigurationError(f"signing secret is not usable as an HMAC key: {exc}") from exc

    @property
    def config(self) -> SigningConfig:
        return self._config

    @property
    def key_length(self) -> int:
        return len(self._key_bytes)


class TokenIssuer(_SigningComponent):
    """Mint signed access tokens for authenticated identities."""

    @classmethod
    def from_settings(cls, settings: Settings | None = None, clock: Clock | None = None) -> TokenIssuer:
        return cls((settings or get_settings()).signing_config(), clock=clock)

    def issue(self, identity: Identity, extra_claims: Mapping[str, Any] | None = None) -> IssuedToken:
        """Sign a token for identity.

        Args:
            identity:     The authenticated user (id, display name, email).
            extra_claims: Additional claims appended after the built-in ones.
                          A key that collides with jti/iat/name/email
                          replaces it. sub/nbf/exp/iss/aud are ignored here.
        """
        now = self._clock().replace(microsecond=0)
        expires_at = now + timedelta(minutes=self._config.expiry_minutes)
        iat = int(now.timestamp())
        token_id = uuid.uuid4().hex

        claims: ClaimSet = {
            "sub": identity.id,
            "jti": token_id,
            "iat": iat,
            "name": identity.display_name,
            "email": identity.email,
        }
        if extra_claims:
            for name, value in extra_claims.items():
                if name in RESERVED_CLAIMS:
                    logger.debug("Ignoring reserved claim %r in extra_claims", name)
                    continue
                claims[name] = value

        claims["nbf"] = iat
        claims["exp"] = int(expires_at.timestamp())
        if self._config.issuer:
            claims["iss"] = self._config.issuer
        if self._config.audience:
            claims["aud"] = self._config.audience

        token = jwt.encode(claims, self._key, algorithm=_ALGORITHM)
        logger.debug("Issued token jti=%s for sub=%s, expires %s", claims["jti"], claims["sub"], expires_at.isoformat())
        return IssuedToken(
            token=token,
            issued_at=now,
            expires_at=expires_at,
            token_id=str(claims["jti"]),
            user_id=str(claims["sub"]),
        )


def _decode_segment(segment: str) -> dict | None:
    """base64url-decode one JWT segment into a JSON object, or None if it is not one."""
    try:
        data = json.loads(base64url_decode(segment.encode("ascii")))
    except (ValueError, RecursionError):
        return None
    return data if isinstance(data, dict) else None


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    # json.loads accepts NaN and Infinity.
    return isinstance(value, int) or math.isfinite(value)


class TokenValidator(_SigningComponent):
    """Verify tokens minted by a TokenIssuer sharing the same SigningConfig."""

    @classmethod
    def from_settings(cls, settings: Settings | None = None, clock: Clock | None = None) -> TokenValidator:
        return cls((settings or get_settings()).signing_config(), clock=clock)

    def validate(self, token: str, check_expiry: bool = True) -> ValidationResult:
        """Verify signature, issuer, audience and (optionally) the time window.

        check_expiry=True is the strict mode for request authorization.
        check_expiry=False is the lenient mode for reading the subject out of
        an expired token during refresh -- everything except exp/nbf is still
        enforced.

        Never raises for a bad token; returns a failed ValidationResult.
        """
        result = self._validate(token, check_expiry)
        if not result.ok:
            logger.info("Token rejected: %s (%s)", result.reason.value, result.detail)
        return result

    def claims_from_expired_token(self, token: str) -> ValidationResult:
        """Lenient validation: same as validate(token, check_expiry=False)."""
        return self.validate(token, check_expiry=False)

    def _validate(self, token: str, check_expiry: bool) -> ValidationResult:
        if not isinstance(token, str) or token.count(".") != 2:
            return ValidationResult.failure(FailureReason.MALFORMED, "expected three segments")
        header_seg, payload_seg, signature_seg = token.split(".")

        header = _decode_segment(header_seg)
        if header is None:
            return ValidationResult.failure(FailureReason.MALFORMED, "header is not a JSON object")
        if header.get("alg") != _ALGORITHM:
            return ValidationResult.failure(FailureReason.BAD_SIGNATURE, f"unsupported alg {header.get('alg')!r}")

        signing_input = f"{header_seg}.{payload_seg}".encode("ascii", errors="replace")
        expected = base64url_encode(self._key.sign(signing_input))
        try:
            provided = signature_seg.encode("ascii")
        except UnicodeEncodeError:
            return ValidationResult.failure(FailureReason.BAD_SIGNATURE, "signature mismatch")
        if not hmac.compare_digest(expected, provided):
            return ValidationResult.failure(FailureReason.BAD_SIGNATURE, "signature mismatch")

        claims = _decode_segment(payload_seg)
        if claims is None:
            return ValidationResult.failure(FailureReason.MALFORMED, "payload is not a JSON object")

        if self._config.issuer and claims.get("iss") != self._config.issuer:
            return ValidationResult.failure(FailureReason.ISSUER_MISMATCH, f"iss={claims.get('iss')!r}")

        if self._config.audience:
            aud = claims.get("aud")
            audiences = aud if isinstance(aud, list) else [aud]
            if self._config.audience not in audiences:
                return ValidationResult.failure(FailureReason.AUDIENCE_MISMATCH, f"aud={aud!r}")

        if check_expiry:
            now = self._clock().timestamp()
            exp = claims.get("exp")
            if not _is_number(exp):
                return ValidationResult.failure(FailureReason.MALFORMED, "exp claim missing or not numeric")
            if now >= exp:
                return ValidationResult.failure(FailureReason.EXPIRED, f"expired at {int(exp)}")
            nbf = claims.get("nbf")
            if _is_number(nbf) and now < nbf:
                return ValidationResult.failure(FailureReason.NOT_YET_VALID, f"not valid before {int(nbf)}")

        return ValidationResult.success(claims)
