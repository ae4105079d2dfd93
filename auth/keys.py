"""
auth/keys.py -- Turn a configured secret string into HMAC-SHA256 key bytes.

An operator may configure either a high-entropy base64 key or a plain
passphrase. Both are accepted as long as they yield at least 32 bytes
(256 bits), the floor for HS256.

Resolution order:
  1. Strict standard base64. If it decodes to >= 32 bytes, those bytes are
     the key.
  2. Otherwise the UTF-8 bytes of the string itself, if >= 32 bytes.
  3. Otherwise ConfigurationError.

Step 2 also covers passphrases that happen to be valid base64 but decode
short, e.g. a 32-character alphanumeric string.
"""

from __future__ import annotations

import base64
import binascii

from auth.errors import ConfigurationError

MIN_KEY_BYTES = 32


def _try_b64decode(secret: str) -> bytes | None:
    try:
        return base64.b64decode(secret, validate=True)
    except (binascii.Error, ValueError):
        return None


def resolve_key_material(secret: str | None) -> bytes:
    """Return the signing key for secret. Raises ConfigurationError if too short."""
    if not secret or not secret.strip():
        raise ConfigurationError("signing secret is not configured")

    decoded = _try_b64decode(secret)
    if decoded is not None and len(decoded) >= MIN_KEY_BYTES:
        return decoded

    raw = secret.encode("utf-8")
    if len(raw) >= MIN_KEY_BYTES:
        return raw

    raise ConfigurationError(f"key too short: signing secret must yield at least {MIN_KEY_BYTES} bytes")
