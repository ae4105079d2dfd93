"""
auth/passwords.py -- Salted, iterative password hashing with outdated-format detection.

Security design decisions:
  Scheme: PBKDF2-HMAC-SHA256 through passlib's CryptContext. passlib owns the
       salt, the record format and the constant-time compare. The round count
       is the one cost knob (PASSWORD_HASH_ITERATIONS); pick it so hash/verify
       stay in the tens of milliseconds on production hardware.

  Record format: passlib's modular crypt string, safe to store verbatim:
           $pbkdf2-sha256$<rounds>$<salt>$<digest>
       Nothing outside this module parses it.

  Outdated records: verify() still accepts
       - pbkdf2_sha1 records (deprecated in the context),
       - pbkdf2_sha256 records with fewer rounds than configured (below the
         context's min_rounds),
       - bcrypt records ($2a$ / $2b$ / $2y$) from the earlier bcrypt scheme,
       and reports MATCH_BUT_WEAK so the login flow can re-hash and overwrite
       the stored record. This is a normal outcome, not an exception.

  bcrypt: legacy records are checked with the bcrypt package directly.
       passlib's bcrypt backend tests for the wrap bug with a password
       longer than 72 bytes, which bcrypt 4.x rejects with an explicit error.

  Purity: hash() and verify() take strings and return values. They never
       touch a user object; persisting a new record is the caller's job.

  Timing: verify_dummy() runs one full KDF against a throwaway record so the
       login flow can spend the same time when the username does not exist.
       This keeps response time from revealing which usernames exist.

Layer rule: no imports from core/ or main.py.
"""

from __future__ import annotations

import logging

import bcrypt
from passlib.context import CryptContext

from auth.models import Verdict

logger = logging.getLogger("tokensmith.auth")

DEFAULT_ALGORITHM = "pbkdf2_sha256"
DEFAULT_ITERATIONS = 100_000

_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


class CredentialHasher:
    """Hash and verify login passwords.

    Args:
        iterations: PBKDF2 rounds for new records. Records stored with fewer
                    rounds verify as MATCH_BUT_WEAK.
    """

    def __init__(self, iterations: int = DEFAULT_ITERATIONS) -> None:
        if iterations <= 0:
            raise ValueError(f"iterations must be positive, got {iterations}")
        self.algorithm = DEFAULT_ALGORITHM
        self.iterations = iterations
        self._context = CryptContext(
            schemes=[DEFAULT_ALGORITHM, "pbkdf2_sha1"],
            deprecated=["pbkdf2_sha1"],
            pbkdf2_sha256__default_rounds=iterations,
            pbkdf2_sha256__min_rounds=iterations,
        )

    def hash(self, plaintext: str) -> str:
        """Return a new salted record for plaintext. Two calls never return the same string."""
        if not plaintext:
            raise ValueError("password_blank")
        return self._context.hash(plaintext)

    def verify(self, record: str, plaintext: str) -> Verdict:
        """Check plaintext against a stored record.

        Returns MATCH, MATCH_BUT_WEAK (correct but outdated record), or
        NO_MATCH. Malformed records and blank input are NO_MATCH, never errors.
        """
        if not record or not plaintext:
            return Verdict.NO_MATCH

        if record.startswith(_BCRYPT_PREFIXES):
            return self._verify_bcrypt(record, plaintext)

        # passlib raises ValueError for unknown or malformed records.
        try:
            matched = self._context.verify(plaintext, record)
        except (ValueError, TypeError):
            logger.debug("Unrecognized password record format")
            return Verdict.NO_MATCH
        if not matched:
            return Verdict.NO_MATCH
        if self._context.needs_update(record):
            logger.warning(
                "Password verified against outdated record (%s); rehash recommended",
                self._context.identify(record),
            )
            return Verdict.MATCH_BUT_WEAK
        return Verdict.MATCH

    def needs_rehash(self, record: str) -> bool:
        """True if record was not written with the current scheme and cost."""
        if not record or record.startswith(_BCRYPT_PREFIXES):
            return True
        try:
            return self._context.needs_update(record)
        except (ValueError, TypeError):
            return True

    def verify_dummy(self, plaintext: str) -> Verdict:
        """Spend one full verification on a throwaway record. Always NO_MATCH."""
        self._context.dummy_verify()
        return Verdict.NO_MATCH

    @staticmethod
    def _verify_bcrypt(record: str, plaintext: str) -> Verdict:
        # bcrypt rejects malformed salts and (since 5.0) passwords over 72 bytes with ValueError.
        try:
            matched = bcrypt.checkpw(plaintext.encode("utf-8"), record.encode("utf-8"))
        except ValueError:
            return Verdict.NO_MATCH
        if not matched:
            return Verdict.NO_MATCH
        logger.warning("Password verified against legacy bcrypt record; rehash recommended")
        return Verdict.MATCH_BUT_WEAK
