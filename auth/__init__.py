"""auth/ -- Bearer token and password credential core.

  keys.py       secret string -> HMAC key bytes (>= 32 bytes enforced)
  tokens.py     TokenIssuer / TokenValidator (HS256 JWT, injected clock)
  passwords.py  CredentialHasher (PBKDF2, three-way verify verdict)
  models.py     Identity, SigningConfig, IssuedToken, ValidationResult, Verdict
  errors.py     ConfigurationError, DomainError, TokenValidationError

Layer rule: auth/ imports stdlib, third-party libraries, and core/clock.py /
core/config.py only. It does NOT import from main.py.
"""
