"""Salted one-way hashing of login secrets."""

from __future__ import annotations

import bcrypt

DEFAULT_ROUNDS = 10


class PasswordHasher:
    """bcrypt hasher with a configurable cost factor."""

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        self._rounds = rounds

    def hash(self, secret: str) -> str:
        """Hash ``secret`` with a fresh salt; two calls never return the same value."""
        return bcrypt.hashpw(secret.encode("utf-8"), bcrypt.gensalt(rounds=self._rounds)).decode("utf-8")

    def verify(self, secret: str, credential_hash: str) -> bool:
        """Check ``secret`` against a stored hash, returning ``False`` for malformed input."""
        try:
            return bcrypt.checkpw(secret.encode("utf-8"), credential_hash.encode("utf-8"))
        except (ValueError, TypeError, AttributeError):
            return False
