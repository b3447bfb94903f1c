# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Password and identifier hashing."""

from __future__ import annotations

import asyncio
import hashlib
import secrets

from werkzeug.security import check_password_hash, generate_password_hash

DEFAULT_METHOD = "scrypt"


def generate_secure_token() -> str:
    return secrets.token_urlsafe(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class CredentialHasher:
    """Werkzeug-backed password hashing plus deterministic identifier hashing.

    Hashing and verification run in a worker thread, they are deliberately slow.
    """

    def __init__(self, method: str = DEFAULT_METHOD) -> None:
        self._method = method
        self._dummy_hash: str | None = None

    async def hash_password(self, password: str) -> str:
        return await asyncio.to_thread(self._hash, password)

    async def verify_password(self, password: str, hashed: str) -> bool:
        return await asyncio.to_thread(self._verify, password, hashed)

    async def verify_dummy(self, password: str) -> None:
        """Spend one verification's worth of work when there is nothing to verify against."""
        await asyncio.to_thread(self._verify_against_dummy, password)

    def hash_identifier(self, value: str) -> str:
        normalized = value.strip().lower()
        return hashlib.sha256(normalized.encode("utf-8")).hexdigest()

    def _hash(self, password: str) -> str:
        return str(generate_password_hash(password, method=self._method))

    def _verify(self, password: str, hashed: str) -> bool:
        if not hashed or hashed.count("$") < 2:
            self._verify_against_dummy(password)
            return False
        try:
            return bool(check_password_hash(hashed, password))
        except (ValueError, TypeError):
            # unknown method or corrupt parameters
            self._verify_against_dummy(password)
            return False

    def _verify_against_dummy(self, password: str) -> None:
        if self._dummy_hash is None:
            self._dummy_hash = self._hash(secrets.token_urlsafe(16))
        check_password_hash(self._dummy_hash, password)


__all__ = ["CredentialHasher", "generate_secure_token", "hash_token"]
