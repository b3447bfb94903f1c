# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from .entities import PasswordResetToken, User


class UserRepository(Protocol):
    async def find_by_id(self, user_id: str) -> User | None: ...
    async def find_by_username(self, username: str) -> User | None: ...
    async def find_by_email_hash(self, email_hash: str) -> User | None: ...

    async def create(
        self, *, username: str, password_hash: str, email_hash: str | None
    ) -> User: ...

    async def update(self, user_id: str, **fields: str | None) -> User | None: ...


class PasswordResetRepository(Protocol):
    async def find_by_token_hash(self, token_hash: str) -> PasswordResetToken | None: ...
    async def find_by_user_id(self, user_id: str) -> list[PasswordResetToken]: ...

    async def create(
        self, *, user_id: str, token_hash: str, expires_at: datetime
    ) -> PasswordResetToken: ...

    async def delete(self, token_id: str) -> bool: ...
    async def delete_by_user_id(self, user_id: str) -> int: ...
    async def invalidate_by_user_id(self, user_id: str, now: datetime) -> int: ...
    async def is_valid_token(self, token_hash: str, now: datetime) -> bool: ...
    async def delete_expired(self, cutoff: datetime) -> int: ...

    # request log keyed by address hash, whether or not a user owns it
    async def record_request(self, email_hash: str, at: datetime) -> None: ...
    async def count_requests_since(self, email_hash: str, since: datetime) -> int: ...
    async def delete_requests_before(self, cutoff: datetime) -> int: ...
