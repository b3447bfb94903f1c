# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

from .entities import SessionRecord


class SessionRepository(Protocol):
    async def find_by_id(self, session_id: str) -> SessionRecord | None: ...
    async def find_by_user_id(self, user_id: str) -> list[SessionRecord]: ...

    async def create(
        self, *, user_id: str, data: dict[str, Any], expires_at: datetime
    ) -> SessionRecord: ...

    async def update(
        self,
        session_id: str,
        *,
        data: dict[str, Any] | None = None,
        expires_at: datetime | None = None,
    ) -> SessionRecord | None: ...

    async def delete(self, session_id: str) -> bool: ...
    async def delete_by_user_id(self, user_id: str) -> int: ...
    async def delete_expired(self, now: datetime) -> int: ...
    async def is_valid_session(self, session_id: str, now: datetime) -> bool: ...
