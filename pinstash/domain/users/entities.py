# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True, frozen=True)
class User:

    id: str
    username: str
    password_hash: str
    email_hash: str | None
    created_at: datetime
    updated_at: datetime


@dataclass(slots=True, frozen=True)
class PasswordResetToken:
    """Pending reset grant. Only the SHA-256 of the raw token is ever stored."""

    id: str
    user_id: str
    token_hash: str
    expires_at: datetime
    created_at: datetime
    invalidated_at: datetime | None = None

    def is_active(self, now: datetime) -> bool:
        return self.invalidated_at is None and self.expires_at > now
