# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Protocol

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(UTC)


class EmailService(Protocol):
    async def send_password_reset_email(
        self, email: str, raw_token: str, reset_url_base: str
    ) -> None: ...
