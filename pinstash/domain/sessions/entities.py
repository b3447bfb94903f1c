# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any


class FlashType(StrEnum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    WARNING = "warning"


@dataclass(slots=True, frozen=True)
class FlashMessage:
    type: FlashType
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type.value, "message": self.message}

    @classmethod
    def from_dict(cls, raw: Any) -> FlashMessage | None:
        if not isinstance(raw, dict):
            return None
        try:
            return cls(type=FlashType(raw.get("type")), message=str(raw["message"]))
        except (KeyError, ValueError):
            return None


@dataclass(slots=True, frozen=True)
class SessionRecord:
    """Server-side session row; ``data`` holds user_id, keep_signed_in and flash."""

    id: str
    user_id: str
    data: dict[str, Any] = field(default_factory=dict)
    expires_at: datetime | None = None
    created_at: datetime | None = None
