# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Signed, time-boxed session tokens: ``base64url(json) "." base64url(hmac_sha256)``."""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

_SEPARATOR = "."


@dataclass(slots=True, frozen=True)
class SessionClaims:
    user_id: str
    issued_at: int
    expires_at: int
    persistent: bool = False
    flash: dict[str, str] | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "user_id": self.user_id,
            "issued_at": self.issued_at,
            "expires_at": self.expires_at,
            "persistent": self.persistent,
        }
        if self.flash is not None:
            payload["flash"] = self.flash
        return payload

    @classmethod
    def from_dict(cls, raw: Any) -> SessionClaims | None:
        if not isinstance(raw, dict):
            return None
        user_id = raw.get("user_id")
        issued_at = raw.get("issued_at")
        expires_at = raw.get("expires_at")
        if not isinstance(user_id, str) or not user_id:
            return None
        if not _is_int(issued_at) or not _is_int(expires_at):
            return None
        flash = raw.get("flash")
        if flash is not None and not isinstance(flash, dict):
            return None
        return cls(
            user_id=user_id,
            issued_at=issued_at,
            expires_at=expires_at,
            persistent=bool(raw.get("persistent", False)),
            flash=flash,
        )


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(value: str) -> bytes:
    padding = "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(value + padding)


class TokenCodec:
    def __init__(
        self,
        secret: str,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise ValueError("token secret must not be empty")
        self._key = secret.encode("utf-8")
        self._clock = clock

    def encode(self, claims: SessionClaims) -> str:
        body = json.dumps(claims.to_dict(), separators=(",", ":"), sort_keys=True)
        payload = _b64encode(body.encode("utf-8"))
        return f"{payload}{_SEPARATOR}{self._sign(payload)}"

    def decode(self, token: str | None) -> SessionClaims | None:
        if not token or _SEPARATOR not in token:
            return None
        payload, _, signature = token.rpartition(_SEPARATOR)
        if not payload or not signature:
            return None
        # compare the encoded form so every character of the signature counts
        expected = self._sign(payload)
        if not hmac.compare_digest(signature.encode("utf-8"), expected.encode("ascii")):
            return None

        try:
            raw = json.loads(_b64decode(payload))
        except (binascii.Error, ValueError):
            return None

        claims = SessionClaims.from_dict(raw)
        if claims is None or claims.expires_at <= int(self._clock()):
            return None
        return claims

    def _sign(self, payload: str) -> str:
        digest = hmac.new(self._key, payload.encode("utf-8"), hashlib.sha256).digest()
        return _b64encode(digest)


__all__ = ["SessionClaims", "TokenCodec"]
