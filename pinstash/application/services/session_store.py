# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Request-scoped session lifecycle.

A :class:`SessionStore` is created per request, resolved from the inbound
cookie before any handler runs and flushed exactly once afterwards. Where the
session lives is decided by a :class:`SessionBackend`: either entirely inside
a signed cookie, or as a server-side record keyed by an opaque id.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

from pinstash.application.interfaces import Clock, utcnow
from pinstash.application.services.token_codec import SessionClaims, TokenCodec
from pinstash.domain.sessions import FlashMessage, FlashType, SessionRepository
from pinstash.domain.users import User, UserRepository
from pinstash.shared.logging import logger

PERSISTENT_TTL = timedelta(days=30)
BROWSER_TTL = timedelta(hours=24)

_UNSET = object()


@dataclass(slots=True)
class SessionState:
    user_id: str
    persistent: bool
    expires_at: datetime
    created_at: datetime
    id: str | None = None
    flash: FlashMessage | None = None


@dataclass(slots=True, frozen=True)
class CookieDirective:
    """What to do with the client cookie; ``value=None`` clears it."""

    value: str | None
    max_age: int | None = None

    @property
    def clears(self) -> bool:
        return self.value is None


class SessionBackend(Protocol):
    # True when every state change has to be re-sent to the client
    carries_state: bool

    async def load(self, credential: str) -> SessionState | None: ...

    async def open(
        self, user_id: str, persistent: bool, expires_at: datetime
    ) -> SessionState: ...

    async def discard(self, state: SessionState) -> None: ...
    async def save(self, state: SessionState) -> None: ...
    def credential_for(self, state: SessionState) -> str: ...


class SignedCookieBackend:
    carries_state = True

    def __init__(self, codec: TokenCodec, *, clock: Clock = utcnow) -> None:
        self._codec = codec
        self._clock = clock

    async def load(self, credential: str) -> SessionState | None:
        claims = self._codec.decode(credential)
        if claims is None:
            return None
        return SessionState(
            user_id=claims.user_id,
            persistent=claims.persistent,
            expires_at=datetime.fromtimestamp(claims.expires_at, UTC),
            created_at=datetime.fromtimestamp(claims.issued_at, UTC),
            flash=FlashMessage.from_dict(claims.flash),
        )

    async def open(
        self, user_id: str, persistent: bool, expires_at: datetime
    ) -> SessionState:
        return SessionState(
            user_id=user_id,
            persistent=persistent,
            expires_at=expires_at,
            created_at=self._clock(),
        )

    async def discard(self, state: SessionState) -> None:
        # nothing server-side; the cookie is cleared on flush
        return None

    async def save(self, state: SessionState) -> None:
        return None

    def credential_for(self, state: SessionState) -> str:
        claims = SessionClaims(
            user_id=state.user_id,
            issued_at=int(state.created_at.timestamp()),
            expires_at=int(state.expires_at.timestamp()),
            persistent=state.persistent,
            flash=state.flash.to_dict() if state.flash else None,
        )
        return self._codec.encode(claims)


class DatabaseSessionBackend:
    carries_state = False

    def __init__(self, sessions: SessionRepository, *, clock: Clock = utcnow) -> None:
        self._sessions = sessions
        self._clock = clock

    async def load(self, credential: str) -> SessionState | None:
        record = await self._sessions.find_by_id(credential)
        if record is None:
            return None
        if record.expires_at is None or record.expires_at <= self._clock():
            await self._sessions.delete(record.id)
            return None
        data = record.data or {}
        return SessionState(
            id=record.id,
            user_id=record.user_id,
            persistent=bool(data.get("keep_signed_in", False)),
            expires_at=record.expires_at,
            created_at=record.created_at or record.expires_at,
            flash=FlashMessage.from_dict(data.get("flash")),
        )

    async def open(
        self, user_id: str, persistent: bool, expires_at: datetime
    ) -> SessionState:
        record = await self._sessions.create(
            user_id=user_id,
            data={"user_id": user_id, "keep_signed_in": persistent},
            expires_at=expires_at,
        )
        return SessionState(
            id=record.id,
            user_id=user_id,
            persistent=persistent,
            expires_at=expires_at,
            created_at=record.created_at or self._clock(),
        )

    async def discard(self, state: SessionState) -> None:
        if state.id is not None:
            await self._sessions.delete(state.id)

    async def save(self, state: SessionState) -> None:
        if state.id is None:
            return
        data: dict[str, object] = {
            "user_id": state.user_id,
            "keep_signed_in": state.persistent,
        }
        if state.flash is not None:
            data["flash"] = state.flash.to_dict()
        updated = await self._sessions.update(
            state.id, data=data, expires_at=state.expires_at
        )
        if updated is None:
            # removed concurrently, e.g. logout from another tab
            logger.debug(f"session.save: record {state.id[:8]} vanished before write-back")

    def credential_for(self, state: SessionState) -> str:
        if state.id is None:
            raise RuntimeError("database session has no id")
        return state.id


class SessionStore:
    def __init__(
        self,
        backend: SessionBackend,
        users: UserRepository,
        *,
        persistent_ttl: timedelta = PERSISTENT_TTL,
        browser_ttl: timedelta = BROWSER_TTL,
        clock: Clock = utcnow,
    ) -> None:
        self._backend = backend
        self._users = users
        self._persistent_ttl = persistent_ttl
        self._browser_ttl = browser_ttl
        self._clock = clock

        self._state: SessionState | None = None
        self._user: object = _UNSET
        self._destroyed = False
        self._clear_credential = False
        self._needs_save = False
        self._issue_credential = False
        self._flushed = False

    async def resolve(self, credential: str | None) -> SessionState | None:
        if not credential:
            return None
        self._state = await self._backend.load(credential)
        if self._state is None:
            self._clear_credential = True
            logger.debug("session.resolve: invalid or expired credential, clearing")
        return self._state

    @property
    def state(self) -> SessionState | None:
        return self._state

    def is_authenticated(self) -> bool:
        return self._state is not None

    def current_user_id(self) -> str | None:
        return self._state.user_id if self._state else None

    async def current_user(self) -> User | None:
        if self._state is None:
            return None
        if self._user is not _UNSET:
            return self._user  # type: ignore[return-value]

        user = await self._users.find_by_id(self._state.user_id)
        if user is None:
            logger.info(
                f"session.current_user: user {self._state.user_id} no longer exists, destroying session"
            )
            await self.destroy()
            return None
        self._user = user
        return user

    async def create(self, user_id: str, persistent: bool = False) -> SessionState:
        if self._state is not None:
            await self._backend.discard(self._state)

        ttl = self._persistent_ttl if persistent else self._browser_ttl
        self._state = await self._backend.open(user_id, persistent, self._clock() + ttl)
        self._user = _UNSET
        self._destroyed = False
        self._needs_save = False
        self._issue_credential = True
        logger.info(f"session.create: user_id={user_id} persistent={persistent}")
        return self._state

    async def destroy(self) -> None:
        if self._state is not None:
            await self._backend.discard(self._state)
            logger.info(f"session.destroy: user_id={self._state.user_id}")
        self._state = None
        self._user = _UNSET
        self._destroyed = True
        self._needs_save = False
        self._issue_credential = False

    def set_flash(self, type: FlashType | str, message: str) -> None:
        if self._state is None:
            logger.debug("session.set_flash: no session, message dropped")
            return
        self._state.flash = FlashMessage(type=FlashType(type), message=message)
        self._mark_changed()

    def consume_flash(self) -> FlashMessage | None:
        if self._state is None or self._state.flash is None:
            return None
        flash = self._state.flash
        self._state.flash = None
        self._mark_changed()
        return flash

    def extend(self) -> bool:
        if self._state is None or not self._state.persistent:
            return False
        self._state.expires_at = self._clock() + self._persistent_ttl
        self._needs_save = True
        self._issue_credential = True
        return True

    async def flush(self) -> CookieDirective | None:
        """Persist accumulated changes once and report what the cookie should become."""
        if self._flushed:
            raise RuntimeError("session store already flushed for this request")
        self._flushed = True

        if self._state is None:
            if self._destroyed or self._clear_credential:
                return CookieDirective(value=None)
            return None

        if self._needs_save:
            await self._backend.save(self._state)
        if self._issue_credential:
            return CookieDirective(
                value=self._backend.credential_for(self._state),
                max_age=self._max_age(self._state),
            )
        return None

    def _mark_changed(self) -> None:
        self._needs_save = True
        if self._backend.carries_state:
            self._issue_credential = True

    def _max_age(self, state: SessionState) -> int | None:
        if not state.persistent:
            return None
        remaining = (state.expires_at - self._clock()).total_seconds()
        return max(0, math.ceil(remaining))


__all__ = [
    "BROWSER_TTL",
    "CookieDirective",
    "DatabaseSessionBackend",
    "PERSISTENT_TTL",
    "SessionBackend",
    "SessionState",
    "SessionStore",
    "SignedCookieBackend",
]
