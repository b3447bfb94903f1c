# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from datetime import timedelta

from pinstash.application.interfaces import Clock, utcnow
from pinstash.application.services.password_hashing import (
    CredentialHasher,
    generate_secure_token,
    hash_token,
)
from pinstash.domain.users import (
    InvalidResetTokenError,
    PasswordResetRepository,
    ResetTokenExpiredError,
    TooManyResetRequestsError,
    UserRepository,
)
from pinstash.shared.logging import logger

TOKEN_TTL = timedelta(minutes=15)
RATE_LIMIT_WINDOW = timedelta(minutes=60)
RATE_LIMIT_MAX_REQUESTS = 3


class PasswordResetFlow:
    """Issues, validates and consumes single-use password reset tokens.

    The rate-limit count and the request-log insert that follows are two
    statements; concurrent requests for one address can overshoot the limit.
    """

    def __init__(
        self,
        *,
        users: UserRepository,
        tokens: PasswordResetRepository,
        hasher: CredentialHasher,
        token_ttl: timedelta = TOKEN_TTL,
        rate_limit_window: timedelta = RATE_LIMIT_WINDOW,
        rate_limit_max_requests: int = RATE_LIMIT_MAX_REQUESTS,
        clock: Clock = utcnow,
    ) -> None:
        self._users = users
        self._tokens = tokens
        self._hasher = hasher
        self._token_ttl = token_ttl
        self._window = rate_limit_window
        self._max_requests = rate_limit_max_requests
        self._clock = clock

    async def request(self, email: str) -> str | None:
        # the limit is keyed by address so known and unknown ones throttle alike
        email_hash = self._hasher.hash_identifier(email)
        now = self._clock()
        recent = await self._tokens.count_requests_since(email_hash, now - self._window)
        if recent >= self._max_requests:
            logger.warning(f"reset.request: rate limited address={email_hash[:8]} recent={recent}")
            raise TooManyResetRequestsError()
        await self._tokens.record_request(email_hash, now)

        user = await self._users.find_by_email_hash(email_hash)
        if user is None:
            logger.info("reset.request: no user for address, nothing issued")
            return None

        await self._tokens.invalidate_by_user_id(user.id, now)
        raw_token = generate_secure_token()
        await self._tokens.create(
            user_id=user.id,
            token_hash=hash_token(raw_token),
            expires_at=now + self._token_ttl,
        )
        logger.info(f"reset.request: token issued user_id={user.id}")
        return raw_token

    async def validate(self, raw_token: str) -> bool:
        if not raw_token:
            return False
        return await self._tokens.is_valid_token(hash_token(raw_token), self._clock())

    async def consume(self, raw_token: str, new_password: str) -> None:
        record = None
        if raw_token:
            record = await self._tokens.find_by_token_hash(hash_token(raw_token))
        if record is None or record.invalidated_at is not None:
            raise InvalidResetTokenError()
        if record.expires_at <= self._clock():
            raise ResetTokenExpiredError()

        user = await self._users.find_by_id(record.user_id)
        if user is None:
            logger.warning(f"reset.consume: token owner {record.user_id} is gone")
            raise InvalidResetTokenError()

        password_hash = await self._hasher.hash_password(new_password)
        await self._users.update(user.id, password_hash=password_hash)
        await self._tokens.delete(record.id)
        logger.info(f"reset.consume: password reset user_id={user.id}")

    async def sweep(self) -> int:
        now = self._clock()
        tokens = await self._tokens.delete_expired(now)
        # request rows stay for one window so the limiter can still count them
        requests = await self._tokens.delete_requests_before(now - self._window)
        if tokens or requests:
            logger.info(f"reset.sweep: removed {tokens} expired tokens, {requests} old requests")
        return tokens + requests


__all__ = [
    "PasswordResetFlow",
    "RATE_LIMIT_MAX_REQUESTS",
    "RATE_LIMIT_WINDOW",
    "TOKEN_TTL",
]
