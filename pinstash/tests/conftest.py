from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from pinstash.application.services.authentication import AuthenticationService
from pinstash.application.services.password_hashing import CredentialHasher
from pinstash.application.services.password_reset import PasswordResetFlow
from pinstash.domain.sessions import SessionRecord
from pinstash.domain.users import PasswordResetToken, User

# cheap enough for unit tests, still a real salted werkzeug hash
TEST_HASH_METHOD = "pbkdf2:sha256:1000"


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)

    def timestamp(self) -> float:
        return self.now.timestamp()


class InMemoryUserRepository:
    def __init__(self, clock: FakeClock) -> None:
        self._clock = clock
        self.users: dict[str, User] = {}
        self.lookups = 0

    async def find_by_id(self, user_id: str) -> User | None:
        self.lookups += 1
        return self.users.get(user_id)

    async def find_by_username(self, username: str) -> User | None:
        for user in self.users.values():
            if user.username.lower() == username.lower():
                return user
        return None

    async def find_by_email_hash(self, email_hash: str) -> User | None:
        for user in self.users.values():
            if user.email_hash == email_hash:
                return user
        return None

    async def create(
        self, *, username: str, password_hash: str, email_hash: str | None
    ) -> User:
        now = self._clock()
        user = User(
            id=uuid.uuid4().hex,
            username=username,
            password_hash=password_hash,
            email_hash=email_hash,
            created_at=now,
            updated_at=now,
        )
        self.users[user.id] = user
        return user

    async def update(self, user_id: str, **fields: Any) -> User | None:
        user = self.users.get(user_id)
        if user is None:
            return None
        updated = replace(user, updated_at=self._clock(), **fields)
        self.users[user_id] = updated
        return updated


class InMemoryPasswordResetRepository:
    def __init__(self, clock: FakeClock) -> None:
        self._clock = clock
        self.tokens: dict[str, PasswordResetToken] = {}
        self.requests: list[tuple[str, datetime]] = []

    async def find_by_token_hash(self, token_hash: str) -> PasswordResetToken | None:
        for token in self.tokens.values():
            if token.token_hash == token_hash:
                return token
        return None

    async def find_by_user_id(self, user_id: str) -> list[PasswordResetToken]:
        return [t for t in self.tokens.values() if t.user_id == user_id]

    async def create(
        self, *, user_id: str, token_hash: str, expires_at: datetime
    ) -> PasswordResetToken:
        token = PasswordResetToken(
            id=uuid.uuid4().hex,
            user_id=user_id,
            token_hash=token_hash,
            expires_at=expires_at,
            created_at=self._clock(),
        )
        self.tokens[token.id] = token
        return token

    async def delete(self, token_id: str) -> bool:
        return self.tokens.pop(token_id, None) is not None

    async def delete_by_user_id(self, user_id: str) -> int:
        doomed = [t.id for t in self.tokens.values() if t.user_id == user_id]
        for token_id in doomed:
            del self.tokens[token_id]
        return len(doomed)

    async def invalidate_by_user_id(self, user_id: str, now: datetime) -> int:
        count = 0
        for token_id, token in list(self.tokens.items()):
            if token.user_id == user_id and token.invalidated_at is None:
                self.tokens[token_id] = replace(token, invalidated_at=now)
                count += 1
        return count

    async def is_valid_token(self, token_hash: str, now: datetime) -> bool:
        token = await self.find_by_token_hash(token_hash)
        return token is not None and token.is_active(now)

    async def delete_expired(self, cutoff: datetime) -> int:
        doomed = [t.id for t in self.tokens.values() if t.expires_at < cutoff]
        for token_id in doomed:
            del self.tokens[token_id]
        return len(doomed)

    async def record_request(self, email_hash: str, at: datetime) -> None:
        self.requests.append((email_hash, at))

    async def count_requests_since(self, email_hash: str, since: datetime) -> int:
        return sum(1 for h, at in self.requests if h == email_hash and at > since)

    async def delete_requests_before(self, cutoff: datetime) -> int:
        kept = [(h, at) for h, at in self.requests if at > cutoff]
        removed = len(self.requests) - len(kept)
        self.requests = kept
        return removed


class InMemorySessionRepository:
    def __init__(self, clock: FakeClock) -> None:
        self._clock = clock
        self.records: dict[str, SessionRecord] = {}
        self.writes = 0

    async def find_by_id(self, session_id: str) -> SessionRecord | None:
        return self.records.get(session_id)

    async def find_by_user_id(self, user_id: str) -> list[SessionRecord]:
        return [r for r in self.records.values() if r.user_id == user_id]

    async def create(
        self, *, user_id: str, data: dict[str, Any], expires_at: datetime
    ) -> SessionRecord:
        record = SessionRecord(
            id=uuid.uuid4().hex,
            user_id=user_id,
            data=dict(data),
            expires_at=expires_at,
            created_at=self._clock(),
        )
        self.records[record.id] = record
        return record

    async def update(
        self,
        session_id: str,
        *,
        data: dict[str, Any] | None = None,
        expires_at: datetime | None = None,
    ) -> SessionRecord | None:
        record = self.records.get(session_id)
        if record is None:
            return None
        self.writes += 1
        record = replace(
            record,
            data=dict(data) if data is not None else record.data,
            expires_at=expires_at or record.expires_at,
        )
        self.records[session_id] = record
        return record

    async def delete(self, session_id: str) -> bool:
        return self.records.pop(session_id, None) is not None

    async def delete_by_user_id(self, user_id: str) -> int:
        doomed = [r.id for r in self.records.values() if r.user_id == user_id]
        for session_id in doomed:
            del self.records[session_id]
        return len(doomed)

    async def delete_expired(self, now: datetime) -> int:
        doomed = [
            r.id for r in self.records.values() if r.expires_at and r.expires_at <= now
        ]
        for session_id in doomed:
            del self.records[session_id]
        return len(doomed)

    async def is_valid_session(self, session_id: str, now: datetime) -> bool:
        record = self.records.get(session_id)
        return record is not None and record.expires_at is not None and record.expires_at > now


class RecordingEmailService:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []

    async def send_password_reset_email(
        self, email: str, raw_token: str, reset_url_base: str
    ) -> None:
        self.sent.append((email, raw_token, reset_url_base))


class CountingHasher(CredentialHasher):
    def __init__(self) -> None:
        super().__init__(method=TEST_HASH_METHOD)
        self.dummy_calls = 0

    async def verify_dummy(self, password: str) -> None:
        self.dummy_calls += 1
        await super().verify_dummy(password)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def users(clock: FakeClock) -> InMemoryUserRepository:
    return InMemoryUserRepository(clock)


@pytest.fixture()
def reset_tokens(clock: FakeClock) -> InMemoryPasswordResetRepository:
    return InMemoryPasswordResetRepository(clock)


@pytest.fixture()
def session_records(clock: FakeClock) -> InMemorySessionRepository:
    return InMemorySessionRepository(clock)


@pytest.fixture()
def hasher() -> CountingHasher:
    return CountingHasher()


@pytest.fixture()
def email_service() -> RecordingEmailService:
    return RecordingEmailService()


@pytest.fixture()
def reset_flow(
    users: InMemoryUserRepository,
    reset_tokens: InMemoryPasswordResetRepository,
    hasher: CountingHasher,
    clock: FakeClock,
) -> PasswordResetFlow:
    return PasswordResetFlow(
        users=users,
        tokens=reset_tokens,
        hasher=hasher,
        clock=clock,
    )


@pytest.fixture()
def auth_service(
    users: InMemoryUserRepository,
    hasher: CountingHasher,
    reset_flow: PasswordResetFlow,
    email_service: RecordingEmailService,
) -> AuthenticationService:
    return AuthenticationService(
        users=users,
        hasher=hasher,
        reset_flow=reset_flow,
        email_service=email_service,
    )
