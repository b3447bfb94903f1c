# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import asyncio
from datetime import datetime

from sqlalchemy import func

from pinstash.domain.users.entities import PasswordResetToken, User
from pinstash.infrastructure.db.models import (
    PasswordResetRequestRow,
    PasswordResetTokenRow,
    UserRow,
)
from pinstash.infrastructure.unit_of_work import unit_of_work_scope

from ._base import SqlAlchemyRepository, as_utc

_UPDATABLE_USER_FIELDS = frozenset({"username", "password_hash", "email_hash"})


def _to_user(row: UserRow) -> User:
    return User(
        id=row.id,
        username=row.username,
        password_hash=row.password_hash,
        email_hash=row.email_hash,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


def _to_token(row: PasswordResetTokenRow) -> PasswordResetToken:
    return PasswordResetToken(
        id=row.id,
        user_id=row.user_id,
        token_hash=row.token_hash,
        expires_at=as_utc(row.expires_at),
        created_at=as_utc(row.created_at),
        invalidated_at=as_utc(row.invalidated_at) if row.invalidated_at else None,
    )


class SqlAlchemyUserRepository(SqlAlchemyRepository):
    async def find_by_id(self, user_id: str) -> User | None:
        def _find() -> User | None:
            with unit_of_work_scope(self._session_factory) as session:
                row = session.get(UserRow, user_id)
                return _to_user(row) if row else None

        return await asyncio.to_thread(_find)

    async def find_by_username(self, username: str) -> User | None:
        def _find() -> User | None:
            with unit_of_work_scope(self._session_factory) as session:
                row = (
                    session.query(UserRow)
                    .filter(func.lower(UserRow.username) == username.lower())
                    .first()
                )
                return _to_user(row) if row else None

        return await asyncio.to_thread(_find)

    async def find_by_email_hash(self, email_hash: str) -> User | None:
        def _find() -> User | None:
            with unit_of_work_scope(self._session_factory) as session:
                row = session.query(UserRow).filter(UserRow.email_hash == email_hash).first()
                return _to_user(row) if row else None

        return await asyncio.to_thread(_find)

    async def create(
        self, *, username: str, password_hash: str, email_hash: str | None
    ) -> User:
        def _create() -> User:
            with unit_of_work_scope(self._session_factory) as session:
                row = UserRow(
                    username=username,
                    password_hash=password_hash,
                    email_hash=email_hash,
                )
                session.add(row)
                session.flush()
                session.refresh(row)
                return _to_user(row)

        return await asyncio.to_thread(_create)

    async def update(self, user_id: str, **fields: str | None) -> User | None:
        unknown = set(fields) - _UPDATABLE_USER_FIELDS
        if unknown:
            raise ValueError(f"cannot update user fields: {sorted(unknown)}")

        def _update() -> User | None:
            with unit_of_work_scope(self._session_factory) as session:
                row = session.get(UserRow, user_id)
                if row is None:
                    return None
                for name, value in fields.items():
                    setattr(row, name, value)
                session.flush()
                session.refresh(row)
                return _to_user(row)

        return await asyncio.to_thread(_update)


class SqlAlchemyPasswordResetRepository(SqlAlchemyRepository):
    async def find_by_token_hash(self, token_hash: str) -> PasswordResetToken | None:
        def _find() -> PasswordResetToken | None:
            with unit_of_work_scope(self._session_factory) as session:
                row = (
                    session.query(PasswordResetTokenRow)
                    .filter(PasswordResetTokenRow.token_hash == token_hash)
                    .first()
                )
                return _to_token(row) if row else None

        return await asyncio.to_thread(_find)

    async def find_by_user_id(self, user_id: str) -> list[PasswordResetToken]:
        def _find() -> list[PasswordResetToken]:
            with unit_of_work_scope(self._session_factory) as session:
                rows = (
                    session.query(PasswordResetTokenRow)
                    .filter(PasswordResetTokenRow.user_id == user_id)
                    .order_by(PasswordResetTokenRow.created_at)
                    .all()
                )
                return [_to_token(row) for row in rows]

        return await asyncio.to_thread(_find)

    async def create(
        self, *, user_id: str, token_hash: str, expires_at: datetime
    ) -> PasswordResetToken:
        def _create() -> PasswordResetToken:
            with unit_of_work_scope(self._session_factory) as session:
                row = PasswordResetTokenRow(
                    user_id=user_id, token_hash=token_hash, expires_at=expires_at
                )
                session.add(row)
                session.flush()
                session.refresh(row)
                return _to_token(row)

        return await asyncio.to_thread(_create)

    async def delete(self, token_id: str) -> bool:
        def _delete() -> bool:
            with unit_of_work_scope(self._session_factory) as session:
                deleted = (
                    session.query(PasswordResetTokenRow)
                    .filter(PasswordResetTokenRow.id == token_id)
                    .delete(synchronize_session=False)
                )
                return deleted > 0

        return await asyncio.to_thread(_delete)

    async def delete_by_user_id(self, user_id: str) -> int:
        def _delete() -> int:
            with unit_of_work_scope(self._session_factory) as session:
                return (
                    session.query(PasswordResetTokenRow)
                    .filter(PasswordResetTokenRow.user_id == user_id)
                    .delete(synchronize_session=False)
                )

        return await asyncio.to_thread(_delete)

    async def invalidate_by_user_id(self, user_id: str, now: datetime) -> int:
        def _invalidate() -> int:
            with unit_of_work_scope(self._session_factory) as session:
                return (
                    session.query(PasswordResetTokenRow)
                    .filter(
                        PasswordResetTokenRow.user_id == user_id,
                        PasswordResetTokenRow.invalidated_at.is_(None),
                    )
                    .update(
                        {PasswordResetTokenRow.invalidated_at: now},
                        synchronize_session=False,
                    )
                )

        return await asyncio.to_thread(_invalidate)

    async def is_valid_token(self, token_hash: str, now: datetime) -> bool:
        token = await self.find_by_token_hash(token_hash)
        return token is not None and token.is_active(now)

    async def delete_expired(self, cutoff: datetime) -> int:
        def _delete() -> int:
            with unit_of_work_scope(self._session_factory) as session:
                return (
                    session.query(PasswordResetTokenRow)
                    .filter(PasswordResetTokenRow.expires_at < cutoff)
                    .delete(synchronize_session=False)
                )

        return await asyncio.to_thread(_delete)

    async def record_request(self, email_hash: str, at: datetime) -> None:
        def _record() -> None:
            with unit_of_work_scope(self._session_factory) as session:
                session.add(PasswordResetRequestRow(email_hash=email_hash, created_at=at))

        await asyncio.to_thread(_record)

    async def count_requests_since(self, email_hash: str, since: datetime) -> int:
        def _count() -> int:
            with unit_of_work_scope(self._session_factory) as session:
                return (
                    session.query(func.count(PasswordResetRequestRow.id))
                    .filter(
                        PasswordResetRequestRow.email_hash == email_hash,
                        PasswordResetRequestRow.created_at > since,
                    )
                    .scalar()
                    or 0
                )

        return await asyncio.to_thread(_count)

    async def delete_requests_before(self, cutoff: datetime) -> int:
        def _delete() -> int:
            with unit_of_work_scope(self._session_factory) as session:
                return (
                    session.query(PasswordResetRequestRow)
                    .filter(PasswordResetRequestRow.created_at <= cutoff)
                    .delete(synchronize_session=False)
                )

        return await asyncio.to_thread(_delete)


__all__ = ["SqlAlchemyPasswordResetRepository", "SqlAlchemyUserRepository"]
