# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any

from pinstash.domain.sessions.entities import SessionRecord
from pinstash.infrastructure.db.models import SessionRow
from pinstash.infrastructure.unit_of_work import unit_of_work_scope

from ._base import SqlAlchemyRepository, as_utc


def _to_record(row: SessionRow) -> SessionRecord:
    return SessionRecord(
        id=row.id,
        user_id=row.user_id,
        data=dict(row.data or {}),
        expires_at=as_utc(row.expires_at),
        created_at=as_utc(row.created_at),
    )


class SqlAlchemySessionRepository(SqlAlchemyRepository):
    async def find_by_id(self, session_id: str) -> SessionRecord | None:
        def _find() -> SessionRecord | None:
            with unit_of_work_scope(self._session_factory) as session:
                row = session.get(SessionRow, session_id)
                return _to_record(row) if row else None

        return await asyncio.to_thread(_find)

    async def find_by_user_id(self, user_id: str) -> list[SessionRecord]:
        def _find() -> list[SessionRecord]:
            with unit_of_work_scope(self._session_factory) as session:
                rows = session.query(SessionRow).filter(SessionRow.user_id == user_id).all()
                return [_to_record(row) for row in rows]

        return await asyncio.to_thread(_find)

    async def create(
        self, *, user_id: str, data: dict[str, Any], expires_at: datetime
    ) -> SessionRecord:
        def _create() -> SessionRecord:
            with unit_of_work_scope(self._session_factory) as session:
                row = SessionRow(user_id=user_id, data=dict(data), expires_at=expires_at)
                session.add(row)
                session.flush()
                session.refresh(row)
                return _to_record(row)

        return await asyncio.to_thread(_create)

    async def update(
        self,
        session_id: str,
        *,
        data: dict[str, Any] | None = None,
        expires_at: datetime | None = None,
    ) -> SessionRecord | None:
        def _update() -> SessionRecord | None:
            with unit_of_work_scope(self._session_factory) as session:
                row = session.get(SessionRow, session_id)
                if row is None:
                    return None
                if data is not None:
                    # new dict so the JSON column registers the change
                    row.data = dict(data)
                if expires_at is not None:
                    row.expires_at = expires_at
                session.flush()
                return _to_record(row)

        return await asyncio.to_thread(_update)

    async def delete(self, session_id: str) -> bool:
        def _delete() -> bool:
            with unit_of_work_scope(self._session_factory) as session:
                deleted = (
                    session.query(SessionRow)
                    .filter(SessionRow.id == session_id)
                    .delete(synchronize_session=False)
                )
                return deleted > 0

        return await asyncio.to_thread(_delete)

    async def delete_by_user_id(self, user_id: str) -> int:
        def _delete() -> int:
            with unit_of_work_scope(self._session_factory) as session:
                return (
                    session.query(SessionRow)
                    .filter(SessionRow.user_id == user_id)
                    .delete(synchronize_session=False)
                )

        return await asyncio.to_thread(_delete)

    async def delete_expired(self, now: datetime) -> int:
        def _delete() -> int:
            with unit_of_work_scope(self._session_factory) as session:
                return (
                    session.query(SessionRow)
                    .filter(SessionRow.expires_at <= now)
                    .delete(synchronize_session=False)
                )

        return await asyncio.to_thread(_delete)

    async def is_valid_session(self, session_id: str, now: datetime) -> bool:
        record = await self.find_by_id(session_id)
        return record is not None and record.expires_at is not None and record.expires_at > now


__all__ = ["SqlAlchemySessionRepository"]
