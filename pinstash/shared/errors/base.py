# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Error taxonomy rendered by :mod:`pinstash.shared.errors.http`.

Every expected failure is an :class:`AppError` carrying a stable ``code``, an
HTTP ``status``, a user-facing ``message`` and optional ``context``. Domain
errors declare their defaults as class attributes.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any


@dataclass(slots=True)
class AppError(Exception):
    code: str
    status: HTTPStatus
    context: Mapping[str, Any] | None = None
    message: str | None = None

    def __post_init__(self) -> None:
        Exception.__init__(self, self.message or self.code)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.code}
        if self.message:
            payload["message"] = self.message
        if self.context:
            payload["context"] = dict(self.context)
        return payload


class DomainError(AppError):
    code = "domain_error"
    status = HTTPStatus.BAD_REQUEST
    message: str | None = None

    def __init__(
        self,
        *,
        code: str | None = None,
        status: HTTPStatus | None = None,
        context: Mapping[str, Any] | None = None,
        message: str | None = None,
    ) -> None:
        cls = type(self)
        super().__init__(
            code=code or cls.code,
            status=status or cls.status,
            context=context,
            message=message or cls.message,
        )


class InfrastructureError(AppError):
    def __init__(
        self,
        code: str = "infrastructure_error",
        *,
        status: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR,
        context: Mapping[str, Any] | None = None,
        message: str | None = None,
    ) -> None:
        super().__init__(code=code, status=status, context=context, message=message)


class ValidationError(AppError):
    """Input rejected before any state changed; ``context["fields"]`` maps field to messages."""

    def __init__(
        self,
        code: str = "validation_error",
        *,
        context: Mapping[str, Any] | None = None,
        message: str | None = None,
    ) -> None:
        super().__init__(
            code=code,
            status=HTTPStatus.UNPROCESSABLE_ENTITY,
            context=context,
            message=message or "Validation failed",
        )

    @property
    def fields(self) -> dict[str, list[str]]:
        if not self.context:
            return {}
        return dict(self.context.get("fields") or {})


class EmailSendError(InfrastructureError):
    def __init__(self, provider: str, *, message: str | None = None) -> None:
        super().__init__(
            "email_send_failed",
            status=HTTPStatus.BAD_GATEWAY,
            context={"provider": provider},
            message=message or "Failed to send email",
        )
