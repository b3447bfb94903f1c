# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from http import HTTPStatus

from pinstash.shared.errors.base import DomainError


class InvalidCredentialsError(DomainError):
    code = "invalid_credentials"
    status = HTTPStatus.UNAUTHORIZED
    message = "Invalid username or password"


class UserAlreadyExistsError(DomainError):
    code = "user_already_exists"
    status = HTTPStatus.CONFLICT

    def __init__(self, field: str = "username") -> None:
        label = "Username" if field == "username" else "Email"
        super().__init__(context={"field": field}, message=f"{label} is already taken")

    @property
    def field(self) -> str:
        return str((self.context or {}).get("field", "username"))


class ResetTokenError(DomainError):
    # unknown and expired tokens share a public code and wording
    code = "invalid_reset_token"
    status = HTTPStatus.BAD_REQUEST
    message = "Invalid or expired password reset token"


class InvalidResetTokenError(ResetTokenError):
    pass


class ResetTokenExpiredError(ResetTokenError):
    pass


class TooManyResetRequestsError(DomainError):
    code = "too_many_reset_requests"
    status = HTTPStatus.TOO_MANY_REQUESTS
    message = "Too many password reset requests. Please try again later."
