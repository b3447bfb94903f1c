# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from pinstash.domain.sessions import FlashMessage
from pinstash.domain.users import User
from pinstash.shared.errors.validation import raise_validation_error


class _RequestDTO(BaseModel):
    # field rules live in the service; this only shapes the payload
    model_config = ConfigDict(extra="ignore")

    @classmethod
    def parse(cls, payload: Any):
        try:
            return cls.model_validate(payload if isinstance(payload, dict) else {})
        except ValidationError as exc:
            raise_validation_error(exc)


class RegisterRequestDTO(_RequestDTO):
    username: str = ""
    password: str = ""
    email: str | None = None


class LoginRequestDTO(_RequestDTO):
    username: str = ""
    password: str = ""
    keep_signed_in: bool = False


class ChangePasswordRequestDTO(_RequestDTO):
    current_password: str = ""
    new_password: str = ""


class UpdateEmailRequestDTO(_RequestDTO):
    email: str | None = None


class ForgotPasswordRequestDTO(_RequestDTO):
    email: str = ""


class ResetPasswordRequestDTO(_RequestDTO):
    new_password: str = ""


class UserDTO(BaseModel):
    id: str
    username: str
    has_email: bool
    created_at: str

    @classmethod
    def from_entity(cls, user: User) -> UserDTO:
        return cls(
            id=user.id,
            username=user.username,
            has_email=user.email_hash is not None,
            created_at=user.created_at.isoformat(),
        )


class FlashDTO(BaseModel):
    type: str
    message: str

    @classmethod
    def from_entity(cls, flash: FlashMessage | None) -> FlashDTO | None:
        if flash is None:
            return None
        return cls(type=flash.type.value, message=flash.message)


class AuthSuccessDTO(BaseModel):
    ok: bool = True
    user: UserDTO | None = None


class CurrentUserDTO(BaseModel):
    user: UserDTO
    flash: FlashDTO | None = None


class MessageDTO(BaseModel):
    ok: bool = True
    message: str


class ResetTokenStatusDTO(BaseModel):
    valid: bool
