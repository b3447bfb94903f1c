# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Field rules for identity input, checked before any store is touched."""

from __future__ import annotations

import re
from typing import Any, TypeVar

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from pinstash.shared.errors.validation import raise_validation_error
from pinstash.shared.errors.validation_types import ValidationErrorType

USERNAME_MIN = 3
USERNAME_MAX = 20
PASSWORD_MIN = 8
PASSWORD_MAX = 100
EMAIL_MAX = 100

_USERNAME_RE = re.compile(r"^[a-zA-Z0-9_]+$")

ModelT = TypeVar("ModelT", bound=BaseModel)


def check_username(value: str) -> str:
    if len(value) < USERNAME_MIN:
        raise PydanticCustomError(
            ValidationErrorType.USERNAME_TOO_SHORT,
            f"Username must be at least {USERNAME_MIN} characters",
            {"min_length": USERNAME_MIN},
        )
    if len(value) > USERNAME_MAX:
        raise PydanticCustomError(
            ValidationErrorType.USERNAME_TOO_LONG,
            f"Username must be at most {USERNAME_MAX} characters",
            {"max_length": USERNAME_MAX},
        )
    if not _USERNAME_RE.match(value):
        raise PydanticCustomError(
            ValidationErrorType.USERNAME_INVALID_CHARS,
            "Username can only contain letters, numbers, and underscores",
            {"pattern": _USERNAME_RE.pattern},
        )
    return value


def check_password(value: str) -> str:
    if len(value) < PASSWORD_MIN:
        raise PydanticCustomError(
            ValidationErrorType.PASSWORD_TOO_SHORT,
            f"Password must be at least {PASSWORD_MIN} characters",
            {"min_length": PASSWORD_MIN},
        )
    if len(value) > PASSWORD_MAX:
        raise PydanticCustomError(
            ValidationErrorType.PASSWORD_TOO_LONG,
            f"Password must be at most {PASSWORD_MAX} characters",
            {"max_length": PASSWORD_MAX},
        )
    return value


def check_email(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if len(value) > EMAIL_MAX:
        raise PydanticCustomError(
            ValidationErrorType.EMAIL_TOO_LONG,
            f"Email must be at most {EMAIL_MAX} characters",
            {"max_length": EMAIL_MAX},
        )
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as exc:
        raise PydanticCustomError(
            ValidationErrorType.EMAIL_INVALID,
            "Invalid email address",
            {"reason": str(exc)},
        ) from exc
    return value


class RegistrationInput(BaseModel):
    username: str
    password: str
    email: str | None = None

    username_rule = field_validator("username")(check_username)
    password_rule = field_validator("password")(check_password)
    email_rule = field_validator("email")(check_email)


class PasswordChangeInput(BaseModel):
    current_password: str
    new_password: str

    new_password_rule = field_validator("new_password")(check_password)


class EmailInput(BaseModel):
    email: str | None = None

    email_rule = field_validator("email")(check_email)


class RequiredEmailInput(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def email_required(cls, value: str) -> str:
        checked = check_email(value)
        if checked is None:
            raise PydanticCustomError(
                ValidationErrorType.MISSING, "Email is required", {}
            )
        return checked


class NewPasswordInput(BaseModel):
    new_password: str

    new_password_rule = field_validator("new_password")(check_password)


def validate_input(model: type[ModelT], **data: Any) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise_validation_error(exc)


__all__ = [
    "EmailInput",
    "NewPasswordInput",
    "PasswordChangeInput",
    "RegistrationInput",
    "RequiredEmailInput",
    "validate_input",
]
