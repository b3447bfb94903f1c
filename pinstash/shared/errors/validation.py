# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from typing import Any, NoReturn

from pydantic import ValidationError as PydanticValidationError

from .base import ValidationError

_MESSAGE_PREFIXES = ("Value error, ", "Assertion failed, ")


def format_pydantic_errors(exc: PydanticValidationError) -> dict[str, Any]:
    fields: dict[str, list[str]] = {}

    for error in exc.errors():
        loc = error.get("loc", ())
        field_path = ".".join(str(part) for part in loc if part is not None)
        fields.setdefault(field_path or "unknown", []).append(_message_for(error))

    return {"fields": fields}


def _message_for(error: Any) -> str:
    message = str(error.get("msg") or "Invalid value")
    for prefix in _MESSAGE_PREFIXES:
        if message.startswith(prefix):
            return message[len(prefix):]
    return message


def raise_validation_error(exc: PydanticValidationError) -> NoReturn:
    context = format_pydantic_errors(exc)
    raise ValidationError(context=context) from exc


__all__ = [
    "format_pydantic_errors",
    "raise_validation_error",
]
