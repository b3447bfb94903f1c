# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Redaction applied to every log record before it is written."""

from __future__ import annotations

import re
from typing import Any

REDACTED = "***REDACTED***"

_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    # provider credentials
    (re.compile(r"\b(api[_-]?key|secret[_-]?key)(\s*[:=]\s*['\"]?)[\w\-]{16,}", re.I), rf"\1\2{REDACTED}"),
    (re.compile(r"\bkey-[0-9a-f]{24,}\b"), REDACTED),
    (re.compile(r"\b(authorization\s*:\s*)(basic|bearer)?\s*\S{8,}", re.I), rf"\1{REDACTED}"),
    (re.compile(r"\b(bearer\s+)[\w\-.]{16,}", re.I), rf"\1{REDACTED}"),
    # reset tokens: in links and as fields
    (re.compile(r"(reset-password/)[\w\-]{16,}"), rf"\1{REDACTED}"),
    (re.compile(r"\b(token(?:_hash)?\s*[:=]\s*['\"]?)[\w\-.]{16,}", re.I), rf"\1{REDACTED}"),
    # passwords in key=value or json form
    (re.compile(r"\b(\w*password\s*=\s*)\S+", re.I), rf"\1{REDACTED}"),
    (re.compile(r"(['\"]\w*password['\"]\s*:\s*)(\"[^\"]*\"|'[^']*')", re.I), rf"\1{REDACTED}"),
    # session cookie and ids
    (re.compile(r"(pinstash_session=)[^;\s]+"), rf"\1{REDACTED}"),
    (re.compile(r"\b(session[_-]?id\s*[:=]\s*['\"]?)[\w\-.]{16,}", re.I), rf"\1{REDACTED}"),
    # credentials embedded in database urls
    (re.compile(r"\b([a-z][\w+]*://[^:/@\s]+:)[^@\s]+@"), rf"\1{REDACTED}@"),
    # e-mail addresses keep only the domain
    (re.compile(r"\b[\w.%+\-]+@([\w\-]+(?:\.[\w\-]+)*\.[a-z]{2,})\b", re.I), r"***@\1"),
)


def sanitize_message(message: str) -> str:
    for pattern, replacement in _RULES:
        message = pattern.sub(replacement, message)
    return message


def sanitize_record(record: dict[str, Any]) -> bool:
    """Loguru filter: rewrites the message in place, never drops a record."""
    record["message"] = sanitize_message(record["message"])
    return True


__all__ = ["REDACTED", "sanitize_message", "sanitize_record"]
