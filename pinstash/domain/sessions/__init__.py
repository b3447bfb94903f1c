# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .entities import FlashMessage, FlashType, SessionRecord
from .repositories import SessionRepository

__all__ = [
    "FlashMessage",
    "FlashType",
    "SessionRecord",
    "SessionRepository",
]
