# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .entities import PasswordResetToken, User
from .exceptions import (
    InvalidCredentialsError,
    InvalidResetTokenError,
    ResetTokenError,
    ResetTokenExpiredError,
    TooManyResetRequestsError,
    UserAlreadyExistsError,
)
from .repositories import PasswordResetRepository, UserRepository

__all__ = [
    "InvalidCredentialsError",
    "InvalidResetTokenError",
    "PasswordResetRepository",
    "PasswordResetToken",
    "ResetTokenError",
    "ResetTokenExpiredError",
    "TooManyResetRequestsError",
    "User",
    "UserAlreadyExistsError",
    "UserRepository",
]
