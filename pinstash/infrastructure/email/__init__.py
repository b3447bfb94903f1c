# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .console import ConsoleEmailService
from .mailgun import MailgunEmailService
from .templates import build_reset_url, password_reset_email

__all__ = [
    "ConsoleEmailService",
    "MailgunEmailService",
    "build_reset_url",
    "password_reset_email",
]
