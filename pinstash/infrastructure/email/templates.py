# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from dataclasses import dataclass
from html import escape

PASSWORD_RESET_SUBJECT = "Reset Your PinStash Password"

_HTML = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{subject}</title>
    <style>
        body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px; }}
        .container {{ background-color: #f9f9f9; padding: 30px; border-radius: 8px; }}
        .button {{ display: inline-block; background-color: #007bff; color: white; padding: 12px 24px; text-decoration: none; border-radius: 5px; margin: 20px 0; }}
        .footer {{ margin-top: 30px; font-size: 14px; color: #666; }}
    </style>
</head>
<body>
    <div class="container">
        <h1 style="text-align: center;">{subject}</h1>
        <p>Hello,</p>
        <p>We received a request to reset your PinStash password. If you made this request, click the button below to set a new password:</p>
        <p style="text-align: center;"><a href="{url}" class="button">Reset Password</a></p>
        <p>Or copy and paste this link into your browser:</p>
        <p style="word-break: break-all; color: #007bff;">{url}</p>
        <p>This link will expire in {minutes} minutes for security reasons.</p>
        <p>If you didn't request a password reset, you can safely ignore this email. Your password will remain unchanged.</p>
        <div class="footer">
            <p>Best regards,<br>The PinStash Team</p>
            <p><small>This is an automated email. Please do not reply to this message.</small></p>
        </div>
    </div>
</body>
</html>"""

_TEXT = """{subject}

Hello,

We received a request to reset your PinStash password. If you made this request, visit the following link to set a new password:

{url}

This link will expire in {minutes} minutes for security reasons.

If you didn't request a password reset, you can safely ignore this email. Your password will remain unchanged.

Best regards,
The PinStash Team

This is an automated email. Please do not reply to this message."""


@dataclass(slots=True, frozen=True)
class RenderedEmail:
    subject: str
    text: str
    html: str


def build_reset_url(reset_url_base: str, raw_token: str) -> str:
    return f"{reset_url_base.rstrip('/')}/{raw_token}"


def password_reset_email(reset_url: str, expires_in_minutes: int = 15) -> RenderedEmail:
    return RenderedEmail(
        subject=PASSWORD_RESET_SUBJECT,
        text=_TEXT.format(
            subject=PASSWORD_RESET_SUBJECT, url=reset_url, minutes=expires_in_minutes
        ),
        html=_HTML.format(
            subject=escape(PASSWORD_RESET_SUBJECT),
            url=escape(reset_url, quote=True),
            minutes=expires_in_minutes,
        ),
    )


__all__ = [
    "PASSWORD_RESET_SUBJECT",
    "RenderedEmail",
    "build_reset_url",
    "password_reset_email",
]
