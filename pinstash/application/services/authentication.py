# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from pinstash.application.interfaces import EmailService
from pinstash.application.services.password_hashing import CredentialHasher
from pinstash.application.services.password_reset import PasswordResetFlow
from pinstash.domain.users import (
    InvalidCredentialsError,
    User,
    UserAlreadyExistsError,
    UserRepository,
)
from pinstash.domain.users.validation import (
    EmailInput,
    NewPasswordInput,
    PasswordChangeInput,
    RegistrationInput,
    RequiredEmailInput,
    validate_input,
)
from pinstash.shared.logging import logger


class AuthenticationService:
    def __init__(
        self,
        *,
        users: UserRepository,
        hasher: CredentialHasher,
        reset_flow: PasswordResetFlow,
        email_service: EmailService,
    ) -> None:
        self._users = users
        self._hasher = hasher
        self._reset_flow = reset_flow
        self._email_service = email_service

    async def register(
        self, username: str, password: str, email: str | None = None
    ) -> User:
        data = validate_input(
            RegistrationInput, username=username, password=password, email=email
        )

        if await self._users.find_by_username(data.username) is not None:
            logger.info("auth.register: username taken")
            raise UserAlreadyExistsError(field="username")

        email_hash = None
        if data.email is not None:
            email_hash = self._hasher.hash_identifier(data.email)
            if await self._users.find_by_email_hash(email_hash) is not None:
                logger.info("auth.register: email taken")
                raise UserAlreadyExistsError(field="email")

        password_hash = await self._hasher.hash_password(data.password)
        user = await self._users.create(
            username=data.username,
            password_hash=password_hash,
            email_hash=email_hash,
        )
        logger.info(f"auth.register: ok user_id={user.id}")
        return user

    async def login(self, username: str, password: str) -> User:
        user = await self._users.find_by_username(username) if username else None
        if user is None:
            await self._hasher.verify_dummy(password)
            logger.info("auth.login: failed, unknown user")
            raise InvalidCredentialsError()

        if not await self._hasher.verify_password(password, user.password_hash):
            logger.info(f"auth.login: failed, bad password user_id={user.id}")
            raise InvalidCredentialsError()

        logger.info(f"auth.login: ok user_id={user.id}")
        return user

    async def change_password(
        self, user_id: str, current_password: str, new_password: str
    ) -> None:
        data = validate_input(
            PasswordChangeInput,
            current_password=current_password,
            new_password=new_password,
        )

        user = await self._users.find_by_id(user_id)
        if user is None:
            await self._hasher.verify_dummy(data.current_password)
            raise InvalidCredentialsError()
        if not await self._hasher.verify_password(data.current_password, user.password_hash):
            logger.info(f"auth.change_password: wrong current password user_id={user_id}")
            raise InvalidCredentialsError()

        password_hash = await self._hasher.hash_password(data.new_password)
        await self._users.update(user_id, password_hash=password_hash)
        logger.info(f"auth.change_password: ok user_id={user_id}")

    async def update_email(self, user_id: str, email: str | None) -> User | None:
        data = validate_input(EmailInput, email=email)

        email_hash = None
        if data.email is not None:
            email_hash = self._hasher.hash_identifier(data.email)
            owner = await self._users.find_by_email_hash(email_hash)
            if owner is not None and owner.id != user_id:
                raise UserAlreadyExistsError(field="email")

        user = await self._users.update(user_id, email_hash=email_hash)
        logger.info(f"auth.update_email: user_id={user_id} cleared={email_hash is None}")
        return user

    async def find_by_email(self, email: str) -> User | None:
        data = validate_input(RequiredEmailInput, email=email)
        return await self._users.find_by_email_hash(self._hasher.hash_identifier(data.email))

    async def request_password_reset(
        self, email: str, reset_url_base: str
    ) -> str | None:
        data = validate_input(RequiredEmailInput, email=email)

        raw_token = await self._reset_flow.request(data.email)
        if raw_token is None:
            return None

        await self._email_service.send_password_reset_email(
            data.email, raw_token, reset_url_base
        )
        return raw_token

    async def validate_reset_token(self, raw_token: str) -> bool:
        return await self._reset_flow.validate(raw_token)

    async def reset_password(self, raw_token: str, new_password: str) -> None:
        data = validate_input(NewPasswordInput, new_password=new_password)
        await self._reset_flow.consume(raw_token, data.new_password)


__all__ = ["AuthenticationService"]
