# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Application dependency container."""

from __future__ import annotations

from datetime import timedelta
from functools import cached_property

from pinstash.application.interfaces import EmailService
from pinstash.application.services.authentication import AuthenticationService
from pinstash.application.services.password_hashing import CredentialHasher
from pinstash.application.services.password_reset import PasswordResetFlow
from pinstash.application.services.session_store import (
    DatabaseSessionBackend,
    SessionBackend,
    SessionStore,
    SignedCookieBackend,
)
from pinstash.application.services.token_codec import TokenCodec
from pinstash.infrastructure.db import Database
from pinstash.infrastructure.email import ConsoleEmailService, MailgunEmailService
from pinstash.infrastructure.repositories import (
    SqlAlchemyPasswordResetRepository,
    SqlAlchemySessionRepository,
    SqlAlchemyUserRepository,
)
from pinstash.interfaces.http.controllers.auth_controller import AuthController
from pinstash.interfaces.http.controllers.misc_controller import MiscController
from pinstash.shared.config import AppConfig


class Container:
    def __init__(self, config: AppConfig) -> None:
        self.config = config

    @cached_property
    def database(self) -> Database:
        return Database(self.config.database)

    @cached_property
    def credential_hasher(self) -> CredentialHasher:
        return CredentialHasher(method=self.config.password.hash_method)

    @cached_property
    def token_codec(self) -> TokenCodec:
        return TokenCodec(self.config.secret_key)

    @cached_property
    def user_repository(self) -> SqlAlchemyUserRepository:
        return SqlAlchemyUserRepository(self.database.session_factory)

    @cached_property
    def session_repository(self) -> SqlAlchemySessionRepository:
        return SqlAlchemySessionRepository(self.database.session_factory)

    @cached_property
    def password_reset_repository(self) -> SqlAlchemyPasswordResetRepository:
        return SqlAlchemyPasswordResetRepository(self.database.session_factory)

    @cached_property
    def email_service(self) -> EmailService:
        mail = self.config.mail
        if mail.provider == "mailgun":
            return MailgunEmailService(
                mail, expires_in_minutes=self.config.reset.token_ttl_minutes
            )
        return ConsoleEmailService()

    @cached_property
    def password_reset_flow(self) -> PasswordResetFlow:
        reset = self.config.reset
        return PasswordResetFlow(
            users=self.user_repository,
            tokens=self.password_reset_repository,
            hasher=self.credential_hasher,
            token_ttl=timedelta(minutes=reset.token_ttl_minutes),
            rate_limit_window=timedelta(minutes=reset.rate_limit_window_minutes),
            rate_limit_max_requests=reset.rate_limit_max_requests,
        )

    @cached_property
    def auth_service(self) -> AuthenticationService:
        return AuthenticationService(
            users=self.user_repository,
            hasher=self.credential_hasher,
            reset_flow=self.password_reset_flow,
            email_service=self.email_service,
        )

    @cached_property
    def session_backend(self) -> SessionBackend:
        if self.config.session.strategy == "cookie":
            return SignedCookieBackend(self.token_codec)
        return DatabaseSessionBackend(self.session_repository)

    def new_session_store(self) -> SessionStore:
        session = self.config.session
        return SessionStore(
            self.session_backend,
            self.user_repository,
            persistent_ttl=timedelta(seconds=session.persistent_ttl_seconds),
            browser_ttl=timedelta(seconds=session.browser_ttl_seconds),
        )

    @cached_property
    def auth_controller(self) -> AuthController:
        return AuthController(
            auth_service=self.auth_service, public_base_url=self.config.public_base_url
        )

    @cached_property
    def misc_controller(self) -> MiscController:
        return MiscController(database=self.database)
