"""Long-lived credential sources used to sign role assumption calls."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Protocol

from assume_role_provider.credentials import LongLivedCredentials
from assume_role_provider.errors import CredentialSourceError

if TYPE_CHECKING:
    from assume_role_provider.provider import RoleSessionCredentialsProvider

logger = logging.getLogger(__name__)

ACCESS_KEY_ENV = "AWS_ACCESS_KEY_ID"
SECRET_KEY_ENV = "AWS_SECRET_ACCESS_KEY"
SESSION_TOKEN_ENV = "AWS_SESSION_TOKEN"


class CredentialSource(Protocol):
    def get_credentials(self) -> LongLivedCredentials: ...


class StaticCredentialSource:
    """Always returns the same credentials."""

    def __init__(self, credentials: LongLivedCredentials) -> None:
        self._credentials = credentials

    def get_credentials(self) -> LongLivedCredentials:
        return self._credentials


class EnvironmentCredentialSource:
    """Reads credentials from environment variables on every call."""

    def __init__(
        self,
        access_key_env: str = ACCESS_KEY_ENV,
        secret_env: str = SECRET_KEY_ENV,
        token_env: str | None = SESSION_TOKEN_ENV,
    ) -> None:
        self._access_key_env = access_key_env
        self._secret_env = secret_env
        self._token_env = token_env

    def get_credentials(self) -> LongLivedCredentials:
        access_key_id = os.getenv(self._access_key_env, "").strip()
        secret = os.getenv(self._secret_env, "").strip()
        if not access_key_id or not secret:
            raise CredentialSourceError(
                f"{self._access_key_env} and {self._secret_env} must both be set",
                code="no_credentials",
            )
        token = os.getenv(self._token_env, "").strip() if self._token_env else ""
        return LongLivedCredentials(
            access_key_id=access_key_id,
            access_key_secret=secret,
            security_token=token or None,
        )


class ChainedCredentialSource:
    """Tries each source in order and returns the first that succeeds."""

    def __init__(self, *sources: CredentialSource) -> None:
        if not sources:
            raise ValueError("ChainedCredentialSource requires at least one source")
        self._sources = sources

    def get_credentials(self) -> LongLivedCredentials:
        errors: list[str] = []
        for source in self._sources:
            try:
                return source.get_credentials()
            except CredentialSourceError as exc:
                logger.debug("Credential source %s unavailable: %s", type(source).__name__, exc)
                errors.append(f"{type(source).__name__}: {exc}")
        raise CredentialSourceError(
            "No credential source produced credentials (" + "; ".join(errors) + ")",
            code="no_credentials",
        )


class ProviderCredentialSource:
    """Uses another provider's session credential as the signing identity.

    This allows chaining one assumed role into another.
    """

    def __init__(self, provider: "RoleSessionCredentialsProvider") -> None:
        self._provider = provider

    def get_credentials(self) -> LongLivedCredentials:
        session = self._provider.get_credentials()
        return LongLivedCredentials(
            access_key_id=session.access_key_id,
            access_key_secret=session.access_key_secret,
            security_token=session.security_token,
        )
