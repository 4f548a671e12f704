"""Role session credentials provider and its builder."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace

from assume_role_provider.cache import CredentialCache
from assume_role_provider.credentials import DEFAULT_MARGIN_FRACTION, SessionCredential
from assume_role_provider.errors import ConfigurationError
from assume_role_provider.sts_client import AssumeRoleRequest, RoleAssumptionClient
from assume_role_provider.utils.time import Clock, epoch_millis, utc_now

logger = logging.getLogger(__name__)

MIN_DURATION_SECONDS = 900
MAX_DURATION_SECONDS = 3600
DEFAULT_DURATION_SECONDS = 3600
SESSION_NAME_PREFIX = "assume-role-provider-"


def default_session_name(clock: Clock = utc_now) -> str:
    return f"{SESSION_NAME_PREFIX}{epoch_millis(clock())}"


def validate_duration(duration_seconds: int) -> int:
    if isinstance(duration_seconds, bool) or not isinstance(duration_seconds, int):
        raise ConfigurationError(
            f"Session duration must be an integer, got {duration_seconds!r}",
            code="invalid_duration",
        )
    if not MIN_DURATION_SECONDS <= duration_seconds <= MAX_DURATION_SECONDS:
        raise ConfigurationError(
            f"Assume role session duration should be in the range of "
            f"{MIN_DURATION_SECONDS}-{MAX_DURATION_SECONDS} seconds, got {duration_seconds}",
            code="invalid_duration",
        )
    return duration_seconds


def validate_margin_fraction(margin_fraction: float) -> float:
    if not 0 < margin_fraction < 0.5:
        raise ConfigurationError(
            f"Expiry margin fraction must be between 0 and 0.5, got {margin_fraction}",
            code="invalid_margin",
        )
    return margin_fraction


def validate_role_arn(role_arn: str) -> str:
    if not role_arn or not role_arn.strip():
        raise ConfigurationError("role_arn is required", code="missing_role_arn")
    return role_arn


@dataclass(frozen=True)
class ProviderConfig:
    role_arn: str
    session_name: str = field(default_factory=default_session_name)
    duration_seconds: int = DEFAULT_DURATION_SECONDS
    margin_fraction: float = DEFAULT_MARGIN_FRACTION

    def __post_init__(self) -> None:
        validate_role_arn(self.role_arn)
        validate_duration(self.duration_seconds)
        validate_margin_fraction(self.margin_fraction)
        if not self.session_name:
            raise ConfigurationError("session_name must not be empty", code="invalid_session_name")

    def to_request(self) -> AssumeRoleRequest:
        return AssumeRoleRequest(
            role_arn=self.role_arn,
            session_name=self.session_name,
            duration_seconds=self.duration_seconds,
        )


class RoleSessionCredentialsProvider:
    """Returns a cached session credential, renewing it before it expires.

    Instances are produced by ``CredentialsProviderBuilder.build()`` and are
    immutable afterwards: role, session name and duration stay the same for
    every renewal, so all credentials of one provider share one audit trail.

    Issuance bookkeeping belongs to the provider. Each credential returned by
    the client is restamped with the provider clock's time at the start of the
    request and with the configured margin fraction.
    """

    def __init__(
        self,
        config: ProviderConfig,
        client: RoleAssumptionClient,
        clock: Clock = utc_now,
    ) -> None:
        self._config = config
        self._client = client
        self._clock = clock
        self._request = config.to_request()
        self._cache = CredentialCache(self._assume, clock=clock)

    @property
    def config(self) -> ProviderConfig:
        return self._config

    @property
    def renewal_count(self) -> int:
        return self._cache.renewal_count

    def get_credentials(self) -> SessionCredential:
        return self._cache.get()

    async def get_credentials_async(self) -> SessionCredential:
        return await asyncio.to_thread(self._cache.get)

    def _assume(self) -> SessionCredential:
        logger.debug(
            "Requesting session credential: role=%s, session=%s, duration=%d",
            self._request.role_arn,
            self._request.session_name,
            self._request.duration_seconds,
        )
        issued_at = self._clock()
        credential = self._client.assume(self._request)
        return replace(
            credential,
            issued_at=issued_at,
            margin_fraction=self._config.margin_fraction,
        )


class CredentialsProviderBuilder:
    """Pre-use configuration phase for ``RoleSessionCredentialsProvider``.

    Each setter validates its argument immediately and returns the builder so
    calls can be chained::

        provider = (
            CredentialsProviderBuilder(role_arn, client)
            .with_session_name("nightly-export")
            .with_session_duration_seconds(900)
            .build()
        )

    Without ``with_session_name`` the session name is generated in ``build()``
    from the clock in effect at that point.
    """

    def __init__(
        self,
        role_arn: str,
        client: RoleAssumptionClient | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._role_arn = validate_role_arn(role_arn)
        self._client = client
        self._clock = clock
        self._session_name: str | None = None
        self._duration_seconds = DEFAULT_DURATION_SECONDS
        self._margin_fraction = DEFAULT_MARGIN_FRACTION

    def with_session_name(self, session_name: str) -> "CredentialsProviderBuilder":
        if not session_name:
            raise ConfigurationError("session_name must not be empty", code="invalid_session_name")
        self._session_name = session_name
        return self

    def with_session_duration_seconds(self, duration_seconds: int) -> "CredentialsProviderBuilder":
        self._duration_seconds = validate_duration(duration_seconds)
        return self

    def with_margin_fraction(self, margin_fraction: float) -> "CredentialsProviderBuilder":
        self._margin_fraction = validate_margin_fraction(margin_fraction)
        return self

    def with_role_assumption_client(
        self, client: RoleAssumptionClient
    ) -> "CredentialsProviderBuilder":
        self._client = client
        return self

    def with_clock(self, clock: Clock) -> "CredentialsProviderBuilder":
        self._clock = clock
        return self

    def build(self) -> RoleSessionCredentialsProvider:
        if self._client is None:
            raise ConfigurationError("A role assumption client is required", code="missing_client")
        config = ProviderConfig(
            role_arn=self._role_arn,
            session_name=self._session_name or default_session_name(self._clock),
            duration_seconds=self._duration_seconds,
            margin_fraction=self._margin_fraction,
        )
        return RoleSessionCredentialsProvider(config, self._client, clock=self._clock)
