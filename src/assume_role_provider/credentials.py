"""Immutable credential value types."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from assume_role_provider.utils.time import ensure_utc

DEFAULT_MARGIN_FRACTION = 0.05


def _mask(value: str) -> str:
    return f"{value[:8]}***"


@dataclass(frozen=True)
class LongLivedCredentials:
    """Stable identity used to sign role assumption calls."""

    access_key_id: str
    access_key_secret: str
    security_token: str | None = None

    def __repr__(self) -> str:
        return f"LongLivedCredentials(access_key_id={_mask(self.access_key_id)})"


@dataclass(frozen=True)
class SessionCredential:
    """Short-lived credential issued for an assumed role.

    The nominal expiry is derived from ``issued_at`` plus the requested
    duration. When the issuing side reported an authoritative ``expiration``
    the earlier of the two wins. ``margin_fraction`` of the requested duration
    is held back so renewal happens before the credential actually lapses.
    """

    access_key_id: str
    access_key_secret: str
    security_token: str
    role_arn: str
    session_name: str
    issued_duration_seconds: int
    issued_at: datetime
    expiration: datetime | None = None
    margin_fraction: float = DEFAULT_MARGIN_FRACTION

    @property
    def expires_at(self) -> datetime:
        derived = ensure_utc(self.issued_at) + timedelta(seconds=self.issued_duration_seconds)
        if self.expiration is None:
            return derived
        return min(derived, ensure_utc(self.expiration))

    @property
    def margin(self) -> timedelta:
        return timedelta(seconds=self.issued_duration_seconds * self.margin_fraction)

    @property
    def stale_at(self) -> datetime:
        return self.expires_at - self.margin

    def will_soon_expire(self, now: datetime) -> bool:
        # At exactly the threshold the credential counts as expiring.
        return ensure_utc(now) >= self.stale_at

    def __repr__(self) -> str:
        return (
            f"SessionCredential(access_key_id={_mask(self.access_key_id)}, "
            f"role_arn={self.role_arn}, session_name={self.session_name}, "
            f"expires_at={self.expires_at.isoformat()})"
        )
