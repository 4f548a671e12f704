"""Tests for SessionCredential expiry bookkeeping."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from assume_role_provider.credentials import LongLivedCredentials, SessionCredential

ISSUED_AT = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def _session(
    duration: int = 900,
    expiration: datetime | None = None,
    margin_fraction: float = 0.05,
    issued_at: datetime = ISSUED_AT,
) -> SessionCredential:
    return SessionCredential(
        access_key_id="STS.AKIDEXAMPLE",
        access_key_secret="secret",
        security_token="token",
        role_arn="acs:ram::123:role/test",
        session_name="session",
        issued_duration_seconds=duration,
        issued_at=issued_at,
        expiration=expiration,
        margin_fraction=margin_fraction,
    )


def test_expiry_derived_from_issue_time_and_duration() -> None:
    creds = _session(duration=900)
    assert creds.expires_at == ISSUED_AT + timedelta(seconds=900)
    assert creds.stale_at == ISSUED_AT + timedelta(seconds=855)


def test_margin_scales_with_duration() -> None:
    assert _session(duration=900).margin == timedelta(seconds=45)
    assert _session(duration=3600).margin == timedelta(seconds=180)


@pytest.mark.parametrize(
    ("elapsed", "expected"),
    [(0, False), (854, False), (855, True), (856, True), (2000, True)],
)
def test_will_soon_expire_boundary(elapsed: int, expected: bool) -> None:
    creds = _session(duration=900)
    assert creds.will_soon_expire(ISSUED_AT + timedelta(seconds=elapsed)) is expected


def test_authoritative_expiration_wins_when_earlier() -> None:
    remote = ISSUED_AT + timedelta(seconds=600)
    creds = _session(duration=900, expiration=remote)

    assert creds.expires_at == remote
    assert creds.will_soon_expire(ISSUED_AT + timedelta(seconds=560))
    assert not creds.will_soon_expire(ISSUED_AT + timedelta(seconds=550))


def test_later_authoritative_expiration_is_ignored() -> None:
    creds = _session(duration=900, expiration=ISSUED_AT + timedelta(hours=2))
    assert creds.expires_at == ISSUED_AT + timedelta(seconds=900)


def test_naive_datetimes_are_treated_as_utc() -> None:
    creds = _session(duration=900, issued_at=ISSUED_AT.replace(tzinfo=None))
    assert creds.will_soon_expire((ISSUED_AT + timedelta(seconds=900)).replace(tzinfo=None))
    assert not creds.will_soon_expire(ISSUED_AT + timedelta(seconds=10))


def test_session_credential_is_immutable() -> None:
    creds = _session()
    with pytest.raises(AttributeError):
        creds.access_key_id = "other"  # type: ignore[misc]


def test_repr_masks_secret_material() -> None:
    creds = _session()
    text = repr(creds)
    assert "STS.AKID***" in text
    assert "secret" not in text
    assert "token" not in text

    long_lived = LongLivedCredentials(access_key_id="AKIAEXAMPLEKEY", access_key_secret="s3cr3t")
    assert "s3cr3t" not in repr(long_lived)
    assert "AKIAEXAM***" in repr(long_lived)
