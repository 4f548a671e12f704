"""Tests for long-lived credential sources."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from assume_role_provider.credentials import LongLivedCredentials, SessionCredential
from assume_role_provider.errors import CredentialSourceError
from assume_role_provider.sources import (
    ChainedCredentialSource,
    EnvironmentCredentialSource,
    ProviderCredentialSource,
    StaticCredentialSource,
)

STATIC = LongLivedCredentials(access_key_id="AKIASTATIC", access_key_secret="static-secret")


def test_static_source_returns_credentials() -> None:
    assert StaticCredentialSource(STATIC).get_credentials() is STATIC


class TestEnvironmentCredentialSource:
    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AWS_ACCESS_KEY_ID", "AKIAENV")
        monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "env-secret")
        monkeypatch.setenv("AWS_SESSION_TOKEN", "env-token")

        creds = EnvironmentCredentialSource().get_credentials()

        assert creds == LongLivedCredentials("AKIAENV", "env-secret", "env-token")

    def test_blank_token_is_omitted(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AWS_ACCESS_KEY_ID", "AKIAENV")
        monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "env-secret")
        monkeypatch.setenv("AWS_SESSION_TOKEN", " ")

        assert EnvironmentCredentialSource().get_credentials().security_token is None

    def test_custom_variable_names(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ALIBABA_CLOUD_ACCESS_KEY_ID", "LTAIKEY")
        monkeypatch.setenv("ALIBABA_CLOUD_ACCESS_KEY_SECRET", "alibaba-secret")
        source = EnvironmentCredentialSource(
            access_key_env="ALIBABA_CLOUD_ACCESS_KEY_ID",
            secret_env="ALIBABA_CLOUD_ACCESS_KEY_SECRET",
            token_env=None,
        )

        creds = source.get_credentials()

        assert creds.access_key_id == "LTAIKEY"
        assert creds.security_token is None

    def test_missing_variables_raise(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AWS_ACCESS_KEY_ID", "AKIAENV")
        monkeypatch.delenv("AWS_SECRET_ACCESS_KEY", raising=False)

        with pytest.raises(CredentialSourceError) as exc_info:
            EnvironmentCredentialSource().get_credentials()

        assert exc_info.value.code == "no_credentials"


class TestChainedCredentialSource:
    def test_first_available_source_wins(self) -> None:
        missing = MagicMock()
        missing.get_credentials.side_effect = CredentialSourceError("nope", code="no_credentials")
        chain = ChainedCredentialSource(missing, StaticCredentialSource(STATIC))

        assert chain.get_credentials() is STATIC
        missing.get_credentials.assert_called_once()

    def test_all_sources_failing_raises(self) -> None:
        missing = MagicMock()
        missing.get_credentials.side_effect = CredentialSourceError("nope", code="no_credentials")

        with pytest.raises(CredentialSourceError, match="No credential source"):
            ChainedCredentialSource(missing, missing).get_credentials()

    def test_other_errors_propagate(self) -> None:
        broken = MagicMock()
        broken.get_credentials.side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            ChainedCredentialSource(broken, StaticCredentialSource(STATIC)).get_credentials()

    def test_requires_a_source(self) -> None:
        with pytest.raises(ValueError):
            ChainedCredentialSource()


def test_provider_source_uses_session_credential() -> None:
    provider = MagicMock()
    provider.get_credentials.return_value = SessionCredential(
        access_key_id="STS.chained",
        access_key_secret="chained-secret",
        security_token="chained-token",
        role_arn="acs:ram::123:role/first",
        session_name="first-hop",
        issued_duration_seconds=900,
        issued_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )

    creds = ProviderCredentialSource(provider).get_credentials()

    assert creds == LongLivedCredentials("STS.chained", "chained-secret", "chained-token")
