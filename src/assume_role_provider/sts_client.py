"""STS AssumeRole client.

The cache never talks to STS directly. It depends on the single-method
``RoleAssumptionClient`` protocol; ``STSRoleAssumptionClient`` is the
botocore-backed implementation signed with long-lived credentials.
"""

from __future__ import annotations

import hashlib
import logging
import re
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

import botocore.session
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from assume_role_provider.credentials import LongLivedCredentials, SessionCredential
from assume_role_provider.errors import RenewalError
from assume_role_provider.sources import CredentialSource, StaticCredentialSource
from assume_role_provider.utils.time import ensure_utc, utc_now

logger = logging.getLogger(__name__)

DEFAULT_STS_REGION = "us-east-1"

_CODE_MAP = {
    "MalformedPolicyDocument": "policy_error",
    "PackedPolicyTooLarge": "policy_too_large",
    "RegionDisabledException": "region_disabled",
    "ExpiredToken": "token_expired",
    "ExpiredTokenException": "token_expired",
    "AccessDenied": "access_denied",
    "InvalidClientTokenId": "invalid_credentials",
    "SignatureDoesNotMatch": "invalid_credentials",
    "Throttling": "throttled",
}


@dataclass(frozen=True)
class AssumeRoleRequest:
    role_arn: str
    session_name: str
    duration_seconds: int


class RoleAssumptionClient(Protocol):
    def assume(self, request: AssumeRoleRequest) -> SessionCredential: ...


class STSRoleAssumptionClient:
    """Thread-safe STS client for AssumeRole signed with long-lived credentials."""

    def __init__(
        self,
        source: CredentialSource | None = None,
        region: str = DEFAULT_STS_REGION,
        endpoint_url: str | None = None,
        client: Any = None,
    ) -> None:
        if source is None and client is None:
            raise ValueError("Either a credential source or a botocore client is required")
        self._source = source
        self._region = region
        self._endpoint_url = endpoint_url
        self._client: Any = client
        self._client_credentials: LongLivedCredentials | None = None
        self._lock = threading.Lock()

    @classmethod
    def from_credentials(
        cls, credentials: LongLivedCredentials, **kwargs: Any
    ) -> "STSRoleAssumptionClient":
        return cls(source=StaticCredentialSource(credentials), **kwargs)

    @classmethod
    def from_source(cls, source: CredentialSource, **kwargs: Any) -> "STSRoleAssumptionClient":
        return cls(source=source, **kwargs)

    @classmethod
    def from_botocore_client(cls, client: Any, **kwargs: Any) -> "STSRoleAssumptionClient":
        return cls(client=client, **kwargs)

    def _get_client(self) -> Any:
        if self._source is None:
            return self._client

        credentials = self._source.get_credentials()
        if self._client is not None and self._client_credentials == credentials:
            return self._client

        with self._lock:
            if self._client is not None and self._client_credentials == credentials:
                return self._client

            session = botocore.session.get_session()
            self._client = session.create_client(
                "sts",
                region_name=self._region,
                endpoint_url=self._endpoint_url,
                aws_access_key_id=credentials.access_key_id,
                aws_secret_access_key=credentials.access_key_secret,
                aws_session_token=credentials.security_token,
                config=Config(
                    connect_timeout=5,
                    read_timeout=15,
                    retries={"max_attempts": 2},
                ),
            )
            self._client_credentials = credentials
            logger.info("STS client initialized (region=%s)", self._region)
            return self._client

    def assume(self, request: AssumeRoleRequest) -> SessionCredential:
        """
        Assume the requested role.

        Args:
            request: Role ARN, session name and requested duration

        Returns:
            SessionCredential stamped with the local issue time and, when
            present, the expiration reported by STS. Providers restamp the
            issue time and staleness margin with their own settings.

        Raises:
            RenewalError: If the STS call fails or returns no credentials
        """
        client = self._get_client()
        safe_session_name = sanitize_session_name(request.session_name)

        params: dict[str, Any] = {
            "RoleArn": request.role_arn,
            "RoleSessionName": safe_session_name,
            "DurationSeconds": request.duration_seconds,
        }

        issued_at = utc_now()
        try:
            response = client.assume_role(**params)
        except ClientError as exc:
            error_code = exc.response.get("Error", {}).get("Code", "Unknown")
            error_message = exc.response.get("Error", {}).get("Message", str(exc))
            logger.warning(
                "STS failed: role=%s, session=%s, error=%s: %s",
                request.role_arn,
                safe_session_name,
                error_code,
                error_message,
            )
            raise RenewalError(
                error_message, code=_CODE_MAP.get(error_code, "sts_error")
            ) from exc
        except BotoCoreError as exc:
            logger.warning("STS request failed: role=%s, error=%s", request.role_arn, exc)
            raise RenewalError(str(exc), code="network_error") from exc

        creds = response.get("Credentials")
        if not creds:
            raise RenewalError("AssumeRole response has no Credentials", code="malformed_response")

        try:
            credential = SessionCredential(
                access_key_id=creds["AccessKeyId"],
                access_key_secret=creds["SecretAccessKey"],
                security_token=creds["SessionToken"],
                role_arn=request.role_arn,
                session_name=request.session_name,
                issued_duration_seconds=request.duration_seconds,
                issued_at=issued_at,
                expiration=_parse_expiration(creds.get("Expiration")),
            )
        except KeyError as exc:
            raise RenewalError(
                f"AssumeRole response is missing {exc.args[0]}", code="malformed_response"
            ) from exc

        logger.info("Assumed role: %s, session=%s", request.role_arn, safe_session_name)
        return credential


def _parse_expiration(value: Any) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    try:
        return ensure_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))
    except ValueError:
        logger.warning("Ignoring unparseable expiration: %r", value)
        return None


def sanitize_session_name(name: str) -> str:
    """Sanitize for STS (2-64 chars, alphanumeric/=,.@-)."""
    safe = re.sub(r"[^a-zA-Z0-9=,.@-]", "-", name)
    safe = re.sub(r"-+", "-", safe).strip("-")
    if len(safe) > 64:
        suffix = hashlib.sha256(name.encode()).hexdigest()[:8]
        safe = safe[:55] + "-" + suffix
    return safe if len(safe) >= 2 else "role-" + safe
