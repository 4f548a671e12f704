"""Cached, self-renewing credentials for an assumed role."""

from assume_role_provider.cache import CredentialCache
from assume_role_provider.credentials import LongLivedCredentials, SessionCredential
from assume_role_provider.errors import (
    ConfigurationError,
    CredentialProviderError,
    CredentialSourceError,
    RenewalError,
)
from assume_role_provider.provider import (
    CredentialsProviderBuilder,
    ProviderConfig,
    RoleSessionCredentialsProvider,
    default_session_name,
)
from assume_role_provider.sources import (
    ChainedCredentialSource,
    CredentialSource,
    EnvironmentCredentialSource,
    ProviderCredentialSource,
    StaticCredentialSource,
)
from assume_role_provider.sts_client import (
    AssumeRoleRequest,
    RoleAssumptionClient,
    STSRoleAssumptionClient,
)

__all__ = [
    "AssumeRoleRequest",
    "ChainedCredentialSource",
    "ConfigurationError",
    "CredentialCache",
    "CredentialProviderError",
    "CredentialSource",
    "CredentialSourceError",
    "CredentialsProviderBuilder",
    "EnvironmentCredentialSource",
    "LongLivedCredentials",
    "ProviderConfig",
    "ProviderCredentialSource",
    "RenewalError",
    "RoleAssumptionClient",
    "RoleSessionCredentialsProvider",
    "STSRoleAssumptionClient",
    "SessionCredential",
    "StaticCredentialSource",
    "default_session_name",
]
