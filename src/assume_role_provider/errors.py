"""Error types raised by the credentials provider."""

from __future__ import annotations


class CredentialProviderError(Exception):
    """Base class for provider failures, tagged with a short error code."""

    def __init__(self, message: str, code: str) -> None:
        super().__init__(message)
        self.code = code


class ConfigurationError(CredentialProviderError):
    """Raised when the provider is configured with invalid values."""


class RenewalError(CredentialProviderError):
    """Raised when a role assumption call fails."""


class CredentialSourceError(CredentialProviderError):
    """Raised when no long-lived credentials can be produced."""
