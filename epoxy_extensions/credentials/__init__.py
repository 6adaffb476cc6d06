"""BMC credential providers."""

from epoxy_extensions.credentials.base import (
    BMCCredential,
    CredentialProvider,
    CredentialProviderError,
    CredentialProviderFactory,
)

__all__ = [
    "BMCCredential",
    "CredentialProvider",
    "CredentialProviderError",
    "CredentialProviderFactory",
]
