"""Credential provider interface for BMC credential persistence."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class BMCCredential:
    address: str
    hostname: str
    model: str
    username: str
    password: str

    def __repr__(self) -> str:
        return (
            f"BMCCredential(address={self.address!r}, hostname={self.hostname!r}, "
            f"model={self.model!r}, username={self.username!r}, password='***')"
        )


class CredentialProvider(Protocol):
    def add_credentials(
        self,
        hostname: str,
        credential: BMCCredential,
        *,
        timeout_seconds: float,
    ) -> None:
        """Store ``credential`` under ``hostname``, replacing any existing entry."""


type CredentialProviderFactory = Callable[[str, str], CredentialProvider]


class CredentialProviderError(Exception):
    """Raised by providers when the backing store cannot be reached or written."""

    error_code = "credential_provider_error"
