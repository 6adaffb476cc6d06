"""Provisioning error taxonomy."""

from __future__ import annotations


class ProvisioningError(Exception):
    """Base exception for provisioning operation failures."""

    error_code = "provisioning_error"


class CommandFailedError(ProvisioningError):
    error_code = "command_failure"

    def __init__(
        self,
        message: str,
        *,
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class MalformedOutputError(ProvisioningError):
    error_code = "malformed_output"


class InvalidHostnameError(ProvisioningError):
    error_code = "invalid_hostname"


class DnsResolutionError(ProvisioningError):
    error_code = "dns_failure"


class CredentialStoreError(ProvisioningError):
    error_code = "store_failure"


class ProvisioningTimeoutError(ProvisioningError):
    error_code = "provisioning_timeout"
