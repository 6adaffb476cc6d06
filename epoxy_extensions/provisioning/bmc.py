"""BMC password persistence for booting machines."""

from __future__ import annotations

import socket
from collections.abc import Callable

import structlog

from epoxy_extensions.credentials.base import (
    BMCCredential,
    CredentialProviderError,
    CredentialProviderFactory,
)
from epoxy_extensions.provisioning.deadline import Deadline
from epoxy_extensions.provisioning.errors import CredentialStoreError, DnsResolutionError
from epoxy_extensions.provisioning.hostname import derive_bmc_hostname, parse_host_identity

BMC_MODEL = "DRAC"
BMC_USERNAME = "admin"
DEFAULT_NAMESPACE = "reboot-api"

type HostResolver = Callable[[str], list[str]]

logger = structlog.get_logger(__name__)


def resolve_host(hostname: str) -> list[str]:
    addresses: list[str] = []
    for _, _, _, _, sockaddr in socket.getaddrinfo(hostname, None, type=socket.SOCK_STREAM):
        address = str(sockaddr[0])
        if address not in addresses:
            addresses.append(address)
    return addresses


class BMCCredentialStore:
    def __init__(
        self,
        *,
        provider_factory: CredentialProviderFactory,
        default_project: str,
        namespace: str = DEFAULT_NAMESPACE,
        store_timeout_seconds: float = 10.0,
        resolver: HostResolver = resolve_host,
    ) -> None:
        self._provider_factory = provider_factory
        self._default_project = default_project
        self._namespace = namespace
        self._store_timeout_seconds = store_timeout_seconds
        self._resolver = resolver

    def put(self, hostname: str, password: str, *, deadline: Deadline) -> BMCCredential:
        identity = parse_host_identity(hostname)
        bmc_hostname = derive_bmc_hostname(identity)

        deadline.remaining(operation="bmc hostname resolution")
        try:
            addresses = self._resolver(bmc_hostname)
        except OSError as exc:
            raise DnsResolutionError(
                f"could not resolve BMC hostname: {bmc_hostname}: {exc}"
            ) from exc
        if not addresses:
            raise DnsResolutionError(f"BMC hostname resolved to no addresses: {bmc_hostname}")

        credential = BMCCredential(
            address=addresses[0],
            hostname=bmc_hostname,
            model=BMC_MODEL,
            username=BMC_USERNAME,
            password=password,
        )
        project = identity.project or self._default_project
        timeout_seconds = deadline.remaining(
            operation="credential store write",
            cap=self._store_timeout_seconds,
        )
        try:
            provider = self._provider_factory(project, self._namespace)
            provider.add_credentials(bmc_hostname, credential, timeout_seconds=timeout_seconds)
        except CredentialProviderError as exc:
            raise CredentialStoreError(
                f"error while adding credentials for {bmc_hostname}: {exc}"
            ) from exc

        logger.info(
            "bmc_credentials_stored",
            bmc_hostname=bmc_hostname,
            bmc_address=credential.address,
            project=project,
            namespace=self._namespace,
        )
        return credential
