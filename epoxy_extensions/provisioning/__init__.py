"""Provisioning operations invoked by extension requests."""

from epoxy_extensions.provisioning.bmc import BMCCredentialStore
from epoxy_extensions.provisioning.deadline import Deadline
from epoxy_extensions.provisioning.errors import (
    CommandFailedError,
    CredentialStoreError,
    DnsResolutionError,
    InvalidHostnameError,
    MalformedOutputError,
    ProvisioningError,
    ProvisioningTimeoutError,
)
from epoxy_extensions.provisioning.hostname import (
    HostIdentity,
    derive_bmc_hostname,
    parse_host_identity,
)
from epoxy_extensions.provisioning.invoker import ExternalInvoker
from epoxy_extensions.provisioning.node import NodeLifecycleManager
from epoxy_extensions.provisioning.token import (
    JoinCredential,
    TokenProvisioner,
    parse_join_command,
    render_join_credential,
)

__all__ = [
    "BMCCredentialStore",
    "CommandFailedError",
    "CredentialStoreError",
    "Deadline",
    "DnsResolutionError",
    "ExternalInvoker",
    "HostIdentity",
    "InvalidHostnameError",
    "JoinCredential",
    "MalformedOutputError",
    "NodeLifecycleManager",
    "ProvisioningError",
    "ProvisioningTimeoutError",
    "TokenProvisioner",
    "derive_bmc_hostname",
    "parse_host_identity",
    "parse_join_command",
    "render_join_credential",
]
