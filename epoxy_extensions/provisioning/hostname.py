"""Machine hostname decomposition."""

from __future__ import annotations

import re
from dataclasses import dataclass

from epoxy_extensions.provisioning.errors import InvalidHostnameError

BMC_HOSTNAME_SUFFIX = "d"

# <site>-<machine>[.<project>].<domain>.<tld>
_HOSTNAME_PATTERN = re.compile(
    r"(?P<site>[a-z0-9]+)-(?P<machine>[a-z0-9]+)"
    r"\.(?:(?P<project>[a-z0-9][a-z0-9-]*)\.)?"
    r"(?P<domain>[a-z0-9][a-z0-9-]*\.[a-z]{2,})",
    re.IGNORECASE,
)


@dataclass(frozen=True, slots=True)
class HostIdentity:
    hostname: str
    site: str
    machine: str
    project: str
    domain: str
    machine_start: int
    machine_end: int


def parse_host_identity(hostname: str) -> HostIdentity:
    """Decompose a machine hostname; anything else raises ``InvalidHostnameError``."""
    match = _HOSTNAME_PATTERN.fullmatch(hostname.strip())
    if match is None:
        raise InvalidHostnameError(f"could not parse hostname: {hostname!r}")
    return HostIdentity(
        hostname=match.string,
        site=match.group("site"),
        machine=match.group("machine"),
        # Cloud project ids are lowercase.
        project=(match.group("project") or "").lower(),
        domain=match.group("domain"),
        machine_start=match.start("machine"),
        machine_end=match.end("machine"),
    )


def derive_bmc_hostname(identity: HostIdentity) -> str:
    """Return the BMC sibling hostname: the machine label gains a ``d`` suffix."""
    name = identity.hostname
    return (
        name[: identity.machine_start]
        + identity.machine
        + BMC_HOSTNAME_SUFFIX
        + name[identity.machine_end :]
    )
