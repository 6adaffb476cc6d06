"""Cluster join credential allocation through kubeadm."""

from __future__ import annotations

import json
from dataclasses import dataclass

from epoxy_extensions.provisioning.deadline import Deadline
from epoxy_extensions.provisioning.errors import MalformedOutputError
from epoxy_extensions.provisioning.hostname import parse_host_identity
from epoxy_extensions.provisioning.invoker import ExternalInvoker

KUBEADM_PROGRAM = "kubeadm"
TOKEN_CREATE_ARGS: tuple[str, ...] = (
    "token",
    "create",
    "--ttl",
    "5m",
    "--print-join-command",
)
JOIN_COMMAND_FIELD_COUNT = 7

CONTENT_TYPE_TEXT = "text/plain; charset=utf-8"
CONTENT_TYPE_JSON = "application/json; charset=utf-8"


@dataclass(frozen=True, slots=True)
class JoinCredential:
    api_address: str
    token: str
    ca_hash: str

    def __post_init__(self) -> None:
        if not (self.api_address and self.token and self.ca_hash):
            raise ValueError("join credential requires api_address, token and ca_hash")

    def as_dict(self) -> dict[str, str]:
        return {
            "api_address": self.api_address,
            "token": self.token,
            "ca_hash": self.ca_hash,
        }


def parse_join_command(output: str) -> JoinCredential:
    """Extract the join credential from ``kubeadm token create --print-join-command``.

    The output is expected to look like::

        kubeadm join <api address> --token <token> --discovery-token-ca-cert-hash <hash>

    Only the field count is checked; the values at positions 2, 4 and 6 are
    taken as-is.
    """
    fields = output.split()
    if len(fields) != JOIN_COMMAND_FIELD_COUNT:
        raise MalformedOutputError(
            f"bad join command: expected {JOIN_COMMAND_FIELD_COUNT} fields, "
            f"got {len(fields)}: {output.strip()!r}"
        )
    return JoinCredential(api_address=fields[2], token=fields[4], ca_hash=fields[6])


def render_join_credential(version: str, credential: JoinCredential) -> bytes:
    # v1 clients expect only the bare token.
    if version == "v1":
        return credential.token.encode("utf-8")
    return json.dumps(credential.as_dict(), separators=(",", ":")).encode("utf-8")


def join_credential_content_type(version: str) -> str:
    if version == "v1":
        return CONTENT_TYPE_TEXT
    return CONTENT_TYPE_JSON


class TokenProvisioner:
    def __init__(self, *, invoker: ExternalInvoker) -> None:
        self._invoker = invoker

    def create(self, hostname: str, *, deadline: Deadline) -> JoinCredential:
        """Allocate a new join token for ``hostname``; every call issues a distinct one."""
        parse_host_identity(hostname)
        args = [
            *TOKEN_CREATE_ARGS,
            "--description",
            f"Allow {hostname} to join the cluster",
        ]
        output = self._invoker.invoke(KUBEADM_PROGRAM, args, deadline=deadline)
        return parse_join_command(output)

    def render(self, version: str, credential: JoinCredential) -> bytes:
        return render_join_credential(version, credential)

    def content_type(self, version: str) -> str:
        return join_credential_content_type(version)
