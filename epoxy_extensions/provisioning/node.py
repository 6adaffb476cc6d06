"""Cluster node removal through kubectl."""

from __future__ import annotations

import structlog

from epoxy_extensions.provisioning.deadline import Deadline
from epoxy_extensions.provisioning.hostname import parse_host_identity
from epoxy_extensions.provisioning.invoker import ExternalInvoker

KUBECTL_PROGRAM = "kubectl"
NODE_DELETE_ARGS: tuple[str, ...] = ("delete", "node", "--")

logger = structlog.get_logger(__name__)


class NodeLifecycleManager:
    """Removes a machine's node from the cluster.

    The delete is reported as soon as kubectl returns; the node is not
    re-checked afterwards.
    """

    def __init__(self, *, invoker: ExternalInvoker) -> None:
        self._invoker = invoker

    def delete(self, hostname: str, *, deadline: Deadline) -> None:
        parse_host_identity(hostname)
        output = self._invoker.invoke(
            KUBECTL_PROGRAM,
            [*NODE_DELETE_ARGS, hostname],
            deadline=deadline,
        )
        logger.info("node_deleted", node=hostname, output=output.strip())
