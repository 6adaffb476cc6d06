"""Routing of admitted extension requests to provisioning operations."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import StrEnum
from functools import partial
from urllib.parse import parse_qs

import structlog

from epoxy_extensions.extension.envelope import ExtensionEnvelope
from epoxy_extensions.extension.errors import BadRequestError
from epoxy_extensions.provisioning.bmc import BMCCredentialStore
from epoxy_extensions.provisioning.deadline import Deadline
from epoxy_extensions.provisioning.errors import ProvisioningError
from epoxy_extensions.provisioning.node import NodeLifecycleManager
from epoxy_extensions.provisioning.token import TokenProvisioner

PASSWORD_QUERY_PARAM = "p"
_BAD_ESCAPE_PATTERN = re.compile(r"%(?![0-9A-Fa-f]{2})")

logger = structlog.get_logger(__name__)


class OperationKind(StrEnum):
    ALLOCATE_K8S_TOKEN = "allocate_k8s_token"
    BMC_STORE_PASSWORD = "bmc_store_password"
    NODE_DELETE = "node_delete"


_PATH_SEGMENTS: dict[OperationKind, str] = {
    OperationKind.ALLOCATE_K8S_TOKEN: "allocate_k8s_token",
    OperationKind.BMC_STORE_PASSWORD: "bmc_store_password",
    OperationKind.NODE_DELETE: "node/delete",
}


@dataclass(frozen=True, slots=True)
class RouteKey:
    kind: OperationKind
    version: str

    @property
    def path(self) -> str:
        return f"/{self.version}/{_PATH_SEGMENTS[self.kind]}"


DEFAULT_ROUTES: tuple[RouteKey, ...] = (
    RouteKey(OperationKind.ALLOCATE_K8S_TOKEN, "v1"),
    RouteKey(OperationKind.ALLOCATE_K8S_TOKEN, "v2"),
    RouteKey(OperationKind.BMC_STORE_PASSWORD, "v1"),
    RouteKey(OperationKind.NODE_DELETE, "v1"),
)


@dataclass(frozen=True, slots=True)
class ExtensionResponse:
    status_code: int
    body: bytes = b""
    content_type: str | None = None


@dataclass(frozen=True, slots=True)
class ExtensionCall:
    envelope: ExtensionEnvelope
    deadline: Deadline
    request_query: str = ""


type OperationHandler = Callable[[ExtensionCall], ExtensionResponse]
type OperationTable = dict[RouteKey, OperationHandler]


def _allocate_token(
    call: ExtensionCall,
    *,
    provisioner: TokenProvisioner,
    version: str,
) -> ExtensionResponse:
    credential = provisioner.create(call.envelope.hostname, deadline=call.deadline)
    return ExtensionResponse(
        status_code=200,
        body=provisioner.render(version, credential),
        content_type=provisioner.content_type(version),
    )


def _store_bmc_password(call: ExtensionCall, *, store: BMCCredentialStore) -> ExtensionResponse:
    password = extract_password(call.envelope.raw_query, call.request_query)
    store.put(call.envelope.hostname, password, deadline=call.deadline)
    return ExtensionResponse(status_code=200)


def _delete_node(call: ExtensionCall, *, manager: NodeLifecycleManager) -> ExtensionResponse:
    manager.delete(call.envelope.hostname, deadline=call.deadline)
    return ExtensionResponse(status_code=200)


def extract_password(raw_query: str, request_query: str = "") -> str:
    """Read the BMC password from the envelope query, then the request's own query."""
    for source in (raw_query, request_query):
        password = _query_value(source, PASSWORD_QUERY_PARAM)
        if password:
            return password
    raise BadRequestError(f"query parameter {PASSWORD_QUERY_PARAM!r} missing or empty")


def _query_value(query: str, name: str) -> str:
    if not query:
        return ""
    if ";" in query:
        raise BadRequestError("invalid semicolon separator in query")
    if _BAD_ESCAPE_PATTERN.search(query):
        raise BadRequestError("invalid percent escape in query")
    try:
        parsed = parse_qs(query, keep_blank_values=True, errors="strict")
    except ValueError as exc:
        raise BadRequestError(f"invalid query: {exc}") from exc
    values = parsed.get(name, [])
    return values[0] if values else ""


def build_operation_table(
    *,
    token_provisioner: TokenProvisioner,
    bmc_store: BMCCredentialStore,
    node_manager: NodeLifecycleManager,
    routes: Iterable[RouteKey] = DEFAULT_ROUTES,
) -> OperationTable:
    table: OperationTable = {}
    for route in routes:
        if route.kind is OperationKind.ALLOCATE_K8S_TOKEN:
            table[route] = partial(
                _allocate_token,
                provisioner=token_provisioner,
                version=route.version,
            )
        elif route.kind is OperationKind.BMC_STORE_PASSWORD:
            table[route] = partial(_store_bmc_password, store=bmc_store)
        elif route.kind is OperationKind.NODE_DELETE:
            table[route] = partial(_delete_node, manager=node_manager)
    return table


class Dispatcher:
    def __init__(self, table: OperationTable) -> None:
        self._table = dict(table)

    @property
    def routes(self) -> tuple[RouteKey, ...]:
        return tuple(self._table)

    def resolve(self, extension_name: str, version: str) -> RouteKey:
        try:
            kind = OperationKind(extension_name)
        except ValueError as exc:
            raise BadRequestError(f"unknown extension: {extension_name!r}") from exc
        route = RouteKey(kind, version)
        if route not in self._table:
            raise BadRequestError(f"extension {extension_name!r} has no {version} handler")
        return route

    def route(
        self,
        extension_name: str,
        version: str,
        envelope: ExtensionEnvelope,
        *,
        deadline: Deadline,
        request_query: str = "",
    ) -> ExtensionResponse:
        route = self.resolve(extension_name, version)
        call = ExtensionCall(envelope=envelope, deadline=deadline, request_query=request_query)
        try:
            return self._table[route](call)
        except ProvisioningError as exc:
            logger.error(
                "extension_operation_failed",
                extension=route.kind.value,
                version=route.version,
                hostname=envelope.hostname,
                error_code=exc.error_code,
                detail=str(exc),
            )
            return ExtensionResponse(status_code=500)
