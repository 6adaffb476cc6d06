"""Extension request admission and dispatch."""

from epoxy_extensions.extension.dispatch import (
    DEFAULT_ROUTES,
    Dispatcher,
    ExtensionResponse,
    OperationKind,
    RouteKey,
    build_operation_table,
)
from epoxy_extensions.extension.envelope import ExtensionEnvelope, decode_envelope
from epoxy_extensions.extension.errors import (
    BadRequestError,
    ExtensionRequestError,
    MethodNotAllowedError,
    RequestTimeoutError,
)
from epoxy_extensions.extension.gate import RequestGate

__all__ = [
    "BadRequestError",
    "DEFAULT_ROUTES",
    "Dispatcher",
    "ExtensionEnvelope",
    "ExtensionRequestError",
    "ExtensionResponse",
    "MethodNotAllowedError",
    "OperationKind",
    "RequestGate",
    "RequestTimeoutError",
    "RouteKey",
    "build_operation_table",
    "decode_envelope",
]
