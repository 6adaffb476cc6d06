"""HTTP endpoints for configured extension operations."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable, Iterable
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Request, Response
from starlette.concurrency import run_in_threadpool

from epoxy_extensions.config import AppSettings
from epoxy_extensions.dependencies import get_app_settings, get_dispatcher, get_request_gate
from epoxy_extensions.extension.dispatch import Dispatcher, ExtensionResponse, RouteKey
from epoxy_extensions.extension.errors import ExtensionRequestError
from epoxy_extensions.extension.gate import RequestGate
from epoxy_extensions.metrics import observe_request
from epoxy_extensions.provisioning.deadline import Deadline

# Every method is routed here so that the gate, not the framework, answers 405.
EXTENSION_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

GateDep = Annotated[RequestGate, Depends(get_request_gate)]
DispatcherDep = Annotated[Dispatcher, Depends(get_dispatcher)]
SettingsDep = Annotated[AppSettings, Depends(get_app_settings)]

logger = structlog.get_logger(__name__)


def create_extensions_router(routes: Iterable[RouteKey]) -> APIRouter:
    router = APIRouter(tags=["extensions"])
    for route in routes:
        router.add_api_route(
            route.path,
            _make_endpoint(route),
            methods=EXTENSION_METHODS,
            name=f"{route.kind.value}_{route.version}",
            response_class=Response,
        )
    return router


def _make_endpoint(route: RouteKey) -> Callable[..., Awaitable[Response]]:
    async def endpoint(
        request: Request,
        gate: GateDep,
        dispatcher: DispatcherDep,
        settings: SettingsDep,
    ) -> Response:
        started = time.perf_counter()
        body = await request.body()
        result = await run_in_threadpool(
            _handle_extension_request,
            route=route,
            gate=gate,
            dispatcher=dispatcher,
            method=request.method,
            body=body,
            request_query=request.url.query,
            request_timeout_seconds=settings.request_timeout_seconds,
        )
        observe_request(
            route.kind,
            method=request.method,
            status_code=result.status_code,
            seconds=time.perf_counter() - started,
        )
        return Response(
            content=result.body,
            status_code=result.status_code,
            media_type=result.content_type,
        )

    return endpoint


def _handle_extension_request(
    *,
    route: RouteKey,
    gate: RequestGate,
    dispatcher: Dispatcher,
    method: str,
    body: bytes,
    request_query: str,
    request_timeout_seconds: float,
) -> ExtensionResponse:
    try:
        envelope = gate.admit(method, body)
        deadline = Deadline.after(request_timeout_seconds)
        return dispatcher.route(
            route.kind.value,
            route.version,
            envelope,
            deadline=deadline,
            request_query=request_query,
        )
    except ExtensionRequestError as exc:
        logger.info(
            "extension_request_rejected",
            extension=route.kind.value,
            version=route.version,
            status_code=exc.status_code,
            error_code=exc.error_code,
            detail=str(exc),
        )
        return ExtensionResponse(status_code=exc.status_code)
