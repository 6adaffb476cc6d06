"""Common FastAPI dependencies."""

from __future__ import annotations

from typing import cast

from fastapi import Request

from epoxy_extensions.config import AppSettings
from epoxy_extensions.extension.dispatch import Dispatcher
from epoxy_extensions.extension.gate import RequestGate


def get_app_settings(request: Request) -> AppSettings:
    return cast(AppSettings, request.app.state.settings)


def get_request_gate(request: Request) -> RequestGate:
    return cast(RequestGate, request.app.state.request_gate)


def get_dispatcher(request: Request) -> Dispatcher:
    return cast(Dispatcher, request.app.state.dispatcher)
