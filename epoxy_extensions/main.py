from __future__ import annotations

from datetime import timedelta

from fastapi import FastAPI, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from epoxy_extensions import __version__
from epoxy_extensions.config import AppSettings, get_settings
from epoxy_extensions.credentials.base import CredentialProviderFactory
from epoxy_extensions.credentials.datastore import create_datastore_provider_factory
from epoxy_extensions.extension.dispatch import DEFAULT_ROUTES, Dispatcher, build_operation_table
from epoxy_extensions.extension.gate import RequestGate
from epoxy_extensions.logging_setup import configure_logging
from epoxy_extensions.provisioning.bmc import BMCCredentialStore, HostResolver, resolve_host
from epoxy_extensions.provisioning.invoker import CommandRunner, ExternalInvoker, run_local_command
from epoxy_extensions.provisioning.node import NodeLifecycleManager
from epoxy_extensions.provisioning.token import TokenProvisioner
from epoxy_extensions.routes.extensions import create_extensions_router


def create_app(
    settings: AppSettings | None = None,
    *,
    command_runner: CommandRunner | None = None,
    credential_provider_factory: CredentialProviderFactory | None = None,
    host_resolver: HostResolver | None = None,
) -> FastAPI:
    app_settings = settings or get_settings()
    configure_logging(app_settings)

    app = FastAPI(title="ePoxy Extensions", version=__version__)
    app.state.settings = app_settings

    invoker = ExternalInvoker(
        bin_dir=app_settings.bin_dir,
        timeout_seconds=app_settings.command_timeout_seconds,
        command_runner=command_runner or run_local_command,
    )
    bmc_store = BMCCredentialStore(
        provider_factory=credential_provider_factory or create_datastore_provider_factory(),
        default_project=app_settings.credentials_default_project,
        namespace=app_settings.credentials_namespace,
        store_timeout_seconds=app_settings.credentials_timeout_seconds,
        resolver=host_resolver or resolve_host,
    )
    operation_table = build_operation_table(
        token_provisioner=TokenProvisioner(invoker=invoker),
        bmc_store=bmc_store,
        node_manager=NodeLifecycleManager(invoker=invoker),
        routes=DEFAULT_ROUTES,
    )
    dispatcher = Dispatcher(operation_table)
    app.state.dispatcher = dispatcher
    app.state.request_gate = RequestGate(
        freshness_window=timedelta(minutes=app_settings.freshness_window_minutes),
    )

    app.include_router(create_extensions_router(dispatcher.routes))

    @app.get("/", tags=["system"], name="root", response_class=PlainTextResponse)
    async def root() -> str:
        return "ePoxy Extensions"

    @app.get("/healthz", tags=["system"])
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/metrics", tags=["system"])
    async def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


app = create_app()
