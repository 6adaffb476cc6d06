from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from epoxy_extensions.config import AppSettings
from epoxy_extensions.credentials.base import CredentialProviderError
from epoxy_extensions.main import create_app
from tests.conftest import (
    BMC_HOSTNAME,
    EnvelopeBodyFactory,
    StubCommandRunner,
    StubCredentialBackend,
    StubResolver,
)


@pytest.fixture()
def client(
    extension_settings: AppSettings,
    command_runner: StubCommandRunner,
    credential_backend: StubCredentialBackend,
    resolver: StubResolver,
) -> TestClient:
    app = create_app(
        extension_settings,
        command_runner=command_runner,
        credential_provider_factory=credential_backend,
        host_resolver=resolver,
    )
    return TestClient(app)


def test_v1_token_allocation_returns_plain_token(
    client: TestClient,
    command_runner: StubCommandRunner,
    envelope_body: EnvelopeBodyFactory,
) -> None:
    response = client.post("/v1/allocate_k8s_token", content=envelope_body())

    assert response.status_code == 200
    assert response.headers["content-type"] == "text/plain; charset=utf-8"
    assert response.text == "012345.abcdefghijklmnop"
    command, timeout_seconds = command_runner.calls[0]
    assert command[:3] == ["/opt/k8s/bin/kubeadm", "token", "create"]
    assert 0 < timeout_seconds <= 15.0


def test_v2_token_allocation_returns_json_credential(
    client: TestClient,
    envelope_body: EnvelopeBodyFactory,
) -> None:
    response = client.post("/v2/allocate_k8s_token", content=envelope_body())

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/json; charset=utf-8"
    assert response.json() == {
        "api_address": "api.example.com:6443",
        "token": "012345.abcdefghijklmnop",
        "ca_hash": "sha256:hash",
    }


def test_stale_boot_is_rejected_without_running_commands(
    client: TestClient,
    command_runner: StubCommandRunner,
    envelope_body: EnvelopeBodyFactory,
) -> None:
    response = client.post(
        "/v1/allocate_k8s_token",
        content=envelope_body(boot_age=timedelta(minutes=125)),
    )

    assert response.status_code == 408
    assert response.content == b""
    assert command_runner.calls == []


@pytest.mark.parametrize(
    "path",
    ["/v1/allocate_k8s_token", "/v2/allocate_k8s_token", "/v1/bmc_store_password", "/v1/node/delete"],
)
def test_non_post_methods_are_rejected(
    client: TestClient,
    command_runner: StubCommandRunner,
    path: str,
) -> None:
    response = client.get(path)

    assert response.status_code == 405
    assert command_runner.calls == []


@pytest.mark.parametrize("body", [b"", b"{", b"{}", b'{"v1": {"hostname": "x"}}'])
def test_undecodable_body_is_rejected(
    client: TestClient,
    command_runner: StubCommandRunner,
    body: bytes,
) -> None:
    response = client.post("/v1/allocate_k8s_token", content=body)

    assert response.status_code == 400
    assert command_runner.calls == []


def test_malformed_kubeadm_output_returns_500(
    client: TestClient,
    command_runner: StubCommandRunner,
    envelope_body: EnvelopeBodyFactory,
) -> None:
    command_runner.stdout = "kubeadm join api.example.com:6443 --token abc"

    response = client.post("/v1/allocate_k8s_token", content=envelope_body())

    assert response.status_code == 500
    assert response.content == b""


def test_bmc_password_from_envelope_query_is_stored(
    client: TestClient,
    credential_backend: StubCredentialBackend,
    resolver: StubResolver,
    envelope_body: EnvelopeBodyFactory,
) -> None:
    response = client.post(
        "/v1/bmc_store_password",
        content=envelope_body(raw_query="p=somepass&z=lol"),
    )

    assert response.status_code == 200
    assert resolver.calls == [BMC_HOSTNAME]
    assert credential_backend.factory_calls == [("mlab-sandbox", "reboot-api")]
    stored = credential_backend.entries[("mlab-sandbox", "reboot-api", BMC_HOSTNAME)]
    assert stored.address == "10.0.0.17"
    assert stored.hostname == BMC_HOSTNAME
    assert stored.model == "DRAC"
    assert stored.username == "admin"
    assert stored.password == "somepass"


def test_bmc_password_from_request_url_is_stored(
    client: TestClient,
    credential_backend: StubCredentialBackend,
    envelope_body: EnvelopeBodyFactory,
) -> None:
    response = client.post("/v1/bmc_store_password?p=urlpass", content=envelope_body())

    assert response.status_code == 200
    stored = credential_backend.entries[("mlab-sandbox", "reboot-api", BMC_HOSTNAME)]
    assert stored.password == "urlpass"


@pytest.mark.parametrize("raw_query", ["", "y=somepass", "p=some;pass"])
def test_bmc_missing_or_malformed_password_is_rejected(
    client: TestClient,
    credential_backend: StubCredentialBackend,
    resolver: StubResolver,
    envelope_body: EnvelopeBodyFactory,
    raw_query: str,
) -> None:
    response = client.post("/v1/bmc_store_password", content=envelope_body(raw_query=raw_query))

    assert response.status_code == 400
    assert resolver.calls == []
    assert credential_backend.entries == {}


def test_bmc_unparseable_hostname_returns_500(
    client: TestClient,
    credential_backend: StubCredentialBackend,
    resolver: StubResolver,
    envelope_body: EnvelopeBodyFactory,
) -> None:
    response = client.post(
        "/v1/bmc_store_password",
        content=envelope_body(hostname="localhost", raw_query="p=somepass"),
    )

    assert response.status_code == 500
    assert resolver.calls == []
    assert credential_backend.factory_calls == []


def test_bmc_store_failure_returns_500(
    client: TestClient,
    credential_backend: StubCredentialBackend,
    envelope_body: EnvelopeBodyFactory,
) -> None:
    credential_backend.write_error = CredentialProviderError("datastore write failed")

    response = client.post(
        "/v1/bmc_store_password",
        content=envelope_body(raw_query="p=somepass"),
    )

    assert response.status_code == 500


def test_node_delete_runs_kubectl(
    client: TestClient,
    command_runner: StubCommandRunner,
    envelope_body: EnvelopeBodyFactory,
) -> None:
    command_runner.stdout = 'node "mlab1-foo01.mlab-sandbox.measurement-lab.org" deleted\n'

    response = client.post("/v1/node/delete", content=envelope_body())

    assert response.status_code == 200
    assert command_runner.calls[0][0] == [
        "/opt/k8s/bin/kubectl",
        "delete",
        "node",
        "--",
        "mlab1-foo01.mlab-sandbox.measurement-lab.org",
    ]


def test_node_delete_failure_returns_500(
    client: TestClient,
    command_runner: StubCommandRunner,
    envelope_body: EnvelopeBodyFactory,
) -> None:
    command_runner.returncode = 1
    command_runner.stderr = 'Error from server (NotFound): nodes "x" not found'

    response = client.post("/v1/node/delete", content=envelope_body())

    assert response.status_code == 500


def test_unrouted_path_is_not_found(client: TestClient, envelope_body: EnvelopeBodyFactory) -> None:
    response = client.post("/v2/node/delete", content=envelope_body())

    assert response.status_code == 404


def test_token_for_unparseable_hostname_is_refused(
    client: TestClient,
    command_runner: StubCommandRunner,
    envelope_body: EnvelopeBodyFactory,
) -> None:
    response = client.post(
        "/v1/allocate_k8s_token",
        content=envelope_body(hostname="not a host"),
    )

    assert response.status_code == 500
    assert command_runner.calls == []


@pytest.mark.parametrize("hostname", ["--all", "-A"])
def test_node_delete_refuses_option_like_hostname(
    client: TestClient,
    command_runner: StubCommandRunner,
    envelope_body: EnvelopeBodyFactory,
    hostname: str,
) -> None:
    response = client.post("/v1/node/delete", content=envelope_body(hostname=hostname))

    assert response.status_code == 500
    assert response.content == b""
    assert command_runner.calls == []


def test_bmc_bad_percent_escape_is_rejected(
    client: TestClient,
    credential_backend: StubCredentialBackend,
    envelope_body: EnvelopeBodyFactory,
) -> None:
    response = client.post(
        "/v1/bmc_store_password",
        content=envelope_body(raw_query="p=%zz"),
    )

    assert response.status_code == 400
    assert credential_backend.entries == {}
