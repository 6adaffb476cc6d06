from __future__ import annotations

import json
import socket
import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest

from epoxy_extensions.config import AppSettings
from epoxy_extensions.credentials.base import BMCCredential

JOIN_COMMAND_OUTPUT = (
    "kubeadm join api.example.com:6443 --token 012345.abcdefghijklmnop "
    "--discovery-token-ca-cert-hash sha256:hash\n"
)
MACHINE_HOSTNAME = "mlab1-foo01.mlab-sandbox.measurement-lab.org"
BMC_HOSTNAME = "mlab1-foo01d.mlab-sandbox.measurement-lab.org"

EnvelopeBodyFactory = Callable[..., bytes]


@dataclass(slots=True)
class StubCommandRunner:
    stdout: str = JOIN_COMMAND_OUTPUT
    returncode: int = 0
    stderr: str = ""
    error: Exception | None = None
    calls: list[tuple[list[str], float]] = field(default_factory=list)

    def __call__(
        self,
        command: Sequence[str],
        timeout_seconds: float,
    ) -> subprocess.CompletedProcess[str]:
        self.calls.append((list(command), timeout_seconds))
        if self.error is not None:
            raise self.error
        return subprocess.CompletedProcess(
            args=list(command),
            returncode=self.returncode,
            stdout=self.stdout,
            stderr=self.stderr,
        )


@dataclass(slots=True)
class StubCredentialProvider:
    project: str
    namespace: str
    backend: StubCredentialBackend

    def add_credentials(
        self,
        hostname: str,
        credential: BMCCredential,
        *,
        timeout_seconds: float,
    ) -> None:
        self.backend.write_calls.append((self.project, self.namespace, hostname, timeout_seconds))
        if self.backend.write_error is not None:
            raise self.backend.write_error
        self.backend.entries[(self.project, self.namespace, hostname)] = credential


@dataclass(slots=True)
class StubCredentialBackend:
    entries: dict[tuple[str, str, str], BMCCredential] = field(default_factory=dict)
    factory_calls: list[tuple[str, str]] = field(default_factory=list)
    write_calls: list[tuple[str, str, str, float]] = field(default_factory=list)
    factory_error: Exception | None = None
    write_error: Exception | None = None

    def __call__(self, project: str, namespace: str) -> StubCredentialProvider:
        self.factory_calls.append((project, namespace))
        if self.factory_error is not None:
            raise self.factory_error
        return StubCredentialProvider(project=project, namespace=namespace, backend=self)


@dataclass(slots=True)
class StubResolver:
    addresses: dict[str, list[str]] = field(
        default_factory=lambda: {BMC_HOSTNAME: ["10.0.0.17", "2001:db8::17"]}
    )
    calls: list[str] = field(default_factory=list)

    def __call__(self, hostname: str) -> list[str]:
        self.calls.append(hostname)
        if hostname not in self.addresses:
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")
        return list(self.addresses[hostname])


@pytest.fixture()
def command_runner() -> StubCommandRunner:
    return StubCommandRunner()


@pytest.fixture()
def credential_backend() -> StubCredentialBackend:
    return StubCredentialBackend()


@pytest.fixture()
def resolver() -> StubResolver:
    return StubResolver()


@pytest.fixture()
def extension_settings() -> AppSettings:
    return AppSettings(
        app_env="test",
        bin_dir="/opt/k8s/bin",
        command_timeout_seconds=15.0,
        freshness_window_minutes=120,
        request_timeout_seconds=60.0,
        credentials_default_project="mlab-sandbox",
        credentials_namespace="reboot-api",
        credentials_timeout_seconds=5.0,
        log_level="debug",
        log_json=True,
    )


@pytest.fixture()
def envelope_body() -> EnvelopeBodyFactory:
    def _build(
        *,
        hostname: str = MACHINE_HOSTNAME,
        boot_age: timedelta = timedelta(minutes=5),
        raw_query: str = "",
    ) -> bytes:
        last_boot = datetime.now(UTC) - boot_age
        return json.dumps(
            {
                "v1": {
                    "hostname": hostname,
                    "ipv4_address": "192.168.1.1",
                    "ipv6_address": "",
                    "last_boot": last_boot.isoformat().replace("+00:00", "Z"),
                    "rawquery": raw_query,
                }
            }
        ).encode("utf-8")

    return _build
