"""Application configuration loading."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from functools import lru_cache
from pathlib import Path
from typing import Any, cast

import yaml

RUNTIME_CONFIG_PATH_ENV = "EPOXY_EXTENSIONS_RUNTIME_CONFIG_PATH"
BIN_DIR_ENV = "EPOXY_EXTENSIONS_BIN_DIR"
LISTEN_ADDRESS_ENV = "EPOXY_EXTENSIONS_LISTEN_ADDRESS"


@dataclass(frozen=True, slots=True)
class AppSettings:
    app_env: str = "development"
    listen_host: str = "0.0.0.0"
    listen_port: int = 8800
    bin_dir: str = "/usr/bin"
    command_timeout_seconds: float = 30.0
    freshness_window_minutes: int = 120
    request_timeout_seconds: float = 60.0
    credentials_default_project: str = "mlab-sandbox"
    credentials_namespace: str = "reboot-api"
    credentials_timeout_seconds: float = 10.0
    log_level: str = "info"
    log_json: bool = True
    runtime_config_path: str = "runtime-config.yaml"

    @property
    def listen_address(self) -> str:
        return f"{self.listen_host}:{self.listen_port}"

    @classmethod
    def from_yaml(cls, runtime_config_path: str = "runtime-config.yaml") -> AppSettings:
        normalized_path = runtime_config_path.strip() or "runtime-config.yaml"
        config = _load_runtime_config(normalized_path)

        app_cfg = cast(dict[str, Any], config.get("app", {}))
        server_cfg = cast(dict[str, Any], config.get("server", {}))
        commands_cfg = cast(dict[str, Any], config.get("commands", {}))
        gate_cfg = cast(dict[str, Any], config.get("gate", {}))
        credentials_cfg = cast(dict[str, Any], config.get("credentials", {}))
        logging_cfg = cast(dict[str, Any], config.get("logging", {}))

        return cls(
            app_env=str(app_cfg.get("env", "development")).lower(),
            listen_host=str(server_cfg.get("listen_host", "0.0.0.0")),
            listen_port=_validate_port(int(server_cfg.get("listen_port", 8800))),
            bin_dir=str(commands_cfg.get("bin_dir", "/usr/bin")),
            command_timeout_seconds=max(
                1.0,
                float(commands_cfg.get("timeout_seconds", 30.0)),
            ),
            freshness_window_minutes=max(
                1,
                int(gate_cfg.get("freshness_window_minutes", 120)),
            ),
            request_timeout_seconds=max(
                1.0,
                float(gate_cfg.get("request_timeout_seconds", 60.0)),
            ),
            credentials_default_project=str(
                credentials_cfg.get("default_project", "mlab-sandbox")
            ),
            credentials_namespace=str(credentials_cfg.get("namespace", "reboot-api")),
            credentials_timeout_seconds=max(
                1.0,
                float(credentials_cfg.get("timeout_seconds", 10.0)),
            ),
            log_level=str(logging_cfg.get("level", "info")).lower(),
            log_json=bool(logging_cfg.get("json", True)),
            runtime_config_path=normalized_path,
        )

    @classmethod
    def from_env(cls) -> AppSettings:
        runtime_config_path = os.environ.get(RUNTIME_CONFIG_PATH_ENV, "runtime-config.yaml")
        settings = cls.from_yaml(runtime_config_path)
        return apply_overrides(
            settings,
            bin_dir=os.environ.get(BIN_DIR_ENV),
            listen_address=os.environ.get(LISTEN_ADDRESS_ENV),
        )


def apply_overrides(
    settings: AppSettings,
    *,
    bin_dir: str | None = None,
    listen_address: str | None = None,
) -> AppSettings:
    """Return settings with command-line or environment overrides applied."""
    updated = settings
    if bin_dir is not None and bin_dir.strip():
        updated = replace(updated, bin_dir=bin_dir.strip())
    if listen_address is not None and listen_address.strip():
        host, port = parse_listen_address(listen_address)
        updated = replace(updated, listen_host=host, listen_port=port)
    return updated


def parse_listen_address(listen_address: str) -> tuple[str, int]:
    """Split ``host:port`` or ``:port`` into its parts."""
    host, sep, raw_port = listen_address.strip().rpartition(":")
    if not sep:
        raise ValueError(f"listen address must be host:port or :port (received {listen_address!r})")
    try:
        port = int(raw_port)
    except ValueError as exc:
        raise ValueError(f"invalid listen port in {listen_address!r}") from exc
    return host.strip("[]") or "0.0.0.0", _validate_port(port)


def _validate_port(port: int) -> int:
    if port < 1 or port > 65535:
        raise ValueError(f"listen port must be between 1 and 65535 (received {port})")
    return port


def _load_runtime_config(runtime_config_path: str) -> dict[str, Any]:
    path = Path(runtime_config_path)
    if not path.exists() or not path.is_file():
        return {}

    parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    if isinstance(parsed, dict):
        return parsed
    return {}


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return AppSettings.from_env()
