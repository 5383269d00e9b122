"""Configuration loading for the Govee MCP gateway."""

from __future__ import annotations

import argparse
import os
import sys
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, MutableMapping, Optional

CONFIG_ENV_PREFIX = "GOVEE_"
CONFIG_VERSION = 1
MIN_SUPPORTED_CONFIG_VERSION = 1

DEFAULT_API_BASE = "https://openapi.api.govee.com/router/api/v1"


@dataclass(frozen=True)
class Config:
    """Application configuration."""

    api_base: str = DEFAULT_API_BASE
    api_key: Optional[str] = None
    allowlist: str = ""
    dry_run: bool = False
    rate_rps: float = 5.0
    batch_window_ms: int = 120
    batch_item_delay_ms: int = 60
    lan_enabled: bool = False
    request_timeout: float = 10.0
    metrics_port: Optional[int] = None
    log_format: str = "plain"
    log_level: str = "INFO"
    config_version: int = CONFIG_VERSION

    def __post_init__(self) -> None:
        _validate_config(self)

    @property
    def batch_window(self) -> float:
        return self.batch_window_ms / 1000.0

    @property
    def batch_item_delay(self) -> float:
        return self.batch_item_delay_ms / 1000.0

    def logging_dict(self) -> Dict[str, Any]:
        """Return a sanitized mapping suitable for structured logging."""

        return {
            "config_version": self.config_version,
            "api_base": self.api_base,
            "api_key": "***REDACTED***" if self.api_key else None,
            "allowlist": self.allowlist,
            "dry_run": self.dry_run,
            "rate_rps": self.rate_rps,
            "batch_window_ms": self.batch_window_ms,
            "batch_item_delay_ms": self.batch_item_delay_ms,
            "lan_enabled": self.lan_enabled,
            "request_timeout": self.request_timeout,
            "metrics_port": self.metrics_port,
            "log_format": self.log_format,
            "log_level": self.log_level,
        }

    @classmethod
    def from_sources(cls, cli_args: Optional[Iterable[str]] = None) -> "Config":
        """Load configuration from defaults, file, env, and CLI (in that order)."""

        args = _parse_cli(cli_args)
        file_config = _load_file_config(
            args.config
            or _coerce_path(os.environ.get(f"{CONFIG_ENV_PREFIX}CONFIG"))
            or None
        )
        env_config = _load_env_config(CONFIG_ENV_PREFIX)
        cli_config = _cli_overrides(args)

        config = cls()
        config = _apply_mapping(config, file_config)
        config = _apply_mapping(config, env_config)
        config = _apply_mapping(config, cli_config)
        return config


def _validate_config(config: Config) -> None:
    _validate_version(config.config_version)
    if not config.api_base.startswith(("http://", "https://")):
        raise ValueError(f"api_base must be an http(s) URL; got {config.api_base}.")
    if config.rate_rps <= 0:
        raise ValueError(f"rate_rps must be greater than 0; got {config.rate_rps}.")
    _validate_range("rate_rps", config.rate_rps, 0.0, 10000.0)
    _validate_range("batch_window_ms", config.batch_window_ms, 0, 60000)
    _validate_range("batch_item_delay_ms", config.batch_item_delay_ms, 0, 60000)
    _validate_range("request_timeout", config.request_timeout, 0.1, 300.0)
    if config.metrics_port is not None:
        _validate_range("metrics_port", config.metrics_port, 1, 65535)
    if config.log_format not in {"plain", "json"}:
        raise ValueError(f"log_format must be 'plain' or 'json'; got {config.log_format}.")
    _validate_log_level_value(config.log_level, "log_level")


def _validate_version(version: int) -> None:
    if version < MIN_SUPPORTED_CONFIG_VERSION:
        raise ValueError(
            f"Config version {version} is too old; minimum supported is {MIN_SUPPORTED_CONFIG_VERSION}."
        )
    if version > CONFIG_VERSION:
        raise ValueError(
            f"Config version {version} is newer than supported ({CONFIG_VERSION}); please upgrade the gateway."
        )


def _validate_range(name: str, value: float, minimum: float, maximum: float) -> None:
    if value < minimum or value > maximum:
        raise ValueError(f"{name} must be between {minimum} and {maximum}; got {value}.")


def _validate_log_level_value(value: Optional[str], name: str) -> None:
    if value is None:
        return
    allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if value.upper() not in allowed:
        raise ValueError(f"{name} must be one of {sorted(allowed)}; got {value}.")


def _parse_cli(cli_args: Optional[Iterable[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="govee-mcp",
        description="Run the Govee MCP gateway over stdio.",
    )
    parser.add_argument("--config", type=Path, help="Path to TOML config file.")
    parser.add_argument("--api-base", type=str, help="Base URL of the Govee cloud API.")
    parser.add_argument("--api-key", type=str, help="Govee developer API key.")
    parser.add_argument(
        "--allowlist",
        type=str,
        help="Comma or whitespace separated device ids; empty allows every device.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Accept control commands without sending them to Govee.",
    )
    parser.add_argument(
        "--rate-rps",
        type=float,
        help="Gateway operations admitted per second.",
    )
    parser.add_argument(
        "--batch-window-ms",
        type=int,
        help="Coalescing window applied per device before a batch is replayed.",
    )
    parser.add_argument(
        "--batch-item-delay-ms",
        type=int,
        help="Delay between sequential cloud writes inside one backend batch.",
    )
    parser.add_argument(
        "--lan-enabled",
        action="store_true",
        default=None,
        help="Route every device to the LAN backend.",
    )
    parser.add_argument(
        "--request-timeout",
        type=float,
        help="Seconds to wait for Govee API responses.",
    )
    parser.add_argument(
        "--metrics-port",
        type=int,
        help="Serve Prometheus metrics over HTTP on this port.",
    )
    parser.add_argument(
        "--log-format",
        choices=["plain", "json"],
        help="Structured logging format.",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log verbosity level.",
    )
    parser.add_argument(
        "--config-version",
        type=int,
        help="Version of the configuration schema being supplied.",
    )
    return parser.parse_args(args=cli_args)


def _load_file_config(path: Optional[Path]) -> Dict[str, Any]:
    if path is None:
        return {}
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("rb") as f:
        parsed = tomllib.load(f)
    if not isinstance(parsed, Mapping):
        raise ValueError("Configuration file must contain a TOML table.")
    return {k.replace("-", "_"): v for k, v in parsed.items()}


def _load_env_config(prefix: str) -> Dict[str, Any]:
    mapping: Dict[str, Any] = {}
    for field in Config.__dataclass_fields__:
        env_key = f"{prefix}{field}".upper()
        if env_key in os.environ:
            mapping[field] = os.environ[env_key]
    return mapping


def _cli_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    return {k: v for k, v in vars(args).items() if k != "config" and v is not None}


def _apply_mapping(config: Config, overrides: Mapping[str, Any]) -> Config:
    data: MutableMapping[str, Any] = {}
    for key, value in overrides.items():
        if value is None or key not in Config.__dataclass_fields__:
            continue
        if key in {"batch_window_ms", "batch_item_delay_ms", "config_version"}:
            data[key] = int(value)
        elif key in {"rate_rps", "request_timeout"}:
            data[key] = float(value)
        elif key in {"dry_run", "lan_enabled"}:
            data[key] = _coerce_bool(value)
        elif key == "metrics_port":
            data[key] = int(value) if value != "" else None
        elif key == "log_level":
            data[key] = str(value).upper()
        elif key == "log_format":
            data[key] = str(value).lower()
        elif key == "allowlist":
            data[key] = _coerce_allowlist(value)
        elif key == "api_base":
            data[key] = str(value).rstrip("/")
        else:
            data[key] = value
    return replace(config, **data)


def _coerce_path(value: Any) -> Optional[Path]:
    if value is None or value == "":
        return None
    return value if isinstance(value, Path) else Path(str(value)).expanduser()


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _coerce_allowlist(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, Iterable):
        return ",".join(str(item) for item in value)
    raise ValueError("allowlist must be a string or a list of device ids")


def load_config(cli_args: Optional[Iterable[str]] = None) -> Config:
    """Public helper used by the entrypoint."""

    try:
        return Config.from_sources(cli_args)
    except Exception as exc:  # pragma: no cover - defensive logging path
        print(f"Failed to load configuration: {exc}", file=sys.stderr)
        raise
