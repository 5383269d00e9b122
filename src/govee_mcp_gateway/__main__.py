"""Entrypoint for the Govee MCP gateway."""

from __future__ import annotations

import asyncio
from typing import Iterable, Optional

from .config import Config, load_config
from .gateway import build_gateway
from .logging import configure_logging, get_logger
from .metrics import start_metrics_server
from .server import create_server


async def _run_async(config: Config) -> None:
    logger = get_logger("govee")
    gateway = build_gateway(config)
    server = create_server(gateway)
    if config.metrics_port is not None:
        start_metrics_server(config.metrics_port)
        logger.info("Serving metrics", extra={"metrics_port": config.metrics_port})
    logger.info(
        "Govee MCP gateway starting (stdio)",
        extra={
            "dry_run": config.dry_run,
            "lan_enabled": config.lan_enabled,
            "allowlisted_devices": len(gateway.allowlist.device_ids),
        },
    )
    try:
        await server.run_async(transport="stdio")
    finally:
        await gateway.aclose()
        logger.info("Govee MCP gateway stopped")


def run(cli_args: Optional[Iterable[str]] = None) -> None:
    """CLI entrypoint used by the console script."""

    config = load_config(cli_args)
    configure_logging(config)
    logger = get_logger("govee")
    logger.info("Loaded configuration", extra={"config": config.logging_dict()})
    try:
        asyncio.run(_run_async(config))
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")


if __name__ == "__main__":
    run()
