"""MCP tool surface over the command gateway."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Literal

from fastmcp import FastMCP
from pydantic import BaseModel, Field

from .gateway import CommandGateway
from .logging import get_logger
from .metrics import latest_metrics
from .models import OperationResult

SERVER_NAME = "govee-mcp"


class CommandSpec(BaseModel):
    """One abstract command; ``value`` shape depends on ``name``."""

    name: Literal["turn", "brightness", "color", "colorTem", "scene"]
    value: Any = Field(
        description=(
            "turn: 'on'|'off'; brightness: 0-100; color: {r,g,b} each 0-255; "
            "colorTem: Kelvin 1000-10000; scene: scene name"
        )
    )


class BatchItemSpec(BaseModel):
    deviceId: str = Field(description="Govee deviceId / MAC-like id")
    model: str = Field(description="Govee model e.g. H6104")
    cmd: CommandSpec


def render_result(result: OperationResult) -> str:
    """Serialize a gateway result for the agent as JSON text."""

    return json.dumps(result.as_dict(), indent=2, ensure_ascii=False)


def create_server(gateway: CommandGateway) -> FastMCP:
    """Register the Govee tools against ``gateway``."""

    mcp = FastMCP(SERVER_NAME)
    logger = get_logger("govee.server")

    @mcp.tool()
    async def govee_list_devices() -> str:
        """List devices bound to your Govee account."""
        return render_result(await gateway.list_devices())

    @mcp.tool()
    async def govee_get_state(deviceId: str, model: str) -> str:
        """Get current power/brightness/color/temp/scene."""
        return render_result(await gateway.get_state(deviceId, model))

    @mcp.tool()
    async def govee_set_power(deviceId: str, model: str, on: bool) -> str:
        """Turn a device on/off."""
        return render_result(await gateway.set_power(deviceId, model, on))

    @mcp.tool()
    async def govee_set_brightness(deviceId: str, model: str, percent: int) -> str:
        """Set brightness (0-100)."""
        return render_result(await gateway.set_brightness(deviceId, model, percent))

    @mcp.tool()
    async def govee_set_color(deviceId: str, model: str, r: int, g: int, b: int) -> str:
        """Set RGB color (each channel 0-255)."""
        return render_result(await gateway.set_color(deviceId, model, r, g, b))

    @mcp.tool()
    async def govee_set_color_temp(deviceId: str, model: str, kelvin: int) -> str:
        """Set color temperature in Kelvin (1000-10000, typically 2000-9000)."""
        return render_result(await gateway.set_color_temp(deviceId, model, kelvin))

    @mcp.tool()
    async def govee_set_scene(deviceId: str, model: str, scene: str) -> str:
        """Set a scene by id/name (varies by device)."""
        return render_result(await gateway.set_scene(deviceId, model, scene))

    @mcp.tool()
    async def govee_batch(items: List[BatchItemSpec]) -> str:
        """Apply multiple commands; the server coalesces duplicates."""
        payload: List[Dict[str, Any]] = [item.model_dump() for item in items]
        return render_result(await gateway.batch(payload))

    @mcp.tool()
    async def govee_metrics() -> str:
        """Gateway counters in the Prometheus text format."""
        return latest_metrics().decode("utf-8")

    logger.debug("Registered Govee tools", extra={"server": SERVER_NAME})
    return mcp
