"""Command-line client running single gateway operations."""

from __future__ import annotations

import argparse
import asyncio
import json
import string
import sys
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Tuple

import yaml

from .config import Config, load_config
from .gateway import CommandGateway, build_gateway
from .logging import configure_logging
from .models import OperationResult

CommandFunc = Callable[[CommandGateway, argparse.Namespace], Awaitable[OperationResult]]


class CliError(Exception):
    """Raised when the CLI encounters an expected error condition."""


def _add_device_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("device_id", help="Govee device id")
    parser.add_argument("model", help="Govee model (sku), e.g. H6104")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="govee-mcp-ctl",
        description=(
            "Run one Govee gateway operation and print the result envelope. "
            "Reads GOVEE_* env vars and an optional TOML config. Examples: "
            "`govee-mcp-ctl devices`, `govee-mcp-ctl brightness <id> H6104 40`."
        ),
    )
    parser.add_argument("--config", help="Path to TOML config file.")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Accept writes without sending them to Govee.",
    )
    parser.add_argument(
        "--output",
        choices=["json", "yaml"],
        default="json",
        help="Output format (json or yaml).",
    )
    subparsers = parser.add_subparsers(dest="command")

    devices = subparsers.add_parser("devices", help="List allowed devices")
    devices.set_defaults(func=_cmd_devices)

    state = subparsers.add_parser("state", help="Show device state")
    _add_device_args(state)
    state.set_defaults(func=_cmd_state)

    power = subparsers.add_parser("power", help="Turn a device on or off")
    _add_device_args(power)
    power.add_argument("power", choices=["on", "off"])
    power.set_defaults(func=_cmd_power)

    brightness = subparsers.add_parser("brightness", help="Set brightness (0-100)")
    _add_device_args(brightness)
    brightness.add_argument("percent", type=int)
    brightness.set_defaults(func=_cmd_brightness)

    color = subparsers.add_parser("color", help="Set RGB color")
    _add_device_args(color)
    group = color.add_mutually_exclusive_group(required=True)
    group.add_argument("--rgb", nargs=3, type=int, metavar=("R", "G", "B"))
    group.add_argument("--hex", help="Hex color such as ff3366 or #ff3366")
    color.set_defaults(func=_cmd_color)

    color_temp = subparsers.add_parser("color-temp", help="Set color temperature (Kelvin)")
    _add_device_args(color_temp)
    color_temp.add_argument("kelvin", type=int)
    color_temp.set_defaults(func=_cmd_color_temp)

    scene = subparsers.add_parser("scene", help="Activate a scene")
    _add_device_args(scene)
    scene.add_argument("scene")
    scene.set_defaults(func=_cmd_scene)

    batch = subparsers.add_parser(
        "batch",
        help="Apply a JSON list of {deviceId, model, cmd: {name, value}} items",
    )
    batch.add_argument("items", help="JSON array, or @path to a JSON file")
    batch.set_defaults(func=_cmd_batch)
    return parser


def _print_output(data: Any, output: str) -> None:
    if output == "yaml":
        yaml.safe_dump(data, sys.stdout, sort_keys=False)
    else:
        json.dump(data, sys.stdout, indent=2)
        sys.stdout.write("\n")


def _parse_json_arg(value: str) -> Any:
    if value.startswith("@"):
        try:
            with open(value[1:], "r", encoding="utf-8") as f:
                value = f.read()
        except OSError as exc:
            raise CliError(f"Failed to read {value[1:]}: {exc}") from exc
    try:
        return json.loads(value)
    except json.JSONDecodeError as exc:
        raise CliError("Failed to parse JSON argument") from exc


def _parse_color_hex(value: str) -> Tuple[int, int, int]:
    normalized = value.strip()
    if normalized.startswith("#"):
        normalized = normalized[1:]
    if len(normalized) == 3:
        normalized = "".join(ch * 2 for ch in normalized)
    if len(normalized) != 6 or any(ch not in string.hexdigits for ch in normalized):
        raise CliError("Color must be a hex value like ff3366 or #ff3366.")
    packed = int(normalized, 16)
    return (packed >> 16) & 255, (packed >> 8) & 255, packed & 255


async def _cmd_devices(gateway: CommandGateway, args: argparse.Namespace) -> OperationResult:
    return await gateway.list_devices()


async def _cmd_state(gateway: CommandGateway, args: argparse.Namespace) -> OperationResult:
    return await gateway.get_state(args.device_id, args.model)


async def _cmd_power(gateway: CommandGateway, args: argparse.Namespace) -> OperationResult:
    return await gateway.set_power(args.device_id, args.model, args.power == "on")


async def _cmd_brightness(gateway: CommandGateway, args: argparse.Namespace) -> OperationResult:
    return await gateway.set_brightness(args.device_id, args.model, args.percent)


async def _cmd_color(gateway: CommandGateway, args: argparse.Namespace) -> OperationResult:
    r, g, b = _parse_color_hex(args.hex) if args.hex else args.rgb
    return await gateway.set_color(args.device_id, args.model, r, g, b)


async def _cmd_color_temp(gateway: CommandGateway, args: argparse.Namespace) -> OperationResult:
    return await gateway.set_color_temp(args.device_id, args.model, args.kelvin)


async def _cmd_scene(gateway: CommandGateway, args: argparse.Namespace) -> OperationResult:
    return await gateway.set_scene(args.device_id, args.model, args.scene)


async def _cmd_batch(gateway: CommandGateway, args: argparse.Namespace) -> OperationResult:
    items = _parse_json_arg(args.items)
    if not isinstance(items, list):
        raise CliError("Batch items must be a JSON array")
    return await gateway.batch(items)


def _config_args(args: argparse.Namespace) -> List[str]:
    forwarded: List[str] = []
    if args.config:
        forwarded.extend(["--config", args.config])
    if args.dry_run:
        forwarded.append("--dry-run")
    return forwarded


async def _execute(config: Config, func: CommandFunc, args: argparse.Namespace) -> OperationResult:
    gateway = build_gateway(config)
    try:
        return await func(gateway, args)
    finally:
        await gateway.aclose()


def main(argv: Optional[Iterable[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(args=argv)
    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        config = load_config(_config_args(args))
        configure_logging(config)
        result = asyncio.run(_execute(config, args.func, args))
    except CliError as exc:  # pragma: no cover - CLI feedback path
        sys.stderr.write(f"Error: {exc}\n")
        sys.exit(1)

    _print_output(result.as_dict(), args.output)
    if not result.ok:
        sys.exit(1)


if __name__ == "__main__":
    main()
