"""Translation between abstract commands/state and Govee capability envelopes."""

from __future__ import annotations

import math
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from .models import (
    BrightnessCommand,
    CapabilityEnvelope,
    ColorCommand,
    ColorTempCommand,
    ControlCmd,
    DeviceInfo,
    Rgb,
    SceneCommand,
    State,
    TurnCommand,
)

CAPABILITY_PREFIX = "devices.capabilities."

ON_OFF = (f"{CAPABILITY_PREFIX}on_off", "powerSwitch")
BRIGHTNESS = (f"{CAPABILITY_PREFIX}range", "brightness")
COLOR_RGB = (f"{CAPABILITY_PREFIX}color_setting", "colorRgb")
COLOR_TEMPERATURE = (f"{CAPABILITY_PREFIX}color_setting", "colorTemperatureK")
LIGHT_SCENE = (f"{CAPABILITY_PREFIX}dynamic_scene", "lightScene")


def pack_rgb(r: int, g: int, b: int) -> int:
    return (r << 16) | (g << 8) | b


def unpack_rgb(value: int) -> Rgb:
    return Rgb(r=(value >> 16) & 255, g=(value >> 8) & 255, b=value & 255)


def _envelope(key: Tuple[str, str], value: Any) -> CapabilityEnvelope:
    return CapabilityEnvelope(type=key[0], instance=key[1], value=value)


def encode(cmd: ControlCmd) -> CapabilityEnvelope:
    """Map one command onto exactly one capability envelope."""

    if isinstance(cmd, TurnCommand):
        return _envelope(ON_OFF, 1 if cmd.on else 0)
    if isinstance(cmd, BrightnessCommand):
        return _envelope(BRIGHTNESS, cmd.percent)
    if isinstance(cmd, ColorCommand):
        return _envelope(COLOR_RGB, pack_rgb(cmd.r, cmd.g, cmd.b))
    if isinstance(cmd, ColorTempCommand):
        return _envelope(COLOR_TEMPERATURE, cmd.kelvin)
    if isinstance(cmd, SceneCommand):
        return _envelope(LIGHT_SCENE, cmd.scene)
    raise TypeError(f"Unsupported command type: {type(cmd).__name__}")


def _as_int(value: Any) -> Optional[int]:
    """Return ``value`` as an int only when it is a JSON integer (or integral float)."""

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return None


def _decode_power(state: State, value: Any) -> None:
    state.power = "on" if _as_int(value) == 1 else "off"


def _decode_brightness(state: State, value: Any) -> None:
    parsed = _as_int(value)
    if parsed is not None:
        state.brightness = parsed


def _decode_color(state: State, value: Any) -> None:
    parsed = _as_int(value)
    if parsed is not None:
        state.color = unpack_rgb(parsed)


def _decode_color_temperature(state: State, value: Any) -> None:
    parsed = _as_int(value)
    if parsed is not None:
        state.color_tem = parsed


def _decode_scene(state: State, value: Any) -> None:
    if value is not None and value != "":
        state.scene = str(value)


_DECODERS: Dict[Tuple[str, str], Callable[[State, Any], None]] = {
    ON_OFF: _decode_power,
    BRIGHTNESS: _decode_brightness,
    COLOR_RGB: _decode_color,
    COLOR_TEMPERATURE: _decode_color_temperature,
    LIGHT_SCENE: _decode_scene,
}


def decode(envelopes: Iterable[CapabilityEnvelope]) -> State:
    """Fold reported capabilities into a partial state; unknown pairs are skipped."""

    state = State()
    for envelope in envelopes:
        decoder = _DECODERS.get((envelope.type, envelope.instance))
        if decoder is not None:
            decoder(state, envelope.value)
    return state


def envelopes_from_state(capabilities: Any) -> List[CapabilityEnvelope]:
    """Convert the ``/device/state`` capability list into envelopes.

    Entries look like ``{"type": ..., "instance": ..., "state": {"value": ...}}``.
    Malformed entries are dropped rather than failing the whole read.
    """

    if not isinstance(capabilities, list):
        return []
    envelopes: List[CapabilityEnvelope] = []
    for raw in capabilities:
        if not isinstance(raw, Mapping):
            continue
        cap_type = raw.get("type")
        instance = raw.get("instance")
        if not isinstance(cap_type, str) or not isinstance(instance, str):
            continue
        reported = raw.get("state")
        value = reported.get("value") if isinstance(reported, Mapping) else None
        envelopes.append(CapabilityEnvelope(type=cap_type, instance=instance, value=value))
    return envelopes


def decode_device(raw: Mapping[str, Any]) -> DeviceInfo:
    """Map a ``/user/devices`` entry onto :class:`DeviceInfo`."""

    capabilities = raw.get("capabilities") or []
    types = tuple(
        str(cap["type"])
        for cap in capabilities
        if isinstance(cap, Mapping) and cap.get("type") is not None
    )
    name = raw.get("deviceName")
    return DeviceInfo(
        device_id=str(raw.get("device", "")),
        model=str(raw.get("sku", "")),
        name=str(name) if name is not None else None,
        capabilities=types,
    )
