"""Request-scoped value objects for device references, commands and state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple, Union

from .errors import ValidationError

BRIGHTNESS_RANGE = (0, 100)
COLOR_CHANNEL_RANGE = (0, 255)
COLOR_TEMP_RANGE = (1000, 10000)


def _require_int(name: str, value: Any, bounds: Tuple[int, int]) -> int:
    minimum, maximum = bounds
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be an integer; got {value!r}.")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{name} must be an integer; got {value!r}.")
        value = int(value)
    if value < minimum or value > maximum:
        raise ValidationError(f"{name} must be between {minimum} and {maximum}; got {value}.")
    return value


def _require_text(name: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name} must be a non-empty string.")
    return value


@dataclass(frozen=True)
class DeviceRef:
    """Physical device identity; ``device_id`` is the allowlist key."""

    device_id: str
    model: str

    def __post_init__(self) -> None:
        _require_text("deviceId", self.device_id)
        _require_text("model", self.model)


@dataclass(frozen=True)
class DeviceInfo:
    """Device metadata reported by the account listing."""

    device_id: str
    model: str
    name: Optional[str] = None
    capabilities: Tuple[str, ...] = ()

    @property
    def ref(self) -> DeviceRef:
        return DeviceRef(self.device_id, self.model)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "deviceId": self.device_id,
            "model": self.model,
            "name": self.name,
            "capabilities": list(self.capabilities),
        }


@dataclass(frozen=True)
class TurnCommand:
    on: bool
    kind: ClassVar[str] = "turn"

    def __post_init__(self) -> None:
        if not isinstance(self.on, bool):
            raise ValidationError(f"on must be a boolean; got {self.on!r}.")


@dataclass(frozen=True)
class BrightnessCommand:
    percent: int
    kind: ClassVar[str] = "brightness"

    def __post_init__(self) -> None:
        object.__setattr__(self, "percent", _require_int("percent", self.percent, BRIGHTNESS_RANGE))


@dataclass(frozen=True)
class ColorCommand:
    r: int
    g: int
    b: int
    kind: ClassVar[str] = "color"

    def __post_init__(self) -> None:
        for channel in ("r", "g", "b"):
            value = _require_int(channel, getattr(self, channel), COLOR_CHANNEL_RANGE)
            object.__setattr__(self, channel, value)


@dataclass(frozen=True)
class ColorTempCommand:
    kelvin: int
    kind: ClassVar[str] = "colorTem"

    def __post_init__(self) -> None:
        object.__setattr__(self, "kelvin", _require_int("kelvin", self.kelvin, COLOR_TEMP_RANGE))


@dataclass(frozen=True)
class SceneCommand:
    scene: str
    kind: ClassVar[str] = "scene"

    def __post_init__(self) -> None:
        _require_text("scene", self.scene)


ControlCmd = Union[TurnCommand, BrightnessCommand, ColorCommand, ColorTempCommand, SceneCommand]


def command_from_mapping(raw: Any) -> ControlCmd:
    """Build a command from the agent-facing ``{"name": ..., "value": ...}`` shape."""

    if not isinstance(raw, Mapping):
        raise ValidationError("cmd must be an object with 'name' and 'value'.")
    name = raw.get("name")
    value = raw.get("value")
    if name == "turn":
        if value not in ("on", "off"):
            raise ValidationError(f"turn value must be 'on' or 'off'; got {value!r}.")
        return TurnCommand(on=value == "on")
    if name == "brightness":
        return BrightnessCommand(percent=value)
    if name == "color":
        if not isinstance(value, Mapping):
            raise ValidationError("color value must be an object with r, g and b.")
        return ColorCommand(r=value.get("r"), g=value.get("g"), b=value.get("b"))
    if name == "colorTem":
        return ColorTempCommand(kelvin=value)
    if name == "scene":
        return SceneCommand(scene=value)
    raise ValidationError(f"Unsupported command: {name!r}.")


@dataclass(frozen=True)
class BatchItem:
    ref: DeviceRef
    cmd: ControlCmd

    @property
    def coalesce_key(self) -> Tuple[str, str, str]:
        return (self.ref.device_id, self.ref.model, self.cmd.kind)

    @classmethod
    def from_mapping(cls, raw: Any) -> "BatchItem":
        if not isinstance(raw, Mapping):
            raise ValidationError("Batch items must be objects.")
        ref = DeviceRef(device_id=raw.get("deviceId"), model=raw.get("model"))
        return cls(ref=ref, cmd=command_from_mapping(raw.get("cmd")))


@dataclass(frozen=True)
class Rgb:
    r: int
    g: int
    b: int

    def as_dict(self) -> Dict[str, int]:
        return {"r": self.r, "g": self.g, "b": self.b}


@dataclass
class State:
    """Partial device state; a field is set only when the vendor reported it."""

    power: Optional[str] = None
    brightness: Optional[int] = None
    color: Optional[Rgb] = None
    color_tem: Optional[int] = None
    scene: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.power is not None:
            out["power"] = self.power
        if self.brightness is not None:
            out["brightness"] = self.brightness
        if self.color is not None:
            out["color"] = self.color.as_dict()
        if self.color_tem is not None:
            out["colorTem"] = self.color_tem
        if self.scene is not None:
            out["scene"] = self.scene
        return out


@dataclass(frozen=True)
class CapabilityEnvelope:
    """Vendor atomic control/state unit."""

    type: str
    instance: str
    value: Union[int, str]

    def as_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "instance": self.instance, "value": self.value}


@dataclass
class OperationResult:
    """Well-formed envelope handed to the transport for every operation."""

    ok: bool
    data: Any = None
    error: Optional[Dict[str, Any]] = field(default=None)

    @classmethod
    def success(cls, data: Any = None) -> "OperationResult":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, error: Dict[str, Any]) -> "OperationResult":
        return cls(ok=False, error=error)

    def as_dict(self) -> Dict[str, Any]:
        if self.ok:
            return {"ok": True, "data": self.data}
        return {"ok": False, "error": self.error}
