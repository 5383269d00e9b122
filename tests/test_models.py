import pytest

from govee_mcp_gateway.errors import ValidationError
from govee_mcp_gateway.models import (
    BatchItem,
    BrightnessCommand,
    ColorCommand,
    ColorTempCommand,
    DeviceRef,
    TurnCommand,
    command_from_mapping,
)


@pytest.mark.parametrize(
    "factory",
    [
        lambda: BrightnessCommand(percent=150),
        lambda: BrightnessCommand(percent=-1),
        lambda: BrightnessCommand(percent=50.5),
        lambda: BrightnessCommand(percent=True),
        lambda: ColorCommand(r=300, g=0, b=0),
        lambda: ColorCommand(r=0, g=0, b=None),
        lambda: ColorTempCommand(kelvin=500),
        lambda: ColorTempCommand(kelvin=10001),
        lambda: TurnCommand(on="yes"),
        lambda: DeviceRef("", "H6104"),
    ],
)
def test_out_of_range_values_are_rejected_not_clamped(factory) -> None:
    with pytest.raises(ValidationError):
        factory()


def test_range_bounds_are_inclusive() -> None:
    assert BrightnessCommand(percent=0).percent == 0
    assert BrightnessCommand(percent=100).percent == 100
    assert ColorTempCommand(kelvin=1000).kelvin == 1000
    assert ColorTempCommand(kelvin=10000).kelvin == 10000
    assert BrightnessCommand(percent=40.0).percent == 40


def test_command_from_mapping_variants() -> None:
    assert command_from_mapping({"name": "turn", "value": "off"}) == TurnCommand(on=False)
    assert command_from_mapping({"name": "color", "value": {"r": 1, "g": 2, "b": 3}}) == ColorCommand(1, 2, 3)
    assert command_from_mapping({"name": "colorTem", "value": 3000}).kind == "colorTem"
    with pytest.raises(ValidationError, match="Unsupported command"):
        command_from_mapping({"name": "strobe", "value": 1})
    with pytest.raises(ValidationError):
        command_from_mapping({"name": "turn", "value": True})


def test_batch_item_from_mapping_builds_coalesce_key() -> None:
    item = BatchItem.from_mapping(
        {"deviceId": "A", "model": "H6104", "cmd": {"name": "brightness", "value": 10}}
    )
    assert item.ref == DeviceRef("A", "H6104")
    assert item.coalesce_key == ("A", "H6104", "brightness")
