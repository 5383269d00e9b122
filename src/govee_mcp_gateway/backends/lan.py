"""Govee LAN backend placeholder.

LAN control has to be switched on per device in the Govee app, and the UDP
payloads differ by model. Discovery and payload framing are not implemented;
this class only pins down the contract and fails fast so callers never
mistake it for a working transport.
"""

from __future__ import annotations

from typing import List, Sequence

from ..errors import LanDisabledError, UnsupportedOperationError
from ..logging import get_logger
from ..models import BatchItem, ControlCmd, DeviceInfo, DeviceRef, State
from .base import Backend


class LanBackend(Backend):
    def __init__(self, enabled: bool = False) -> None:
        self.enabled = enabled
        self.logger = get_logger("govee.lan")

    @property
    def name(self) -> str:
        return "lan"

    async def list_devices(self) -> List[DeviceInfo]:
        if not self.enabled:
            return []
        self.logger.debug("LAN discovery is not implemented; reporting no devices")
        return []

    async def get_state(self, ref: DeviceRef) -> State:
        raise UnsupportedOperationError("LAN getState not implemented")

    async def control(self, ref: DeviceRef, cmd: ControlCmd) -> None:
        if not self.enabled:
            raise LanDisabledError("LAN disabled")
        raise UnsupportedOperationError("LAN control not implemented")

    async def batch(self, items: Sequence[BatchItem]) -> None:
        if not self.enabled:
            raise LanDisabledError("LAN disabled")
        for item in items:
            await self.control(item.ref, item.cmd)
