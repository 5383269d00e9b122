"""Backend interface shared by the cloud and LAN transports."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Sequence

from ..models import BatchItem, ControlCmd, DeviceInfo, DeviceRef, State


class Backend(ABC):
    """Abstract executor for device operations.

    Each backend is responsible for:
    - Listing the devices it can reach
    - Reading and decoding device state
    - Sending a single control command, or a sequence of them
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend identifier used in logs and results (e.g., 'cloud', 'lan')."""

    @abstractmethod
    async def list_devices(self) -> List[DeviceInfo]:
        """Return every device visible to this backend."""

    @abstractmethod
    async def get_state(self, ref: DeviceRef) -> State:
        """Return the decoded state reported for ``ref``."""

    @abstractmethod
    async def control(self, ref: DeviceRef, cmd: ControlCmd) -> None:
        """Apply one command to one device."""

    @abstractmethod
    async def batch(self, items: Sequence[BatchItem]) -> None:
        """Apply several commands in order."""

    async def aclose(self) -> None:
        """Release transport resources; a no-op by default."""
