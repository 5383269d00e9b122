"""Backend selection."""

from __future__ import annotations

from .backends import Backend, CloudBackend, LanBackend


class BackendRouter:
    """Pick the backend for a device.

    The choice is global: with LAN enabled every device goes to LAN,
    otherwise every device goes to the cloud. There is no reachability
    tracking, so ``device_id`` does not influence the result.
    """

    def __init__(self, cloud: CloudBackend, lan: LanBackend) -> None:
        self.cloud = cloud
        self.lan = lan

    def select(self, device_id: str) -> Backend:
        if self.lan.enabled:
            return self.lan
        return self.cloud
