"""Govee cloud API backend."""

from __future__ import annotations

import asyncio
import uuid
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Sequence

import httpx

from .. import translator
from ..config import Config
from ..errors import UpstreamError
from ..logging import get_logger, redact_mapping
from ..metrics import record_dry_run_write, record_upstream_request
from ..models import BatchItem, ControlCmd, DeviceInfo, DeviceRef, State
from .base import Backend

API_KEY_HEADER = "Govee-API-Key"

DEVICES_PATH = "/user/devices"
STATE_PATH = "/device/state"
CONTROL_PATH = "/device/control"


def _request_id() -> str:
    return f"mcp-{uuid.uuid4().hex}"


class CloudBackend(Backend):
    """Executes operations against the Govee OpenAPI over HTTPS.

    There is no multi-item endpoint upstream, so :meth:`batch` replays
    :meth:`control` per item with a small spacing delay.
    """

    def __init__(
        self,
        config: Config,
        *,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ) -> None:
        self.config = config
        self.logger = get_logger("govee.cloud")
        self._dry_run = config.dry_run
        self._item_delay = config.batch_item_delay
        self._sleep = sleep or asyncio.sleep
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=config.api_base,
            timeout=config.request_timeout,
        )
        self._headers = {API_KEY_HEADER: config.api_key or ""}

    @property
    def name(self) -> str:
        return "cloud"

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, payload: Optional[Mapping[str, Any]] = None) -> Any:
        self.logger.debug(
            "Govee API request",
            extra={"method": method, "path": path, "headers": redact_mapping(self._headers)},
        )
        try:
            response = await self._client.request(method, path, headers=self._headers, json=payload)
        except httpx.HTTPError as exc:
            record_upstream_request(method, path, "error")
            self.logger.warning(
                "Govee API request failed",
                extra={"method": method, "path": path, "error": type(exc).__name__},
            )
            raise UpstreamError(f"Govee API request failed: {type(exc).__name__}") from exc
        record_upstream_request(method, path, str(response.status_code))
        if not response.is_success:
            self.logger.warning(
                "Govee API returned an error status",
                extra={"method": method, "path": path, "status": response.status_code},
            )
            raise UpstreamError(
                f"Govee API error {response.status_code}: Request failed",
                status=response.status_code,
            )
        try:
            return response.json()
        except ValueError:
            return None

    async def list_devices(self) -> List[DeviceInfo]:
        out = await self._request("GET", DEVICES_PATH)
        devices = out.get("data") if isinstance(out, Mapping) else None
        if not isinstance(devices, list):
            return []
        return [translator.decode_device(raw) for raw in devices if isinstance(raw, Mapping)]

    async def get_state(self, ref: DeviceRef) -> State:
        out = await self._request(
            "POST",
            STATE_PATH,
            {
                "requestId": _request_id(),
                "payload": {"sku": ref.model, "device": ref.device_id},
            },
        )
        data = out.get("data") if isinstance(out, Mapping) else None
        capabilities = data.get("capabilities") if isinstance(data, Mapping) else None
        return translator.decode(translator.envelopes_from_state(capabilities))

    async def control(self, ref: DeviceRef, cmd: ControlCmd) -> None:
        capability = translator.encode(cmd)
        if self._dry_run:
            record_dry_run_write()
            self.logger.info(
                "Dry-run: would send control",
                extra={
                    "device_id": ref.device_id,
                    "model": ref.model,
                    "capability": capability.as_dict(),
                },
            )
            return
        await self._request(
            "POST",
            CONTROL_PATH,
            {
                "requestId": _request_id(),
                "payload": {
                    "sku": ref.model,
                    "device": ref.device_id,
                    "capability": capability.as_dict(),
                },
            },
        )
        self.logger.debug(
            "Control sent",
            extra={"device_id": ref.device_id, "kind": cmd.kind},
        )

    async def batch(self, items: Sequence[BatchItem]) -> None:
        for item in items:
            await self.control(item.ref, item.cmd)
            if not self._dry_run:
                await self._sleep(self._item_delay)
