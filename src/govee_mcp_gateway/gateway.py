"""Command gateway: validation, authorization, admission, routing and batching."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import httpx

from .allowlist import AllowlistGuard
from .backends import CloudBackend, LanBackend
from .config import Config
from .errors import EmptyBatchError, GatewayError, ValidationError
from .limiter import TokenBucketLimiter
from .logging import get_logger
from .metrics import record_batch_coalesced, record_operation
from .models import (
    BatchItem,
    BrightnessCommand,
    ColorCommand,
    ColorTempCommand,
    ControlCmd,
    DeviceRef,
    OperationResult,
    SceneCommand,
    TurnCommand,
)
from .router import BackendRouter

Sleep = Callable[[float], Awaitable[None]]


def coalesce(items: Iterable[BatchItem]) -> List[BatchItem]:
    """Keep the last command per (device, model, kind).

    A superseded key keeps the slot of its first appearance, so distinct
    kinds for one device stay in their original relative order.
    """

    latest: Dict[Tuple[str, str, str], BatchItem] = {}
    for item in items:
        latest[item.coalesce_key] = item
    return list(latest.values())


def group_by_device(items: Iterable[BatchItem]) -> Dict[str, List[BatchItem]]:
    groups: Dict[str, List[BatchItem]] = {}
    for item in items:
        groups.setdefault(item.ref.device_id, []).append(item)
    return groups


class CommandGateway:
    """Entry point for every device operation exposed to the agent.

    Each public coroutine returns an :class:`OperationResult`; failures are
    converted at this boundary and never raised to the transport.
    """

    def __init__(
        self,
        router: BackendRouter,
        limiter: TokenBucketLimiter,
        allowlist: AllowlistGuard,
        *,
        batch_window: float = 0.12,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self.router = router
        self.limiter = limiter
        self.allowlist = allowlist
        self.batch_window = batch_window
        self._sleep = sleep or asyncio.sleep
        self.logger = get_logger("govee.gateway")

    async def aclose(self) -> None:
        await self.router.cloud.aclose()
        await self.router.lan.aclose()

    async def _run(self, operation: str, call: Callable[[], Awaitable[Any]]) -> OperationResult:
        try:
            data = await call()
        except GatewayError as exc:
            record_operation(operation, exc.kind)
            self.logger.warning(
                "Operation failed",
                extra={"operation": operation, "kind": exc.kind, "error": str(exc)},
            )
            return OperationResult.failure(exc.as_dict())
        except Exception:
            record_operation(operation, "internal")
            self.logger.exception("Unexpected error in operation", extra={"operation": operation})
            return OperationResult.failure({"kind": "internal", "message": "Internal error"})
        record_operation(operation, "ok")
        return OperationResult.success(data)

    async def _dispatch(self, ref: DeviceRef, cmd: ControlCmd) -> None:
        self.allowlist.require(ref.device_id)
        await self.limiter.admit()
        backend = self.router.select(ref.device_id)
        self.logger.debug(
            "Dispatching command",
            extra={"device_id": ref.device_id, "kind": cmd.kind, "backend": backend.name},
        )
        await backend.control(ref, cmd)

    async def list_devices(self) -> OperationResult:
        async def _call() -> Any:
            await self.limiter.admit()
            devices = await self.router.cloud.list_devices()
            allowed = self.allowlist.filter(devices, lambda device: device.device_id)
            return [device.as_dict() for device in allowed]

        return await self._run("list_devices", _call)

    async def get_state(self, device_id: str, model: str) -> OperationResult:
        async def _call() -> Any:
            ref = DeviceRef(device_id, model)
            self.allowlist.require(ref.device_id)
            await self.limiter.admit()
            state = await self.router.select(ref.device_id).get_state(ref)
            return state.as_dict()

        return await self._run("get_state", _call)

    async def set_power(self, device_id: str, model: str, on: bool) -> OperationResult:
        async def _call() -> Any:
            ref = DeviceRef(device_id, model)
            await self._dispatch(ref, TurnCommand(on=on))
            return {"message": f"Power {'on' if on else 'off'} sent."}

        return await self._run("set_power", _call)

    async def set_brightness(self, device_id: str, model: str, percent: int) -> OperationResult:
        async def _call() -> Any:
            ref = DeviceRef(device_id, model)
            cmd = BrightnessCommand(percent=percent)
            await self._dispatch(ref, cmd)
            return {"message": f"Brightness set to {cmd.percent}%."}

        return await self._run("set_brightness", _call)

    async def set_color(self, device_id: str, model: str, r: int, g: int, b: int) -> OperationResult:
        async def _call() -> Any:
            ref = DeviceRef(device_id, model)
            cmd = ColorCommand(r=r, g=g, b=b)
            await self._dispatch(ref, cmd)
            return {"message": f"Color set to rgb({cmd.r},{cmd.g},{cmd.b})."}

        return await self._run("set_color", _call)

    async def set_color_temp(self, device_id: str, model: str, kelvin: int) -> OperationResult:
        async def _call() -> Any:
            ref = DeviceRef(device_id, model)
            cmd = ColorTempCommand(kelvin=kelvin)
            await self._dispatch(ref, cmd)
            return {"message": f"Color temp set to {cmd.kelvin}K."}

        return await self._run("set_color_temp", _call)

    async def set_scene(self, device_id: str, model: str, scene: str) -> OperationResult:
        async def _call() -> Any:
            ref = DeviceRef(device_id, model)
            cmd = SceneCommand(scene=scene)
            await self._dispatch(ref, cmd)
            return {"message": f"Scene set to {cmd.scene}."}

        return await self._run("set_scene", _call)

    async def batch(self, items: Sequence[Any]) -> OperationResult:
        """Apply several commands, coalescing duplicates per device and kind."""

        return await self._run("batch", lambda: self._batch(items))

    async def _batch(self, items: Sequence[Any]) -> Dict[str, Any]:
        if not items:
            raise ValidationError("batch requires at least one item.")
        parsed = [item if isinstance(item, BatchItem) else BatchItem.from_mapping(item) for item in items]

        allowed = self.allowlist.filter(parsed, lambda item: item.ref.device_id)
        if not allowed:
            raise EmptyBatchError("No allowed items")

        deduped = coalesce(allowed)
        record_batch_coalesced(len(allowed) - len(deduped))

        await self.limiter.admit()
        groups = group_by_device(deduped)
        self.logger.info(
            "Dispatching batch",
            extra={
                "received": len(items),
                "allowed": len(allowed),
                "commands": len(deduped),
                "devices": len(groups),
            },
        )

        results = await asyncio.gather(
            *(self._replay_device(device_id, group) for device_id, group in groups.items()),
            return_exceptions=True,
        )
        failures = [result for result in results if isinstance(result, BaseException)]
        if failures:
            self.logger.warning(
                "Batch finished with failing devices",
                extra={"failed_devices": len(failures), "devices": len(groups)},
            )
            raise failures[0]

        return {
            "commands": len(deduped),
            "devices": len(groups),
            "message": f"Applied {len(deduped)} command(s) across {len(groups)} device(s).",
        }

    async def _replay_device(self, device_id: str, items: Sequence[BatchItem]) -> None:
        backend = self.router.select(device_id)
        await self._sleep(self.batch_window)
        for item in items:
            await backend.control(item.ref, item.cmd)


def build_gateway(config: Config, *, client: Optional[httpx.AsyncClient] = None) -> CommandGateway:
    """Wire the process-lifetime collaborators from configuration."""

    cloud = CloudBackend(config, client=client)
    lan = LanBackend(enabled=config.lan_enabled)
    return CommandGateway(
        BackendRouter(cloud, lan),
        TokenBucketLimiter(config.rate_rps),
        AllowlistGuard(config.allowlist),
        batch_window=config.batch_window,
    )
