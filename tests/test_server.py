import json

import httpx
import pytest

from govee_mcp_gateway.config import Config
from govee_mcp_gateway.gateway import build_gateway
from govee_mcp_gateway.models import OperationResult
from govee_mcp_gateway.server import BatchItemSpec, create_server, render_result


def test_render_result_is_json_envelope() -> None:
    ok = json.loads(render_result(OperationResult.success({"commands": 2, "devices": 1})))
    failed = json.loads(render_result(OperationResult.failure({"kind": "authorization", "message": "Device not allowed: B"})))

    assert ok == {"ok": True, "data": {"commands": 2, "devices": 1}}
    assert failed == {"ok": False, "error": {"kind": "authorization", "message": "Device not allowed: B"}}


def test_batch_item_spec_dumps_gateway_shape() -> None:
    spec = BatchItemSpec.model_validate(
        {"deviceId": "A", "model": "H6104", "cmd": {"name": "color", "value": {"r": 1, "g": 2, "b": 3}}}
    )

    assert spec.model_dump() == {
        "deviceId": "A",
        "model": "H6104",
        "cmd": {"name": "color", "value": {"r": 1, "g": 2, "b": 3}},
    }


@pytest.mark.asyncio
async def test_create_server_uses_gateway() -> None:
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(500)))
    gateway = build_gateway(Config(dry_run=True), client=client)
    try:
        server = create_server(gateway)
        assert server.name == "govee-mcp"
    finally:
        await gateway.aclose()
        await client.aclose()

    assert client.is_closed
