import httpx
import pytest

from govee_mcp_gateway.backends import CloudBackend, LanBackend
from govee_mcp_gateway.config import Config
from govee_mcp_gateway.errors import LanDisabledError, UnsupportedOperationError
from govee_mcp_gateway.models import BatchItem, DeviceRef, TurnCommand
from govee_mcp_gateway.router import BackendRouter

REF = DeviceRef("AA:01", "H6104")


@pytest.mark.asyncio
async def test_disabled_lan_lists_nothing_and_refuses_writes() -> None:
    lan = LanBackend(enabled=False)

    assert await lan.list_devices() == []
    with pytest.raises(LanDisabledError, match="disabled"):
        await lan.control(REF, TurnCommand(on=True))
    with pytest.raises(LanDisabledError):
        await lan.batch([BatchItem(REF, TurnCommand(on=True))])


@pytest.mark.asyncio
async def test_enabled_lan_is_unimplemented() -> None:
    lan = LanBackend(enabled=True)

    assert await lan.list_devices() == []
    with pytest.raises(UnsupportedOperationError, match="not implemented") as excinfo:
        await lan.control(REF, TurnCommand(on=True))
    assert not isinstance(excinfo.value, LanDisabledError)
    with pytest.raises(UnsupportedOperationError):
        await lan.get_state(REF)


@pytest.mark.asyncio
async def test_router_choice_is_global() -> None:
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    cloud = CloudBackend(Config(), client=client)

    router = BackendRouter(cloud, LanBackend(enabled=False))
    assert router.select("AA:01") is cloud
    assert router.select("anything") is cloud

    lan = LanBackend(enabled=True)
    router = BackendRouter(cloud, lan)
    assert router.select("AA:01") is lan
    assert router.select("anything") is lan
    await client.aclose()
