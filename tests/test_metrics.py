import pytest

from govee_mcp_gateway import __main__ as entrypoint
from govee_mcp_gateway import metrics
from govee_mcp_gateway.config import Config


def test_latest_metrics_renders_private_registry() -> None:
    metrics.record_operation("set_brightness", "ok")
    metrics.record_batch_coalesced(2)

    rendered = metrics.latest_metrics()

    assert b'govee_gateway_operations_total{operation="set_brightness",outcome="ok"}' in rendered
    assert b"govee_batch_coalesced_total" in rendered


def test_start_metrics_server_serves_private_registry(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []
    monkeypatch.setattr(metrics, "start_http_server", lambda port, **kwargs: calls.append((port, kwargs)))

    metrics.start_metrics_server(9464)

    assert calls == [(9464, {"addr": "127.0.0.1", "registry": metrics._REGISTRY})]


class _StubServer:
    def __init__(self) -> None:
        self.transports = []

    async def run_async(self, transport: str) -> None:
        self.transports.append(transport)


@pytest.mark.asyncio
@pytest.mark.parametrize("port,expected", [(9464, [9464]), (None, [])])
async def test_entrypoint_starts_metrics_only_when_port_configured(
    monkeypatch: pytest.MonkeyPatch, port, expected
) -> None:
    started = []
    server = _StubServer()
    monkeypatch.setattr(entrypoint, "start_metrics_server", started.append)
    monkeypatch.setattr(entrypoint, "create_server", lambda gateway: server)

    await entrypoint._run_async(Config(dry_run=True, metrics_port=port))

    assert started == expected
    assert server.transports == ["stdio"]
