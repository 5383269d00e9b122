import pytest

from govee_mcp_gateway.config import (
    CONFIG_VERSION,
    MIN_SUPPORTED_CONFIG_VERSION,
    Config,
)


def test_default_config_passes_validation() -> None:
    config = Config()
    assert config.config_version == CONFIG_VERSION
    assert config.rate_rps == 5.0
    assert config.batch_window == pytest.approx(0.12)


@pytest.mark.parametrize(
    "field,value,error",
    [
        ("rate_rps", 0.0, "rate_rps"),
        ("batch_window_ms", -1, "batch_window_ms"),
        ("request_timeout", 0.0, "request_timeout"),
        ("log_format", "xml", "log_format"),
        ("api_base", "ftp://govee", "api_base"),
        ("metrics_port", 0, "metrics_port"),
        ("metrics_port", 70000, "metrics_port"),
    ],
)
def test_bounds_enforced(field: str, value: object, error: str) -> None:
    with pytest.raises(ValueError, match=error):
        Config(**{field: value})


def test_future_config_version_rejected() -> None:
    with pytest.raises(ValueError, match="newer than supported"):
        Config(config_version=CONFIG_VERSION + 1)


def test_ancient_config_version_rejected() -> None:
    with pytest.raises(ValueError, match="too old"):
        Config(config_version=MIN_SUPPORTED_CONFIG_VERSION - 1)


def test_logging_dict_masks_secrets() -> None:
    config = Config(api_key="secret-key")
    logged = config.logging_dict()
    assert logged["api_key"] == "***REDACTED***"
    assert "secret-key" not in str(logged)


def test_env_overrides_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GOVEE_API_KEY", "env-key")
    monkeypatch.setenv("GOVEE_DRY_RUN", "TRUE")
    monkeypatch.setenv("GOVEE_RATE_RPS", "2.5")
    monkeypatch.setenv("GOVEE_BATCH_WINDOW_MS", "250")
    monkeypatch.setenv("GOVEE_ALLOWLIST", "AA:BB, CC:DD")
    monkeypatch.setenv("GOVEE_LAN_ENABLED", "false")

    config = Config.from_sources([])

    assert config.api_key == "env-key"
    assert config.dry_run is True
    assert config.rate_rps == 2.5
    assert config.batch_window_ms == 250
    assert config.allowlist == "AA:BB, CC:DD"
    assert config.lan_enabled is False


def test_cli_overrides_file_and_env(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_file = tmp_path / "gateway.toml"
    config_file.write_text(
        'api-base = "https://govee.test/api/"\n'
        "rate_rps = 3\n"
        'allowlist = ["dev-1", "dev-2"]\n'
        'log_level = "debug"\n',
        encoding="utf-8",
    )
    monkeypatch.setenv("GOVEE_RATE_RPS", "4")

    config = Config.from_sources(["--config", str(config_file), "--rate-rps", "7", "--lan-enabled"])

    assert config.api_base == "https://govee.test/api"
    assert config.rate_rps == 7.0
    assert config.allowlist == "dev-1,dev-2"
    assert config.log_level == "DEBUG"
    assert config.lan_enabled is True
    assert config.dry_run is False


def test_missing_config_file_raises(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        Config.from_sources(["--config", str(tmp_path / "missing.toml")])


def test_metrics_port_from_env_and_cli(monkeypatch: pytest.MonkeyPatch) -> None:
    assert Config.from_sources([]).metrics_port is None

    monkeypatch.setenv("GOVEE_METRICS_PORT", "9464")
    assert Config.from_sources([]).metrics_port == 9464
    assert Config.from_sources(["--metrics-port", "9100"]).metrics_port == 9100
    assert Config(metrics_port=9464).logging_dict()["metrics_port"] == 9464
