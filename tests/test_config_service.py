"""
Tests for ConfigService
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from services.config_service import ENV_MAPPING, BridgeConfig, ConfigService


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Strip bridge variables inherited from the developer's shell"""
    for name in ENV_MAPPING:
        monkeypatch.delenv(name, raising=False)


class TestDefaults:

    def test_defaults(self, tmp_path):
        config = ConfigService(env_file=str(tmp_path / "missing.env")).get_config()

        assert config.sdk_path == Path("/home/ubuntu/connectedhomeip")
        assert config.chip_tool == Path("/home/ubuntu/connectedhomeip/out/chip-tool/chip-tool")
        assert config.default_node_id == "1"
        assert config.command_timeout == 60.0
        assert config.port == 3000
        assert config.paa_trust_store_path is None

    def test_absolute_chip_tool_path(self):
        config = BridgeConfig(chip_tool_path="/usr/local/bin/chip-tool")
        assert config.chip_tool == Path("/usr/local/bin/chip-tool")


class TestEnvFile:

    def test_load_env(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text(
            "# Matter bridge\n"
            "MATTER_SDK_PATH=/opt/connectedhomeip\n"
            "WIFI_SSID=\"Home Net\"\n"
            "WIFI_PASSWORD='p=ss'\n"
            "\n"
            "not a pair\n"
        )

        env = ConfigService(env_file=str(env_file)).load_env()

        assert env == {
            "MATTER_SDK_PATH": "/opt/connectedhomeip",
            "WIFI_SSID": "Home Net",
            "WIFI_PASSWORD": "p=ss",
        }

    def test_file_values_applied(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("MATTER_COMMAND_TIMEOUT=90\nPORT=8080\nTHREAD_DATASET=0e08\n")

        config = ConfigService(env_file=str(env_file)).get_config()

        assert config.command_timeout == 90.0
        assert config.port == 8080
        assert config.thread_dataset == "0e08"

    def test_environment_wins(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("MATTER_SDK_PATH=/from/file\nMATTER_DEFAULT_NODE_ID=5\n")
        monkeypatch.setenv("MATTER_SDK_PATH", "/from/env")

        config = ConfigService(env_file=str(env_file)).get_config()

        assert config.sdk_path == Path("/from/env")
        assert config.default_node_id == "5"

    def test_empty_values_ignored(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MATTER_PAA_TRUST_STORE_PATH", "")

        config = ConfigService(env_file=str(tmp_path / "none.env")).get_config()

        assert config.paa_trust_store_path is None

    def test_env_file_from_environment(self, tmp_path, monkeypatch):
        env_file = tmp_path / "bridge.env"
        env_file.write_text("LOG_LEVEL=DEBUG\n")
        monkeypatch.setenv("MATTER_BRIDGE_ENV_FILE", str(env_file))

        assert ConfigService().get_config().log_level == "DEBUG"


class TestValidation:

    @pytest.mark.parametrize("name,value", [
        ("PORT", "not-a-port"),
        ("PORT", "70000"),
        ("MATTER_COMMAND_TIMEOUT", "0"),
        ("MATTER_DEFAULT_NODE_ID", "abc"),
    ])
    def test_invalid_values(self, tmp_path, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ValidationError):
            ConfigService(env_file=str(tmp_path / "none.env")).get_config()
