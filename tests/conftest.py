"""
Shared pytest fixtures for Matter Bridge tests
"""

import sys
from pathlib import Path
from typing import Iterable, List, Optional

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).parent.parent))

from main import create_app
from models.schemas import DeviceRecord
from services.config_service import BridgeConfig
from services.device_registry import DeviceRegistry


class FakeRunner:
    """Stands in for ChipToolRunner: records argv and replays queued results"""

    def __init__(self, output: str = ""):
        self.output = output
        self.error: Optional[Exception] = None
        self.calls: List[List[str]] = []
        self.secrets: List[List[str]] = []
        self.available = True

    def is_available(self) -> bool:
        return self.available

    async def run(self, args: List[str], timeout: Optional[float] = None,
                  secrets: Iterable[str] = ()) -> str:
        self.calls.append(list(args))
        self.secrets.append(list(secrets))
        if self.error is not None:
            raise self.error
        return self.output

@pytest.fixture
def bridge_config(tmp_path):
    """Configuration pointing at temporary directories"""
    return BridgeConfig(
        sdk_path=tmp_path / "sdk",
        chip_tool_path=tmp_path / "chip-tool",
        log_path=tmp_path / "logs",
        command_timeout=5,
    )

@pytest.fixture
def fake_runner():
    return FakeRunner()

@pytest.fixture
def registry():
    return DeviceRegistry()

@pytest.fixture
def discovered_registry(registry):
    """Registry holding node 1 (light) and node 2 (plug) as discovered"""
    registry.upsert_discovered(DeviceRecord(
        node_id="1", name="light1", addresses=["192.168.1.50"], port="5540",
        vendor_id="65521", discriminator="3840",
    ))
    registry.upsert_discovered(DeviceRecord(
        node_id="2", name="plug1", addresses=["192.168.1.51"], port="5540",
        discriminator="1234",
    ))
    return registry

@pytest.fixture
def app(bridge_config, fake_runner, registry):
    return create_app(config=bridge_config, runner=fake_runner, registry=registry)

@pytest.fixture
def client(app):
    return TestClient(app)
