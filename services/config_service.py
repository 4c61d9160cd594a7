"""
Configuration service: environment variables merged over an optional .env file
"""

import os
import logging
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class BridgeConfig(BaseModel):
    """Runtime configuration of the bridge"""
    sdk_path: Path = Path("/home/ubuntu/connectedhomeip")
    chip_tool_path: Path = Path("out/chip-tool/chip-tool")
    fabric_id: Optional[str] = None
    default_node_id: str = Field("1", pattern=r"^\d+$")
    command_timeout: float = Field(60.0, gt=0)
    log_path: Path = Path("logs")
    paa_trust_store_path: Optional[Path] = None
    wifi_ssid: Optional[str] = None
    wifi_password: Optional[str] = None
    thread_dataset: Optional[str] = None
    port: int = Field(3000, ge=1, le=65535)
    log_level: str = "INFO"

    @property
    def chip_tool(self) -> Path:
        """Absolute path of the chip-tool binary"""
        if self.chip_tool_path.is_absolute():
            return self.chip_tool_path
        return self.sdk_path / self.chip_tool_path


# Environment variable -> BridgeConfig field
ENV_MAPPING = {
    "MATTER_SDK_PATH": "sdk_path",
    "CHIP_TOOL_PATH": "chip_tool_path",
    "MATTER_FABRIC_ID": "fabric_id",
    "MATTER_DEFAULT_NODE_ID": "default_node_id",
    "MATTER_COMMAND_TIMEOUT": "command_timeout",
    "MATTER_LOG_PATH": "log_path",
    "MATTER_PAA_TRUST_STORE_PATH": "paa_trust_store_path",
    "WIFI_SSID": "wifi_ssid",
    "WIFI_PASSWORD": "wifi_password",
    "THREAD_DATASET": "thread_dataset",
    "PORT": "port",
    "LOG_LEVEL": "log_level",
}


class ConfigService:
    """Loads BridgeConfig from the process environment and a .env file"""

    def __init__(self, env_file: Optional[str] = None):
        raw_env_file = env_file or os.getenv("MATTER_BRIDGE_ENV_FILE", ".env")
        self.env_file = Path(raw_env_file)

    def load_env(self) -> Dict[str, str]:
        """Load environment variables from .env file"""
        env_vars = {}
        if self.env_file.exists():
            with open(self.env_file) as f:
                for line in f:
                    line = line.strip()
                    if line and not line.startswith('#') and '=' in line:
                        key, value = line.split('=', 1)
                        env_vars[key.strip()] = value.strip().strip('"').strip("'")
        return env_vars

    def get_config(self) -> BridgeConfig:
        """
        Build configuration; process environment wins over the .env file

        Raises:
            pydantic.ValidationError: if a value cannot be parsed
        """
        merged = self.load_env()
        merged.update({key: value for key, value in os.environ.items() if key in ENV_MAPPING})

        values = {}
        for env_name, field_name in ENV_MAPPING.items():
            value = merged.get(env_name)
            if value:
                values[field_name] = value

        config = BridgeConfig(**values)
        logger.debug(f"Loaded configuration from environment ({len(values)} overrides)")
        return config
