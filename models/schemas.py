"""
Pydantic models for API
"""

from datetime import datetime
from enum import Enum
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class NetworkType(str, Enum):
    WIFI = "wifi"
    THREAD = "thread"
    UNKNOWN = "unknown"


class DeviceStatus(str, Enum):
    DISCOVERED = "discovered"
    PAIRED = "paired"
    COMMISSIONED = "commissioned"


class DeviceRecord(CamelModel):
    """Device observed during one discovery scan"""
    node_id: str = ""
    name: Optional[str] = None
    addresses: List[str] = Field(default_factory=list)
    port: Optional[str] = None
    vendor_id: Optional[str] = None
    product_id: Optional[str] = None
    device_type: Optional[str] = None
    device_name: Optional[str] = None
    discriminator: Optional[str] = None
    pairing_hint: Optional[str] = None
    instance_name: Optional[str] = None
    commissioning_mode: Optional[str] = None
    supports_commissioner_generated_passcode: Optional[bool] = None
    rotating_id: Optional[str] = None
    mrp_interval_idle: Optional[str] = None
    mrp_interval_active: Optional[str] = None
    tcp_client_supported: Optional[bool] = None
    icd: Optional[str] = None
    network_type: NetworkType = NetworkType.WIFI


class NetworkInfo(CamelModel):
    """Network credentials handed to a commissioned device (password never kept)"""
    type: NetworkType = NetworkType.WIFI
    ssid: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.now)


class RegistryEntry(DeviceRecord):
    """Last known state of a device, owned by the DeviceRegistry"""
    status: DeviceStatus = DeviceStatus.DISCOVERED
    timestamp: datetime = Field(default_factory=datetime.now)
    setup_code: Optional[str] = Field(default=None, exclude=True)
    network: Optional[NetworkInfo] = None


class RequestModel(CamelModel):
    """Request body; numeric JSON values are accepted for string fields"""

    @field_validator("*", mode="before")
    @classmethod
    def numbers_to_str(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class PairingCodeRequest(RequestModel):
    """Body of POST /api/pairing/code"""
    setup_code: str = Field(..., min_length=1)
    node_id: Optional[str] = None
    discriminator: Optional[str] = None


class DevicePairRequest(RequestModel):
    """Body of POST /api/device/pair"""
    manual_pairing_code: str = Field(..., min_length=1)
    device_id: str = Field(..., min_length=1)


class WifiCommissionRequest(RequestModel):
    """Body of POST /api/commissioning/wifi and /api/device/commission"""
    ssid: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    node_id: Optional[str] = None
    device_id: Optional[str] = None
    discriminator: Optional[str] = None


class DeviceSetupRequest(RequestModel):
    """Body of POST /api/device/setup (pair and commission in one call)"""
    setup_pin_code: str = Field(..., min_length=1)
    node_id: str = Field(..., min_length=1)
    ssid: Optional[str] = None
    password: Optional[str] = None
    discriminator: Optional[str] = None
    network_type: Literal["wifi", "thread"] = "wifi"
    thread_dataset: Optional[str] = None
