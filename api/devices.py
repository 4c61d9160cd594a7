"""
Devices API endpoints
Read-only view of the device registry
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_registry
from services.device_registry import DeviceRegistry

router = APIRouter(prefix="/api/device", tags=["Devices"])


@router.get("/list")
async def list_devices(registry: DeviceRegistry = Depends(get_registry)):
    """All known devices in the order they were first seen"""
    devices = [entry.to_json_dict() for entry in registry.list()]
    return {
        "status": "success",
        "message": f"Found {len(devices)} devices",
        "devices": devices,
    }


@router.get("/{node_id}")
async def get_device(node_id: str, registry: DeviceRegistry = Depends(get_registry)):
    """Current state of one device"""
    entry = registry.require(node_id)
    return {"status": "success", "deviceInfo": entry.to_json_dict()}
