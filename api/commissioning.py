"""
Commissioning API endpoints
Hand network credentials to paired devices
"""

import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_config, get_registry, get_runner, run_chip_tool
from models.schemas import DeviceSetupRequest, DeviceStatus, NetworkType, WifiCommissionRequest
from services.command_builder import (
    PAIR_BLE_THREAD,
    PAIR_BLE_WIFI,
    PAIR_CODE_WIFI,
    build_command,
    validate_discriminator,
)
from services.command_runner import ChipToolRunner
from services.config_service import BridgeConfig
from services.device_registry import DeviceRegistry
from services.errors import ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Commissioning"])


@router.post("/api/commissioning/wifi")
@router.post("/api/device/commission")
async def commission_wifi(
    request: WifiCommissionRequest,
    config: BridgeConfig = Depends(get_config),
    registry: DeviceRegistry = Depends(get_registry),
    runner: ChipToolRunner = Depends(get_runner),
):
    """Commission a paired device onto a Wi-Fi network"""
    node_id = request.node_id or request.device_id or config.default_node_id
    entry = registry.require(node_id)
    registry.expect_status(entry, DeviceStatus.PAIRED, "commission")
    discriminator = validate_discriminator(request.discriminator) if request.discriminator else None

    logger.info(f"Wi-Fi commissioning started - NodeID: {node_id}, SSID: {request.ssid}")
    payload = {
        "nodeId": node_id,
        "ssid": request.ssid,
        "password": request.password,
        "setupCode": entry.setup_code,
    }
    args = build_command(PAIR_CODE_WIFI, payload, config)
    output = await run_chip_tool(runner, args, secrets=[request.password, args[5]])

    entry = registry.mark_commissioned(node_id, request.ssid, NetworkType.WIFI, discriminator)
    return {
        "status": "success",
        "message": "Wi-Fi setup and commissioning completed",
        "deviceInfo": entry.to_json_dict(),
        "output": output,
    }


@router.post("/api/device/setup")
async def setup_device(
    request: DeviceSetupRequest,
    config: BridgeConfig = Depends(get_config),
    registry: DeviceRegistry = Depends(get_registry),
    runner: ChipToolRunner = Depends(get_runner),
):
    """Pair and commission a discovered device over BLE in one call"""
    entry = registry.require(request.node_id)
    registry.expect_status(entry, DeviceStatus.DISCOVERED, "set up")

    discriminator = request.discriminator or entry.discriminator
    payload = {
        "nodeId": request.node_id,
        "setupPinCode": request.setup_pin_code,
        "discriminator": discriminator,
    }

    if request.network_type == "thread":
        network_type = NetworkType.THREAD
        payload["threadDataset"] = request.thread_dataset
        args = build_command(PAIR_BLE_THREAD, payload, config)
        secrets = [request.setup_pin_code, args[3]]
    else:
        network_type = NetworkType.WIFI
        ssid = request.ssid or config.wifi_ssid
        password = request.password or config.wifi_password
        if not ssid or not password:
            raise ValidationError("Wi-Fi SSID and password are required")
        payload.update({"ssid": ssid, "password": password})
        args = build_command(PAIR_BLE_WIFI, payload, config)
        secrets = [request.setup_pin_code, password]

    logger.info(f"Device setup started - NodeID: {request.node_id}, network: {network_type.value}")
    await run_chip_tool(runner, args, secrets=secrets)

    registry.mark_paired(request.node_id, request.setup_pin_code, discriminator)
    entry = registry.mark_commissioned(request.node_id, payload.get("ssid"), network_type)
    return {
        "status": "success",
        "message": "Device setup completed",
        "deviceInfo": entry.to_json_dict(),
    }
