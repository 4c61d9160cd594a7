"""
Pairing API endpoints
Pair a discovered device with its manual pairing code
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from api.dependencies import get_config, get_registry, get_runner, run_chip_tool
from models.schemas import DevicePairRequest, DeviceStatus, PairingCodeRequest
from services.command_builder import PAIR_CODE, build_command, validate_discriminator
from services.command_runner import ChipToolRunner
from services.config_service import BridgeConfig
from services.device_registry import DeviceRegistry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Pairing"])


async def pair_device(node_id: str, setup_code: str, discriminator: Optional[str], config: BridgeConfig,
                      registry: DeviceRegistry, runner: ChipToolRunner):
    """Run "pairing code" for a discovered device; returns (entry, chip-tool output)"""
    entry = registry.require(node_id)
    registry.expect_status(entry, DeviceStatus.DISCOVERED, "pair")
    if discriminator:
        validate_discriminator(discriminator)

    logger.info(f"Pairing started - NodeID: {node_id}")
    args = build_command(PAIR_CODE, {"nodeId": node_id, "setupCode": setup_code}, config)
    output = await run_chip_tool(runner, args, secrets=[args[3]])

    entry = registry.mark_paired(node_id, setup_code, discriminator)
    return entry, output


@router.post("/api/pairing/code")
async def pair_with_code(
    request: PairingCodeRequest,
    config: BridgeConfig = Depends(get_config),
    registry: DeviceRegistry = Depends(get_registry),
    runner: ChipToolRunner = Depends(get_runner),
):
    """Pair a device with its setup code"""
    node_id = request.node_id or config.default_node_id
    entry, output = await pair_device(
        node_id, request.setup_code, request.discriminator, config, registry, runner
    )
    return {
        "status": "success",
        "message": "Device pairing completed",
        "deviceInfo": entry.to_json_dict(),
        "output": output,
    }


@router.post("/api/device/pair")
async def pair_device_manual(
    request: DevicePairRequest,
    config: BridgeConfig = Depends(get_config),
    registry: DeviceRegistry = Depends(get_registry),
    runner: ChipToolRunner = Depends(get_runner),
):
    """Pair a previously discovered device with its manual pairing code"""
    entry, _ = await pair_device(
        request.device_id, request.manual_pairing_code, None, config, registry, runner
    )
    return {
        "status": "success",
        "message": "Device pairing completed",
        "deviceInfo": entry.to_json_dict(),
    }
