"""
Discovery API endpoints
Scan for commissionable Matter devices through chip-tool
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from api.dependencies import get_config, get_registry, get_runner, run_chip_tool
from models.schemas import DeviceRecord
from services.command_builder import DISCOVER, DISCOVER_LIST, DISCOVER_STOP, build_command
from services.command_runner import ChipToolRunner
from services.config_service import BridgeConfig
from services.device_registry import DeviceRegistry
from services.discovery_parser import parse_discovery_output
from services.errors import CommandError, CommandTimeoutError, classify_tool_error

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Discovery"])


def _serialize(devices: List[DeviceRecord]) -> List[Dict[str, Any]]:
    return [device.to_json_dict() for device in devices]


@router.post("/api/discovery/scan")
@router.post("/api/device/search")
async def scan_devices(
    config: BridgeConfig = Depends(get_config),
    registry: DeviceRegistry = Depends(get_registry),
    runner: ChipToolRunner = Depends(get_runner),
):
    """Discover commissionable devices and register them"""
    logger.info("Starting Matter device discovery...")
    args = build_command(DISCOVER, None, config)

    try:
        output = await runner.run(args)
    except CommandTimeoutError as e:
        # Keep whatever was discovered before the timeout
        devices = parse_discovery_output(e.stdout)
        if not devices:
            error = classify_tool_error(e)
            logger.error(f"Discovery failed [{error.kind.value}]: {error.message}")
            raise error
        logger.warning(f"Discovery timed out, returning {len(devices)} device(s) found so far")
        output = e.stdout
    except CommandError as e:
        error = classify_tool_error(e)
        logger.error(f"Discovery failed [{error.kind.value}]: {error.message}")
        raise error

    # Node ids restart at 1 for every scan
    devices = parse_discovery_output(output, first_node_id=1)
    for device in devices:
        registry.upsert_discovered(device)

    logger.info(f"Discovery complete: {len(devices)} commissionable device(s)")
    return {
        "status": "success",
        "message": "Commissionable device discovery completed",
        "devices": _serialize(devices),
    }


@router.post("/api/discovery/stop")
async def stop_discovery(
    config: BridgeConfig = Depends(get_config),
    runner: ChipToolRunner = Depends(get_runner),
):
    """Stop a running discovery"""
    logger.info("Stopping Matter device discovery...")
    result = await run_chip_tool(runner, build_command(DISCOVER_STOP, None, config))
    return {
        "status": "success",
        "message": "Device discovery stopped",
        "result": result,
    }


@router.get("/api/discovery/list")
async def list_discovered(
    config: BridgeConfig = Depends(get_config),
    runner: ChipToolRunner = Depends(get_runner),
):
    """List devices chip-tool currently knows about (registry is left untouched)"""
    logger.info("Listing discovered Matter devices...")
    output = await run_chip_tool(runner, build_command(DISCOVER_LIST, None, config))
    devices = parse_discovery_output(output)

    if not devices:
        return {
            "status": "success",
            "message": "No discovered devices",
            "devices": [],
        }

    return {
        "status": "success",
        "message": f"Found {len(devices)} discovered device(s)",
        "devices": _serialize(devices),
    }
