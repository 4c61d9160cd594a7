"""
Shared request dependencies: services live on app.state, built once per process
"""

import logging
from typing import Iterable, List

from fastapi import Request

from services.command_runner import ChipToolRunner
from services.config_service import BridgeConfig
from services.device_registry import DeviceRegistry
from services.errors import CommandError, classify_tool_error

logger = logging.getLogger(__name__)


def get_config(request: Request) -> BridgeConfig:
    return request.app.state.config


def get_registry(request: Request) -> DeviceRegistry:
    return request.app.state.registry


def get_runner(request: Request) -> ChipToolRunner:
    return request.app.state.runner


async def run_chip_tool(runner: ChipToolRunner, args: List[str], secrets: Iterable[str] = ()) -> str:
    """Run chip-tool, turning raw runner failures into classified BridgeErrors"""
    try:
        return await runner.run(args, secrets=secrets)
    except CommandError as e:
        error = classify_tool_error(e)
        logger.error(f"Matter command failed [{error.kind.value}]: {error.message}")
        raise error
