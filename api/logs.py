"""
Logs API endpoint
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_config
from services.config_service import BridgeConfig
from services.log_service import read_logs

router = APIRouter(prefix="/api/logs", tags=["Logs"])


@router.get("")
async def get_logs(
    log_date: Optional[str] = Query(default=None, alias="date"),
    config: BridgeConfig = Depends(get_config),
):
    """Return the lines of one day's log file (today by default)"""
    logs = read_logs(config.log_path, log_date)
    return {
        "status": "success",
        "date": log_date or date.today().isoformat(),
        "logs": logs,
    }
