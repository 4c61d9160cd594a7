"""
Logging setup and daily log file access
Log lines go to the console and to <log_path>/matter_YYYY-MM-DD.log
"""

import re
import logging
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional

from services.errors import NotFoundError, ValidationError

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class IsoFormatter(logging.Formatter):
    """Formatter using ISO-8601 timestamps"""

    def formatTime(self, record, datefmt=None):
        return datetime.fromtimestamp(record.created).isoformat(timespec="milliseconds")


def log_file_for(log_path: Path, day: date) -> Path:
    return Path(log_path) / f"matter_{day.isoformat()}.log"


class DailyFileHandler(logging.FileHandler):
    """FileHandler that switches to a new matter_<date>.log file every day"""

    def __init__(self, log_path: Path, encoding: str = "utf-8"):
        self.log_path = Path(log_path)
        self.log_path.mkdir(parents=True, exist_ok=True)
        self.current_day = date.today()
        super().__init__(log_file_for(self.log_path, self.current_day), encoding=encoding, delay=True)

    def emit(self, record):
        day = date.fromtimestamp(record.created)
        if day != self.current_day:
            self.acquire()
            try:
                self.close()
                self.current_day = day
                self.baseFilename = str(log_file_for(self.log_path, day).resolve())
            finally:
                self.release()
        super().emit(record)


def setup_logging(log_path: Path, level: str = "INFO") -> DailyFileHandler:
    """
    Configure root logging for the bridge

    Args:
        log_path: Directory for daily log files
        level: Log level name

    Returns:
        The installed file handler
    """
    formatter = IsoFormatter(LOG_FORMAT)
    root = logging.getLogger()
    root.setLevel(level.upper())

    for handler in list(root.handlers):
        if isinstance(handler, DailyFileHandler):
            root.removeHandler(handler)
            handler.close()

    if not any(type(h) is logging.StreamHandler for h in root.handlers):
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        root.addHandler(console)

    file_handler = DailyFileHandler(log_path)
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)
    return file_handler


def read_logs(log_path: Path, log_date: Optional[str] = None) -> List[str]:
    """
    Read the log file of one day

    Args:
        log_path: Directory holding daily log files
        log_date: "YYYY-MM-DD", defaults to today

    Raises:
        ValidationError: malformed date
        NotFoundError: no log file for that day
    """
    if log_date:
        if not DATE_PATTERN.match(log_date):
            raise ValidationError(f"Invalid date '{log_date}': expected YYYY-MM-DD")
        try:
            day = date.fromisoformat(log_date)
        except ValueError:
            raise ValidationError(f"Invalid date '{log_date}'")
    else:
        day = date.today()

    log_file = log_file_for(log_path, day)
    if not log_file.exists():
        raise NotFoundError(f"No logs found for {day.isoformat()}")

    with open(log_file, "r", encoding="utf-8", errors="replace") as f:
        return [line.rstrip("\n") for line in f if line.strip()]
