"""
Error kinds and exception hierarchy for the Matter bridge
"""

import re
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Error codes reported in the JSON error envelope"""
    VALIDATION = "ValidationError"
    NOT_FOUND = "NotFound"
    INVALID_STATE = "InvalidState"
    TOOL_NOT_FOUND = "ToolNotFound"
    TIMEOUT = "TimeoutError"
    BLE = "BleError"
    DATA_MODEL = "DataModelError"
    TOOL = "ToolError"
    UNKNOWN = "UnknownError"


class BridgeError(Exception):
    """Base error carrying everything needed for an HTTP error response"""

    kind = ErrorKind.UNKNOWN
    status_code = 500

    def __init__(self, message: str, kind: Optional[ErrorKind] = None,
                 status_code: Optional[int] = None, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind
        if status_code is not None:
            self.status_code = status_code
        self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        body = {
            "status": "error",
            "code": self.kind.value,
            "message": self.message,
        }
        if self.error_code:
            body["errorCode"] = self.error_code
        return body


class ValidationError(BridgeError):
    kind = ErrorKind.VALIDATION
    status_code = 400


class NotFoundError(BridgeError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404


class InvalidStateError(BridgeError):
    kind = ErrorKind.INVALID_STATE
    status_code = 400


class CommandError(BridgeError):
    """Failure of an external chip-tool invocation"""

    kind = ErrorKind.TOOL

    def __init__(self, message: str, stdout: str = "", stderr: str = "",
                 returncode: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.stdout = stdout
        self.stderr = stderr
        self.returncode = returncode


class ToolNotFoundError(CommandError):
    kind = ErrorKind.TOOL_NOT_FOUND


class CommandTimeoutError(CommandError):
    kind = ErrorKind.TIMEOUT


# chip-tool prints failures as "CHIP Error 0x00000032: Timeout"
CHIP_ERROR_PATTERN = re.compile(r"CHIP Error (0x[0-9A-Fa-f]+)")

KNOWN_ERROR_CODES = {
    "0x00000032": ErrorKind.TIMEOUT,
}

ERROR_MESSAGES = {
    ErrorKind.TIMEOUT: "Matter command timed out",
    ErrorKind.BLE: "BLE connection failed",
    ErrorKind.DATA_MODEL: "Data model operation failed",
    ErrorKind.TOOL_NOT_FOUND: "chip-tool command not found, check the Matter SDK path",
}


def _substring_kind(text: str, stderr: str) -> ErrorKind:
    """Legacy heuristics for tool output without a structured error code"""
    if "Timeout" in text:
        return ErrorKind.TIMEOUT
    if "CHIP:BLE" in text or "[BLE]" in text:
        return ErrorKind.BLE
    if "CHIP:DMG" in text or "[DMG]" in text:
        return ErrorKind.DATA_MODEL
    if "not found" in text:
        return ErrorKind.TOOL_NOT_FOUND
    if stderr.strip():
        return ErrorKind.TOOL
    return ErrorKind.UNKNOWN


def classify_tool_error(error: Exception) -> BridgeError:
    """
    Map a runner failure to a BridgeError with a definite ErrorKind

    Args:
        error: Exception raised while running chip-tool

    Returns:
        BridgeError ready to be rendered as the error envelope
    """
    if isinstance(error, BridgeError) and not isinstance(error, CommandError):
        return error

    stderr = getattr(error, "stderr", "") or ""
    stdout = getattr(error, "stdout", "") or ""
    message = str(error)
    text = "\n".join(part for part in (message, stderr, stdout) if part)

    error_code = None
    match = CHIP_ERROR_PATTERN.search(text)
    if match:
        error_code = match.group(1).lower()

    if isinstance(error, (ToolNotFoundError, CommandTimeoutError)):
        kind = error.kind
    elif error_code and error_code in KNOWN_ERROR_CODES:
        kind = KNOWN_ERROR_CODES[error_code]
    else:
        kind = _substring_kind(text, stderr)

    if kind == ErrorKind.TOOL:
        detail = f"Matter SDK error: {stderr.strip()}"
    elif kind == ErrorKind.UNKNOWN:
        detail = f"Unknown error: {message}"
    else:
        detail = ERROR_MESSAGES[kind]

    return CommandError(
        detail,
        stdout=stdout,
        stderr=stderr,
        returncode=getattr(error, "returncode", None),
        kind=kind,
        error_code=error_code,
    )
