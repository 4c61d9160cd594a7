"""
chip-tool argument builder
Produces argv lists; nothing here is ever passed through a shell
"""

import re
from typing import Any, Dict, List, Optional

from services.config_service import BridgeConfig
from services.errors import ValidationError

DISCOVER = "discover"
DISCOVER_STOP = "discoverStop"
DISCOVER_LIST = "discoverList"
PAIR_CODE = "pairCode"
PAIR_CODE_WIFI = "pairCodeWifi"
PAIR_BLE_WIFI = "pairBleWifi"
PAIR_BLE_THREAD = "pairBleThread"

COMMAND_KINDS = (
    DISCOVER, DISCOVER_STOP, DISCOVER_LIST,
    PAIR_CODE, PAIR_CODE_WIFI, PAIR_BLE_WIFI, PAIR_BLE_THREAD,
)

NODE_ID_PATTERN = re.compile(r"^\d{1,20}$")
SETUP_CODE_PATTERN = re.compile(r"^(MT:[0-9A-Z.\-]+|[0-9][0-9\-\s]*[0-9])$")
PIN_CODE_PATTERN = re.compile(r"^\d{1,8}$")
DATASET_PATTERN = re.compile(r"^(hex:)?[0-9A-Fa-f]+$")
MAX_DISCRIMINATOR = 4095


def _require(payload: Dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if value is None or str(value) == "":
        raise ValidationError(f"Missing required field '{key}'")
    value = str(value)
    if "\x00" in value or "\n" in value or "\r" in value:
        raise ValidationError(f"Field '{key}' contains control characters")
    return value


def _node_id(payload: Dict[str, Any]) -> str:
    node_id = _require(payload, "nodeId")
    if not NODE_ID_PATTERN.match(node_id):
        raise ValidationError(f"Invalid nodeId '{node_id}': must be numeric")
    return node_id


def _setup_code(payload: Dict[str, Any], key: str) -> str:
    code = _require(payload, key)
    if not SETUP_CODE_PATTERN.match(code):
        raise ValidationError(f"Invalid {key}: expected a manual pairing code or MT: QR payload")
    # Manual codes are often typed as "3497-011-2332"
    if not code.startswith("MT:"):
        code = re.sub(r"[\s\-]", "", code)
    return code


def _pin_code(payload: Dict[str, Any]) -> str:
    pin = _require(payload, "setupPinCode")
    if not PIN_CODE_PATTERN.match(pin):
        raise ValidationError("Invalid setupPinCode: must be up to 8 digits")
    return pin


def validate_discriminator(value: str) -> str:
    """Check a 12-bit long discriminator; raises ValidationError"""
    if not value.isdigit() or int(value) > MAX_DISCRIMINATOR:
        raise ValidationError(f"Invalid discriminator '{value}': must be 0-{MAX_DISCRIMINATOR}")
    return value


def _discriminator(payload: Dict[str, Any]) -> str:
    return validate_discriminator(_require(payload, "discriminator"))


def _dataset(payload: Dict[str, Any], config: BridgeConfig) -> str:
    dataset = payload.get("threadDataset") or config.thread_dataset
    if not dataset:
        raise ValidationError("Missing Thread operational dataset")
    if not DATASET_PATTERN.match(dataset):
        raise ValidationError("Invalid Thread dataset: expected hex")
    return dataset if dataset.startswith("hex:") else f"hex:{dataset}"


def _trust_store_args(config: BridgeConfig) -> List[str]:
    if config.paa_trust_store_path:
        return ["--paa-trust-store-path", str(config.paa_trust_store_path)]
    return []


def build_command(kind: str, payload: Optional[Dict[str, Any]], config: BridgeConfig) -> List[str]:
    """
    Build chip-tool arguments for one operation

    Args:
        kind: One of COMMAND_KINDS
        payload: Validated request fields using camelCase keys
        config: Bridge configuration (trust store, Thread dataset)

    Returns:
        Argument list, excluding the chip-tool executable itself

    Raises:
        ValidationError: unknown kind or invalid field value
    """
    payload = payload or {}

    if kind == DISCOVER:
        return ["discover", "commissionables"]
    if kind == DISCOVER_STOP:
        return ["discover", "stop"]
    if kind == DISCOVER_LIST:
        return ["discover", "list"]

    if kind == PAIR_CODE:
        args = ["pairing", "code", _node_id(payload), _setup_code(payload, "setupCode")]
    elif kind == PAIR_CODE_WIFI:
        args = [
            "pairing", "code-wifi", _node_id(payload),
            _require(payload, "ssid"), _require(payload, "password"),
            _setup_code(payload, "setupCode"),
        ]
    elif kind == PAIR_BLE_WIFI:
        args = [
            "pairing", "ble-wifi", _node_id(payload),
            _require(payload, "ssid"), _require(payload, "password"),
            _pin_code(payload), _discriminator(payload),
        ]
    elif kind == PAIR_BLE_THREAD:
        args = [
            "pairing", "ble-thread", _node_id(payload),
            _dataset(payload, config), _pin_code(payload), _discriminator(payload),
        ]
    else:
        raise ValidationError(f"Unknown command kind '{kind}'")

    return args + _trust_store_args(config)


def redact_args(args: List[str], secrets: List[str]) -> List[str]:
    """Copy of args with secret values masked, for logging"""
    hidden = {secret for secret in secrets if secret}
    return ["***" if arg in hidden else arg for arg in args]
