"""
Discovery output parser
Turns chip-tool "discover commissionables" log output into DeviceRecord objects
"""

import re
import logging
from typing import Dict, List, Optional, Tuple

from models.schemas import DeviceRecord, NetworkType

logger = logging.getLogger(__name__)

NODE_MARKER = "Discovered commissionable/commissioner node:"
NOT_PRESENT = "not present"
DISCOVERY_TAG = "DIS"

ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")

# "[1712345678.123] [1234:5678] [DIS] " and chip-tool's own
# "[1712345678.123][1234:5678] CHIP:DIS: "
LOG_PREFIX = re.compile(
    r"^\s*\[\d+(?:\.\d+)?\]\s*\[\d+:\d+\]\s*(?:\[(?P<tag>[A-Za-z]+)\]|CHIP:(?P<chip_tag>[A-Za-z]+):?)\s*"
)

IP_ADDRESS_LABEL = re.compile(r"^IP Address #\d+$")
THREAD_HINT = re.compile(r"\bthread\b", re.IGNORECASE)

# Label -> DeviceRecord field holding the raw text value
TEXT_FIELDS = {
    "Hostname": "name",
    "Port": "port",
    "Vendor ID": "vendor_id",
    "Product ID": "product_id",
    "Device Type": "device_type",
    "Device Name": "device_name",
    "Long Discriminator": "discriminator",
    "Pairing Hint": "pairing_hint",
    "Instance Name": "instance_name",
    "Commissioning Mode": "commissioning_mode",
    "Rotating ID": "rotating_id",
    "Mrp Interval idle": "mrp_interval_idle",
    "Mrp Interval active": "mrp_interval_active",
    "ICD": "icd",
}

BOOL_FIELDS = {
    "Supports Commissioner Generated Passcode": "supports_commissioner_generated_passcode",
    "TCP Client Supported": "tcp_client_supported",
}


def strip_ansi(text: str) -> str:
    """Remove ANSI colour escape sequences"""
    return ANSI_ESCAPE.sub("", text)


def strip_log_prefix(line: str) -> str:
    """Remove the timestamp/thread/tag prefix chip-tool puts on every log line"""
    return LOG_PREFIX.sub("", line, count=1)


def log_tag(line: str) -> Optional[str]:
    """Subsystem tag of a prefixed log line ("DIS", "DL", ...), None for bare lines"""
    match = LOG_PREFIX.match(line)
    if not match:
        return None
    return match.group("tag") or match.group("chip_tag")


def has_tag(line: str, tag: str) -> bool:
    return f"[{tag}]" in line or f"CHIP:{tag}" in line


def split_field(line: str) -> Optional[Tuple[str, str]]:
    """
    Split a "Label: value" line

    Returns:
        (label, value) with surrounding whitespace removed, or None
    """
    if ":" not in line:
        return None
    label, value = line.split(":", 1)
    return label.strip(), strip_ansi(value).strip()


def _tagged_lines(output: str, tag: Optional[str] = None) -> List[Tuple[Optional[str], str]]:
    lines = []
    for raw_line in output.splitlines():
        line = strip_ansi(raw_line)
        if tag and not has_tag(line, tag):
            continue
        lines.append((log_tag(line), strip_log_prefix(line).strip()))
    return lines


def clean_lines(output: str, tag: Optional[str] = None) -> List[str]:
    """Strip escapes and log prefixes, optionally keeping only lines with a log tag"""
    return [line for _, line in _tagged_lines(output, tag)]


def _new_record() -> Dict:
    return {"addresses": [], "network_type": NetworkType.WIFI}


def _apply_field(record: Dict, label: str, value: str) -> bool:
    """Store a recognised field; returns False for unknown labels"""
    if IP_ADDRESS_LABEL.match(label):
        if value and value != NOT_PRESENT:
            record["addresses"].append(value)
    elif label in TEXT_FIELDS:
        if value and value != NOT_PRESENT:
            record[TEXT_FIELDS[label]] = value
    elif label == "Supports Commissioner Generated Passcode":
        record[BOOL_FIELDS[label]] = value.lower() == "true"
    elif label in BOOL_FIELDS:
        record[BOOL_FIELDS[label]] = value.lower() in ("true", "1")
    else:
        return False
    return True


def _finish_record(record: Dict, node_id: int) -> DeviceRecord:
    no_ip_evidence = not record["addresses"] and not record.get("port") and not record.get("name")
    if no_ip_evidence and record["network_type"] == NetworkType.WIFI:
        record["network_type"] = NetworkType.UNKNOWN
    record["node_id"] = str(node_id)
    return DeviceRecord(**record)


def parse_discovery_output(output: Optional[str], first_node_id: int = 1,
                           tag: Optional[str] = None) -> List[DeviceRecord]:
    """
    Parse chip-tool discovery output into device records

    Node ids are positional within this scan: the first record gets
    first_node_id, the next one first_node_id + 1 and so on. They are not
    stable across scans.

    Args:
        output: Raw stdout of the discovery command
        first_node_id: Node id of the first record (the caller's counter)
        tag: Only consider log lines carrying this tag (e.g. "DIS")

    Returns:
        Records in the order they appear; empty list on empty or unparseable input
    """
    if not output or not output.strip():
        return []

    try:
        blocks: List[Dict] = []
        current: Optional[Dict] = None

        for line_tag, line in _tagged_lines(output, tag):
            if NODE_MARKER in line:
                if current is not None:
                    blocks.append(current)
                current = _new_record()
                continue

            if current is None:
                continue

            field = split_field(line)
            if field and _apply_field(current, *field):
                continue

            # Thread devices only show up in free-form lines, e.g. "Transport: Thread".
            # Only untagged and DIS lines belong to the device block.
            if line_tag in (None, DISCOVERY_TAG) and THREAD_HINT.search(line):
                current["network_type"] = NetworkType.THREAD

        if current is not None:
            blocks.append(current)

        devices = [_finish_record(block, first_node_id + index) for index, block in enumerate(blocks)]
        logger.info(f"Parsed {len(devices)} device(s) from discovery output")
        return devices

    except Exception as e:
        logger.error(f"Failed to parse discovery output: {e}", exc_info=True)
        return []
