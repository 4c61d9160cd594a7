"""
In-memory device registry
Tracks discovered -> paired -> commissioned status per node id
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from models.schemas import DeviceRecord, DeviceStatus, NetworkInfo, NetworkType, RegistryEntry
from services.errors import InvalidStateError, NotFoundError

logger = logging.getLogger(__name__)


class DeviceRegistry:
    """
    Process-lifetime store of RegistryEntry objects keyed by node id

    Every transition requires the previous status:
    discovered -> paired -> commissioned. A new discovery of the same node id
    replaces the entry and starts over at discovered.

    Entries are copied on the way in and out so callers never hold a live
    reference; re-fetch before mutating.
    """

    def __init__(self):
        self._entries: Dict[str, RegistryEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._entries

    def upsert_discovered(self, record: DeviceRecord) -> RegistryEntry:
        """Insert or fully replace the entry for record.node_id"""
        fields = record.model_dump(include=set(DeviceRecord.model_fields))
        entry = RegistryEntry(
            **fields,
            status=DeviceStatus.DISCOVERED,
            timestamp=datetime.now(),
        )
        # Replacing keeps the original insertion position in the dict
        self._entries[entry.node_id] = entry
        logger.debug(f"Registered discovered device {entry.node_id} ({entry.name})")
        return entry.model_copy(deep=True)

    def get(self, node_id: str) -> Optional[RegistryEntry]:
        entry = self._entries.get(node_id)
        return entry.model_copy(deep=True) if entry else None

    def require(self, node_id: str) -> RegistryEntry:
        """Like get() but raises NotFoundError for unknown ids"""
        entry = self.get(node_id)
        if entry is None:
            raise NotFoundError(f"Device {node_id} not found")
        return entry

    def list(self) -> List[RegistryEntry]:
        """All entries in insertion order"""
        return [entry.model_copy(deep=True) for entry in self._entries.values()]

    def expect_status(self, entry: RegistryEntry, expected: DeviceStatus, action: str):
        if entry.status != expected:
            raise InvalidStateError(
                f"Cannot {action} device {entry.node_id}: status is "
                f"'{entry.status.value}', expected '{expected.value}'"
            )

    def mark_paired(self, node_id: str, setup_code: str,
                    discriminator: Optional[str] = None) -> RegistryEntry:
        """
        Record a successful pairing

        Raises:
            NotFoundError: node id was never discovered
            InvalidStateError: device is not in discovered status
        """
        entry = self.require(node_id)
        self.expect_status(entry, DeviceStatus.DISCOVERED, "pair")

        entry.status = DeviceStatus.PAIRED
        entry.setup_code = setup_code
        if discriminator:
            entry.discriminator = discriminator
        entry.timestamp = datetime.now()
        self._entries[node_id] = entry
        logger.info(f"Device {node_id} paired")
        return entry.model_copy(deep=True)

    def mark_commissioned(self, node_id: str, ssid: Optional[str] = None,
                          network_type: NetworkType = NetworkType.WIFI,
                          discriminator: Optional[str] = None) -> RegistryEntry:
        """
        Record successful network commissioning

        Raises:
            NotFoundError: node id unknown
            InvalidStateError: device is not paired
        """
        entry = self.require(node_id)
        self.expect_status(entry, DeviceStatus.PAIRED, "commission")

        now = datetime.now()
        entry.status = DeviceStatus.COMMISSIONED
        if discriminator:
            entry.discriminator = discriminator
        entry.network = NetworkInfo(type=network_type, ssid=ssid, timestamp=now)
        entry.network_type = network_type
        entry.timestamp = now
        self._entries[node_id] = entry
        logger.info(f"Device {node_id} commissioned on {network_type.value} network {ssid or ''}".rstrip())
        return entry.model_copy(deep=True)
