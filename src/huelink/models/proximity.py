"""
Proximity Models

Signal-strength samples taken from Bluetooth LE advertisements and the
automation state derived from them.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

# Minimum RSSI a BLE stack reports; means the advertiser is out of range
OUT_OF_RANGE_DBM = -127


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProximityClass(str, Enum):
    """Classification of a batch of samples"""
    IN_RANGE = "in_range"
    OUT_OF_RANGE = "out_of_range"


@dataclass(frozen=True)
class ProximitySample:
    """One observed advertisement"""
    rssi: int  # dBm
    observed_at: datetime = field(default_factory=_utcnow)
    address: Optional[str] = None

    @property
    def out_of_range(self) -> bool:
        return self.rssi <= OUT_OF_RANGE_DBM


@dataclass
class ProximityState:
    """Last classification applied to the fixtures"""
    classification: Optional[ProximityClass] = None
    changed_at: Optional[datetime] = None
    batches_processed: int = 0

    def record(self, classification: ProximityClass) -> None:
        if classification != self.classification:
            self.classification = classification
            self.changed_at = _utcnow()
