"""
Bluetooth LE Advertisement Source

Scans for advertisements from one tracked beacon with bleak and reports
range transitions as sample batches, emulating a signal-strength filter:

- In range once a matching advertisement at or above ``in_range_dbm`` is seen
- Stays in range while advertisements above ``out_of_range_dbm`` keep arriving
- Out of range when none arrive for ``out_of_range_timeout`` seconds; the
  batch then carries a single sentinel sample (OUT_OF_RANGE_DBM)

Only transitions produce batches.
"""
import asyncio
from typing import AsyncIterator, List, Optional

import structlog
from bleak import BleakScanner
from bleak.backends.device import BLEDevice
from bleak.backends.scanner import AdvertisementData
from bleak.exc import BleakError

from huelink.hardware.base import AdvertisementSource
from huelink.models.proximity import OUT_OF_RANGE_DBM, ProximitySample

logger = structlog.get_logger(__name__)

DEFAULT_COMPANY_ID = 0xFFFE
DEFAULT_MANUFACTURER_PREFIX = b"\x12\x34"


class BleakAdvertisementSource(AdvertisementSource):
    """
    Proximity source backed by a bleak scanner
    """

    def __init__(
        self,
        company_id: int = DEFAULT_COMPANY_ID,
        manufacturer_prefix: bytes = DEFAULT_MANUFACTURER_PREFIX,
        in_range_dbm: int = -65,
        out_of_range_dbm: int = -70,
        out_of_range_timeout: float = 2.0,
        sampling_interval: float = 1.0,
    ):
        """
        Initialize BLE source

        Args:
            company_id: Manufacturer company id the beacon advertises with
            manufacturer_prefix: Required prefix of the manufacturer payload
            in_range_dbm: RSSI at or above which the beacon counts as arriving
            out_of_range_dbm: RSSI at or below which a sample does not count as presence
            out_of_range_timeout: Seconds without presence before reporting out of range
            sampling_interval: Seconds between evaluations
        """
        super().__init__("BLE")

        self.company_id = company_id
        self.manufacturer_prefix = manufacturer_prefix
        self.in_range_dbm = in_range_dbm
        self.out_of_range_dbm = out_of_range_dbm
        self.out_of_range_timeout = out_of_range_timeout
        self.sampling_interval = sampling_interval

        self.in_range = False
        self._last_present: Optional[float] = None
        self._pending: List[ProximitySample] = []
        self._scanner: Optional[BleakScanner] = None

        # Statistics
        self.advertisements_seen = 0
        self.advertisements_matched = 0

    async def connect(self) -> bool:
        try:
            self._scanner = BleakScanner(detection_callback=self._on_advertisement)
            await self._scanner.start()
        except (BleakError, OSError) as e:
            logger.error("ble_scanner_start_failed", error=str(e))
            self._scanner = None
            return False

        self.connected = True
        logger.info(
            "ble_scanner_started",
            company_id=f"0x{self.company_id:04X}",
            in_range_dbm=self.in_range_dbm,
            out_of_range_dbm=self.out_of_range_dbm,
        )
        return True

    async def disconnect(self) -> None:
        self.connected = False
        if self._scanner is not None:
            try:
                await self._scanner.stop()
            except (BleakError, OSError) as e:
                logger.warning("ble_scanner_stop_failed", error=str(e))
            self._scanner = None
        logger.info("ble_scanner_stopped")

    def _matches(self, advertisement: AdvertisementData) -> bool:
        data = advertisement.manufacturer_data.get(self.company_id)
        return data is not None and bytes(data).startswith(self.manufacturer_prefix)

    def _on_advertisement(self, device: BLEDevice, advertisement: AdvertisementData) -> None:
        self.advertisements_seen += 1
        if not self._matches(advertisement):
            return
        self.advertisements_matched += 1
        self._pending.append(ProximitySample(rssi=advertisement.rssi, address=device.address))

    def evaluate(self, now: float) -> Optional[List[ProximitySample]]:
        """
        Consume pending samples and decide whether a transition happened

        Args:
            now: Monotonic time in seconds

        Returns:
            Batch describing the transition, or None
        """
        samples, self._pending = self._pending, []

        if not self.in_range:
            arriving = [s for s in samples if s.rssi >= self.in_range_dbm]
            if arriving:
                self.in_range = True
                self._last_present = now
                logger.info("ble_beacon_in_range", rssi=max(s.rssi for s in arriving))
                return arriving
            return None

        if any(s.rssi > self.out_of_range_dbm for s in samples):
            self._last_present = now
            return None

        if self._last_present is not None and now - self._last_present >= self.out_of_range_timeout:
            self.in_range = False
            self._last_present = None
            logger.info("ble_beacon_out_of_range")
            return [ProximitySample(rssi=OUT_OF_RANGE_DBM)]

        return None

    async def batches(self) -> AsyncIterator[List[ProximitySample]]:
        loop = asyncio.get_running_loop()
        while self.connected:
            await asyncio.sleep(self.sampling_interval)
            batch = self.evaluate(loop.time())
            if batch:
                yield batch
