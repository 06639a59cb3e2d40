"""
Mock Advertisement Source - Scripted proximity events for development

Replays a fixed sequence of RSSI batches without a Bluetooth radio.
"""
import asyncio
from typing import AsyncIterator, List, Optional, Sequence

import structlog

from huelink.hardware.base import AdvertisementSource
from huelink.models.proximity import OUT_OF_RANGE_DBM, ProximitySample

logger = structlog.get_logger(__name__)

# Arrive, leave
DEFAULT_SCRIPT = [[-58, -61], [OUT_OF_RANGE_DBM]]


class MockAdvertisementSource(AdvertisementSource):
    """
    Mock BLE source

    Yields one batch per script entry, ``interval`` seconds apart.
    """

    def __init__(
        self,
        script: Optional[Sequence[Sequence[int]]] = None,
        interval: float = 5.0,
        repeat: bool = False,
    ):
        """
        Initialize mock source

        Args:
            script: RSSI readings per batch
            interval: Seconds between batches
            repeat: Start over at the end of the script
        """
        super().__init__("BLE-Mock")
        self.script = [list(batch) for batch in (script if script is not None else DEFAULT_SCRIPT)]
        self.interval = interval
        self.repeat = repeat
        self.batches_emitted = 0

        logger.info("ble_mock_initialized", batches=len(self.script), repeat=repeat)

    async def connect(self) -> bool:
        self.connected = True
        logger.info("ble_mock_connected")
        return True

    async def disconnect(self) -> None:
        self.connected = False
        logger.info("ble_mock_disconnected")

    async def batches(self) -> AsyncIterator[List[ProximitySample]]:
        while self.connected:
            for readings in self.script:
                if not self.connected:
                    return
                await asyncio.sleep(self.interval)
                self.batches_emitted += 1
                yield [ProximitySample(rssi=rssi) for rssi in readings]
            if not self.repeat:
                return
