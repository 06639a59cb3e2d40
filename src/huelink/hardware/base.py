"""
Advertisement Source Base Class

Defines the interface every proximity signal source implements, allowing
easy swapping between the Bluetooth LE scanner and the scripted mock.
"""
from abc import ABC, abstractmethod
from typing import AsyncIterator, List

from huelink.models.proximity import ProximitySample


class AdvertisementSource(ABC):
    """Base class for sources of ProximitySample batches"""

    def __init__(self, name: str):
        """
        Initialize advertisement source

        Args:
            name: Human-readable source name
        """
        self.name = name
        self.connected = False

    @abstractmethod
    async def connect(self) -> bool:
        """
        Start receiving advertisements

        Returns:
            True if the source started, False otherwise
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Stop receiving advertisements"""
        pass

    def is_connected(self) -> bool:
        return self.connected

    @abstractmethod
    def batches(self) -> AsyncIterator[List[ProximitySample]]:
        """
        Yield batches of samples until disconnected

        Each batch holds the samples observed together for one proximity event.
        """
        pass
