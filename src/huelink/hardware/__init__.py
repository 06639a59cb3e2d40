"""
huelink Proximity Sources

Provides sources of Bluetooth LE signal-strength batches:
- bleak-backed scanner for real radios
- scripted mock for development and testing
"""

from huelink.hardware.base import AdvertisementSource
from huelink.hardware.mock import MockAdvertisementSource

__all__ = [
    "AdvertisementSource",
    "MockAdvertisementSource",
]
