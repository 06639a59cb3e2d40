"""
huelink Automation Logic

- Proximity controller driving fixture power from BLE signal batches
- Named color conversion to hub hue/saturation/brightness
"""

from huelink.logic.proximity import BatchResult, ProximityController
from huelink.logic.colors import HsbColor, color_change, lookup_color, rgb_to_hsb

__all__ = [
    "BatchResult",
    "ProximityController",
    "HsbColor",
    "color_change",
    "lookup_color",
    "rgb_to_hsb",
]
