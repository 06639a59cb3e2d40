"""
Named Colors

Converts RGB colors to the hub's hue/saturation/brightness ranges and maps
color names ("dark blue", "orange") to fixture state changes.

RGB to HSV conversion follows Foley et al., "Introduction to Computer
Graphics" (ISBN 0201609215).
"""
import re
from dataclasses import dataclass
from typing import Dict, Tuple

from huelink.models.fixtures import MAX_BRIGHTNESS, MAX_SATURATION, FixtureStateChange

# One degree of hue in hub units (65535 / 360, rounded down)
HUE_UNITS_PER_DEGREE = 182

NAMED_COLORS: Dict[str, Tuple[int, int, int]] = {
    "aqua": (0, 255, 255),
    "blue": (0, 0, 255),
    "blueviolet": (138, 43, 226),
    "chartreuse": (127, 255, 0),
    "coral": (255, 127, 80),
    "crimson": (220, 20, 60),
    "cyan": (0, 255, 255),
    "darkblue": (0, 0, 139),
    "darkgreen": (0, 100, 0),
    "darkorange": (255, 140, 0),
    "darkred": (139, 0, 0),
    "deeppink": (255, 20, 147),
    "deepskyblue": (0, 191, 255),
    "forestgreen": (34, 139, 34),
    "fuchsia": (255, 0, 255),
    "gold": (255, 215, 0),
    "green": (0, 128, 0),
    "hotpink": (255, 105, 180),
    "indigo": (75, 0, 130),
    "lavender": (230, 230, 250),
    "lightblue": (173, 216, 230),
    "lime": (0, 255, 0),
    "magenta": (255, 0, 255),
    "navy": (0, 0, 128),
    "orange": (255, 165, 0),
    "orangered": (255, 69, 0),
    "pink": (255, 192, 203),
    "purple": (128, 0, 128),
    "red": (255, 0, 0),
    "royalblue": (65, 105, 225),
    "seagreen": (46, 139, 87),
    "skyblue": (135, 206, 235),
    "teal": (0, 128, 128),
    "turquoise": (64, 224, 208),
    "violet": (238, 130, 238),
    "white": (255, 255, 255),
    "yellow": (255, 255, 0),
}


@dataclass(frozen=True)
class HsbColor:
    """A color expressed in hub units"""
    name: str
    hue: int  # 0-65535
    saturation: int  # 0-254
    brightness: int  # 0-254


def rgb_to_hsv(r: int, g: int, b: int) -> Tuple[float, float, float]:
    """
    Convert 8-bit RGB to HSV

    Returns:
        (hue in degrees 0-360, saturation 0.0-1.0, value 0.0-1.0)
    """
    rf, gf, bf = r / 255.0, g / 255.0, b / 255.0
    high = max(rf, gf, bf)
    low = min(rf, gf, bf)
    delta = high - low

    saturation = delta / high if high != 0 else 0.0
    value = high
    if saturation == 0:
        return 0.0, saturation, value

    if rf == high:
        hue = (gf - bf) / delta
    elif gf == high:
        hue = (bf - rf) / delta + 2.0
    else:
        hue = (rf - gf) / delta + 4.0

    hue *= 60.0
    if hue < 0:
        hue += 360.0
    return hue, saturation, value


def rgb_to_hsb(r: int, g: int, b: int, name: str = "") -> HsbColor:
    """Convert 8-bit RGB to hub hue/saturation/brightness"""
    hue, saturation, value = rgb_to_hsv(r, g, b)
    return HsbColor(
        name=name,
        hue=min(int(hue * HUE_UNITS_PER_DEGREE), 65535),
        saturation=min(MAX_SATURATION, int(saturation * 255)),
        brightness=min(MAX_BRIGHTNESS, int(value * 255)),
    )


def normalize_color_name(name: str) -> str:
    """'Dark Blue', 'dark-blue' and 'darkblue' all normalize to 'darkblue'"""
    return re.sub(r"[\s_\-]+", "", name).lower()


def lookup_color(name: str) -> HsbColor:
    """
    Look up a named color

    Raises:
        KeyError: If the name is not a known color
    """
    key = normalize_color_name(name)
    if key not in NAMED_COLORS:
        raise KeyError(f"Unknown color: {name!r}")
    r, g, b = NAMED_COLORS[key]
    return rgb_to_hsb(r, g, b, name=key)


def color_change(name: str) -> FixtureStateChange:
    """Build a state change that switches a fixture on in the named color"""
    color = lookup_color(name)
    return FixtureStateChange(
        on=True,
        hue=color.hue,
        saturation=color.saturation,
        brightness=color.brightness,
    )
