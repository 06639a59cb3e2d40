"""
Fixture Models

Local representation of hub lights and the partial state updates that are
pushed to them.
"""
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, List, Optional, Tuple

# FixtureState attribute -> hub wire field
STATE_WIRE_FIELDS: Dict[str, str] = {
    "on": "on",
    "brightness": "bri",
    "hue": "hue",
    "saturation": "sat",
    "xy": "xy",
    "alert": "alert",
    "effect": "effect",
    "color_mode": "colormode",
}

MAX_BRIGHTNESS = 254
MAX_HUE = 65535
MAX_SATURATION = 254


@dataclass
class FixtureState:
    """Last-known state of a fixture"""
    on: bool = False
    brightness: int = 0  # 0-254
    hue: int = 0  # 0-65535
    saturation: int = 0  # 0-254
    xy: Optional[Tuple[float, float]] = None
    alert: Optional[str] = None
    effect: Optional[str] = None
    color_mode: Optional[str] = None


@dataclass
class Fixture:
    """One light known to a hub"""
    id: str
    name: str
    reachable: bool
    state: FixtureState = field(default_factory=FixtureState)
    type: Optional[str] = None
    model_id: Optional[str] = None
    software_version: Optional[str] = None

    @property
    def actionable(self) -> bool:
        return self.reachable


def _check_range(name: str, value: Optional[int], upper: int) -> None:
    if value is not None and not 0 <= value <= upper:
        raise ValueError(f"{name} must be between 0 and {upper}, got {value}")


@dataclass(frozen=True)
class FixtureStateChange:
    """
    Partial fixture state update

    Only attributes that are not None are sent to the hub, so a change never
    overwrites values another client may have set in the meantime.
    """
    on: Optional[bool] = None
    brightness: Optional[int] = None
    hue: Optional[int] = None
    saturation: Optional[int] = None
    xy: Optional[Tuple[float, float]] = None
    alert: Optional[str] = None
    effect: Optional[str] = None
    color_mode: Optional[str] = None

    def __post_init__(self):
        _check_range("brightness", self.brightness, MAX_BRIGHTNESS)
        _check_range("hue", self.hue, MAX_HUE)
        _check_range("saturation", self.saturation, MAX_SATURATION)
        if self.xy is not None:
            if len(self.xy) != 2:
                raise ValueError(f"xy must be a pair of coordinates, got {self.xy!r}")
            for coordinate in self.xy:
                if not 0.0 <= coordinate <= 1.0:
                    raise ValueError(f"xy coordinates must be between 0.0 and 1.0, got {self.xy!r}")
            # Normalize lists to tuples so changes stay hashable
            object.__setattr__(self, "xy", (float(self.xy[0]), float(self.xy[1])))

    def changed_fields(self) -> List[str]:
        """Names of the attributes this change sets"""
        return [f.name for f in fields(self) if getattr(self, f.name) is not None]

    def wire_fields(self) -> List[str]:
        return [STATE_WIRE_FIELDS[name] for name in self.changed_fields()]

    @property
    def is_empty(self) -> bool:
        return not self.changed_fields()

    def to_payload(self) -> Dict[str, Any]:
        """
        Build the JSON body for a state update

        Returns:
            Mapping of wire field name to value, containing only changed fields
        """
        payload: Dict[str, Any] = {}
        for name in self.changed_fields():
            value = getattr(self, name)
            if name == "xy":
                value = list(value)
            payload[STATE_WIRE_FIELDS[name]] = value
        return payload

    def apply_to(self, state: FixtureState) -> FixtureState:
        """Return a copy of ``state`` with this change applied"""
        return replace(state, **{name: getattr(self, name) for name in self.changed_fields()})
