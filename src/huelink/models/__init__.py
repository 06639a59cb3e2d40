"""
huelink - Data Models

Plain dataclasses for hub sessions, fixtures and proximity samples.
"""

from huelink.models.session import BridgeSession, normalize_address
from huelink.models.fixtures import (
    Fixture,
    FixtureState,
    FixtureStateChange,
    STATE_WIRE_FIELDS,
)
from huelink.models.proximity import (
    OUT_OF_RANGE_DBM,
    ProximityClass,
    ProximitySample,
    ProximityState,
)

__all__ = [
    "BridgeSession",
    "normalize_address",
    "Fixture",
    "FixtureState",
    "FixtureStateChange",
    "STATE_WIRE_FIELDS",
    "OUT_OF_RANGE_DBM",
    "ProximityClass",
    "ProximitySample",
    "ProximityState",
]
