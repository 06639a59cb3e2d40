"""
huelink Hub Access

This package talks to the hub over HTTP:
- Bridge connector for discovery and link-button authorization
- Fixture client for reading and changing light state
"""

from huelink.hub.http import HubHttpClient
from huelink.hub.client import FixtureClient
from huelink.hub.connector import BridgeConnector, ConnectionStatus

__all__ = [
    "HubHttpClient",
    "FixtureClient",
    "BridgeConnector",
    "ConnectionStatus",
]
