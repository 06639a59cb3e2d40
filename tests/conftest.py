"""
Shared test fixtures for huelink tests.

Provides fixtures for:
- A fake hub speaking the bridge protocol over httpx.MockTransport
- Sessions and fixture clients bound to the fake hub
- Sample fixture payloads
"""
import json
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Tuple

import httpx
import pytest
import pytest_asyncio

# Ensure src/ is on sys.path for direct pytest runs
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from huelink.hub.client import FixtureClient
from huelink.models import BridgeSession

HUB_ADDRESS = "192.168.1.10"
HUB_TOKEN = "s3cr3t-token"


# ============================================================================
# Fake Hub
# ============================================================================

class FakeHub:
    """
    Routes requests to canned responses and records what was sent.

    A route's response may be a JSON-serializable body, an httpx.Response,
    an exception to raise, or a callable taking the request.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str, str], Any] = {}
        self.requests: List[httpx.Request] = []

    @staticmethod
    def _key(method: str, url: httpx.URL) -> Tuple[str, str, str]:
        return method.upper(), url.host, url.path

    def add(self, method: str, url: str, response: Any) -> None:
        self.routes[self._key(method, httpx.URL(url))] = response

    def requests_to(self, method: str, url: str) -> List[httpx.Request]:
        key = self._key(method, httpx.URL(url))
        return [r for r in self.requests if self._key(r.method, r.url) == key]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.routes.get(self._key(request.method, request.url))

        if response is None:
            return httpx.Response(404, text="not found")
        if isinstance(response, Exception):
            raise response
        if callable(response):
            response = response(request)
        if isinstance(response, httpx.Response):
            return response
        return httpx.Response(200, json=response)

    def json_bodies(self, method: str, url: str) -> List[Any]:
        return [json.loads(r.content) for r in self.requests_to(method, url)]


@pytest.fixture
def fake_hub() -> FakeHub:
    return FakeHub()


@pytest.fixture
def transport(fake_hub) -> httpx.MockTransport:
    return httpx.MockTransport(fake_hub)


@pytest.fixture
def hub_session() -> BridgeSession:
    return BridgeSession(HUB_ADDRESS, HUB_TOKEN)


@pytest_asyncio.fixture
async def fixture_client(hub_session, transport):
    client = FixtureClient(hub_session, transport=transport)
    yield client
    await client.close()


def hub_error(error_type: int, address: str, description: str) -> List[dict]:
    return [{"error": {"type": error_type, "address": address, "description": description}}]


# ============================================================================
# Sample Data Fixtures
# ============================================================================

def fixture_payload(
    name: str,
    on: bool = False,
    reachable: bool = True,
    **state: Any,
) -> dict:
    """Build one fixture object the way the hub returns it"""
    body = {
        "on": on,
        "bri": 200,
        "hue": 10000,
        "sat": 120,
        "xy": [0.4, 0.35],
        "alert": "none",
        "effect": "none",
        "colormode": "hs",
        "reachable": reachable,
    }
    body.update(state)
    return {
        "state": body,
        "type": "Extended color light",
        "name": name,
        "modelid": "LCT001",
        "swversion": "66009461",
    }


@pytest.fixture
def make_fixture_payload() -> Callable[..., dict]:
    return fixture_payload


@pytest.fixture
def make_hub_error() -> Callable[..., List[dict]]:
    return hub_error
