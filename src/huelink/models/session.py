"""
Bridge Session Model
"""
from dataclasses import dataclass
from typing import Optional

from huelink.exceptions import Unauthorized


def normalize_address(address: str) -> str:
    """
    Normalize a user- or service-supplied hub address

    Strips whitespace, an http(s) scheme and trailing slashes so that
    "http://192.168.1.2/" and "192.168.1.2" compare equal.
    """
    address = address.strip()
    for scheme in ("http://", "https://"):
        if address.lower().startswith(scheme):
            address = address[len(scheme):]
            break
    return address.rstrip("/")


@dataclass
class BridgeSession:
    """An address + access token pair for one hub"""

    address: str
    token: str = ""

    def __post_init__(self):
        self.address = normalize_address(self.address)

    @property
    def authorized(self) -> bool:
        return bool(self.token)

    @property
    def base_url(self) -> str:
        """Base URL that fixture commands are appended to"""
        return f"http://{self.address}/api/{self.token}/"

    @property
    def registration_url(self) -> str:
        return f"http://{self.address}/api"

    def require_token(self, operation: str, fixture_id: Optional[str] = None) -> None:
        """Raise Unauthorized unless the session carries a token"""
        if not self.token:
            raise Unauthorized(operation, fixture_id=fixture_id)
