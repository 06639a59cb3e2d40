"""
huelink Exceptions

Error taxonomy shared by the connector, the fixture client and the
proximity controller.
"""
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence


class HueLinkError(Exception):
    """Base exception for all huelink errors"""

    pass


class HubRequestError(HueLinkError):
    """
    Raised by the HTTP layer when a hub or lookup request fails

    Covers connection errors, timeouts, non-2xx status codes and bodies
    that are not valid JSON.
    """

    def __init__(self, message: str, url: str, status_code: Optional[int] = None):
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class MalformedResponse(HueLinkError):
    """A single entry of a hub response could not be decoded"""

    def __init__(self, fixture_id: str, detail: str):
        self.fixture_id = fixture_id
        self.detail = detail
        super().__init__(f"Malformed fixture entry {fixture_id!r}: {detail}")


class CommandFailed(HueLinkError):
    """
    A single fixture operation failed

    Attributes:
        operation: Client operation that was attempted (e.g. "set_fixture_state")
        fixture_id: Target fixture, if the operation had one
        fields: Wire fields the operation tried to change
        errors: Error entries reported by the hub, if any
    """

    def __init__(
        self,
        operation: str,
        reason: str,
        fixture_id: Optional[str] = None,
        fields: Sequence[str] = (),
        errors: Optional[List[Dict[str, Any]]] = None,
    ):
        self.operation = operation
        self.reason = reason
        self.fixture_id = fixture_id
        self.fields = list(fields)
        self.errors = errors or []
        target = f" on fixture {fixture_id}" if fixture_id is not None else ""
        super().__init__(f"{operation} failed{target}: {reason}")


class Unauthorized(CommandFailed):
    """Raised before any request when the session has no access token"""

    def __init__(self, operation: str, fixture_id: Optional[str] = None):
        super().__init__(operation, "session has no access token", fixture_id=fixture_id)


class BridgeUnreachable(HueLinkError):
    """Every discovery strategy was tried and none produced a usable hub"""

    def __init__(self, strategies: Sequence[str]):
        self.strategies = list(strategies)
        super().__init__(f"No bridge found (tried: {', '.join(self.strategies) or 'nothing'})")


class AuthorizationFailed(HueLinkError):
    """The hub could not be authorized"""

    def __init__(self, address: str, reason: str, attempts: int = 0):
        self.address = address
        self.reason = reason
        self.attempts = attempts
        super().__init__(f"Authorization with {address} failed: {reason} after {attempts} attempts")


class ConnectionStage(str, Enum):
    """Stage of the connect flow that failed"""
    DISCOVERY = "discovery"
    AUTHORIZATION = "authorization"


_STAGE_MESSAGES = {
    ConnectionStage.DISCOVERY: (
        "We couldn't find your bridge. Make sure it's powered on, has 3 blue lights "
        "illuminated, is on the same network as this device, and that you're "
        "connected to the Internet."
    ),
    ConnectionStage.AUTHORIZATION: (
        "Your bridge refused to authorize this application. Press the link button "
        "on the bridge when asked and try again."
    ),
}


class BridgeConnectionError(HueLinkError):
    """Terminal failure of a connect attempt, tagged with the failed stage"""

    def __init__(self, stage: ConnectionStage, cause: HueLinkError):
        self.stage = stage
        self.cause = cause
        super().__init__(f"Bridge connection failed during {stage.value}: {cause}")

    @property
    def user_message(self) -> str:
        """Stage-specific message suitable for showing to a person"""
        return _STAGE_MESSAGES[self.stage]
