"""
Bridge Cache - Storage port for the last known hub address and token
"""
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

import structlog

from huelink.models.session import BridgeSession

logger = structlog.get_logger(__name__)


class BridgeCache(ABC):
    """Where the connector reads and stores the address + token pair"""

    @abstractmethod
    def load(self) -> Optional[BridgeSession]:
        """
        Load the cached session

        Returns:
            Cached session, or None if nothing usable is stored
        """
        pass

    @abstractmethod
    def save(self, session: BridgeSession) -> None:
        """Store the session for the next run"""
        pass


class MemoryBridgeCache(BridgeCache):
    """Process-local cache"""

    def __init__(self, session: Optional[BridgeSession] = None):
        self.session = session

    def load(self) -> Optional[BridgeSession]:
        return self.session

    def save(self, session: BridgeSession) -> None:
        self.session = BridgeSession(session.address, session.token)


class JsonFileBridgeCache(BridgeCache):
    """Cache stored as a small JSON document: {"address": ..., "token": ...}"""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()

    def load(self) -> Optional[BridgeSession]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("bridge_cache_unreadable", path=str(self.path), error=str(e))
            return None

        if not isinstance(data, dict) or not isinstance(data.get("address"), str) or not data["address"]:
            logger.warning("bridge_cache_invalid", path=str(self.path))
            return None

        token = data.get("token")
        return BridgeSession(data["address"], token if isinstance(token, str) else "")

    def save(self, session: BridgeSession) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps({"address": session.address, "token": session.token}, indent=2),
            encoding="utf-8",
        )
        logger.info("bridge_cache_saved", path=str(self.path), address=session.address)
