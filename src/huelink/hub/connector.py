"""
Bridge Connector - Discovery and authorization of a hub

Produces an authorized BridgeSession by walking an ordered chain of
discovery strategies and then running the link-button registration flow:

1. Cached address (explicit or from a BridgeCache)
2. Discovery lookup service
3. Lookup service again, after the caller agrees to retry
4. Manually entered address

A strategy only wins when the hub at its address answers the status probe.
"""
import uuid
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Tuple

import httpx
import structlog

from huelink.cache import BridgeCache
from huelink.exceptions import (
    AuthorizationFailed,
    BridgeConnectionError,
    BridgeUnreachable,
    ConnectionStage,
    HubRequestError,
)
from huelink.hub.http import DEFAULT_TIMEOUT, HubHttpClient
from huelink.hub.schemas import extract_errors, extract_successes
from huelink.models.session import BridgeSession, normalize_address

logger = structlog.get_logger(__name__)

DISCOVERY_URL = "https://discovery.meethue.com/"
MAX_AUTHORIZATION_ATTEMPTS = 3

# Present in the full config only when the token is accepted
CONFIG_MARKER = "zigbeechannel"

# devicetype is limited to 40 characters: "<app>#<8 hex>"
MAX_APP_NAME_LENGTH = 31

ConfirmCallback = Callable[[], Awaitable[bool]]
RetryPrompt = Callable[[], Awaitable[bool]]
ManualEntry = Callable[[], Awaitable[Optional[str]]]


class ConnectionStatus(str, Enum):
    """Outcome of a status probe against a hub"""
    SUCCESS = "success"
    UNAUTHORIZED = "unauthorized"
    FAIL = "fail"


class BridgeConnector:
    """
    Finds a hub and authorizes this application against it

    Callers supply the interactive steps as coroutines:
    - ``confirm``: wait until the hub's link button was pressed; False abandons
    - ``retry_prompt``: ask whether to search again; False skips the retry
    - ``manual_entry``: ask for an address; None skips manual entry
    """

    def __init__(
        self,
        confirm: ConfirmCallback,
        cache: Optional[BridgeCache] = None,
        cached_session: Optional[BridgeSession] = None,
        retry_prompt: Optional[RetryPrompt] = None,
        manual_entry: Optional[ManualEntry] = None,
        app_name: str = "huelink",
        discovery_url: str = DISCOVERY_URL,
        max_attempts: int = MAX_AUTHORIZATION_ATTEMPTS,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        http: Optional[HubHttpClient] = None,
    ):
        """
        Initialize bridge connector

        Args:
            confirm: Link-button confirmation callback
            cache: Optional cache port, read for the first strategy and written on success
            cached_session: Explicit cached address/token (takes precedence over ``cache``)
            retry_prompt: Optional callback gating the second lookup
            manual_entry: Optional callback returning a typed-in address
            app_name: Application part of the registration devicetype
            discovery_url: Lookup service endpoint
            max_attempts: Bound on verify -> confirm -> register cycles
            timeout: Request timeout in seconds
            transport: Optional httpx transport (ignored when ``http`` is given)
            http: Optional shared HTTP client
        """
        self.confirm = confirm
        self.cache = cache
        self.cached_session = cached_session
        self.retry_prompt = retry_prompt
        self.manual_entry = manual_entry
        self.app_name = app_name[:MAX_APP_NAME_LENGTH]
        self.discovery_url = discovery_url
        self.max_attempts = max_attempts
        self.http = http or HubHttpClient(timeout=timeout, transport=transport)

        # Name of the strategy that produced the last discovered address
        self.discovered_by: Optional[str] = None

    async def close(self):
        await self.http.close()

    def _cached(self) -> Optional[BridgeSession]:
        if self.cached_session is None and self.cache is not None:
            self.cached_session = self.cache.load()
        return self.cached_session

    def _token_for(self, address: str) -> str:
        cached = self._cached()
        if cached is not None and cached.address == address:
            return cached.token
        return ""

    # ------------------------------------------------------------------
    # Discovery strategies
    # ------------------------------------------------------------------

    async def _from_cache(self) -> Optional[str]:
        cached = self._cached()
        return cached.address if cached else None

    async def _from_lookup(self) -> Optional[str]:
        return await self.lookup()

    async def _from_lookup_retry(self) -> Optional[str]:
        if not await self.retry_prompt():
            logger.info("discovery_retry_declined")
            return None
        return await self.lookup()

    async def _from_manual_entry(self) -> Optional[str]:
        return await self.manual_entry()

    def _strategies(self) -> List[Tuple[str, Callable[[], Awaitable[Optional[str]]]]]:
        strategies = []
        if self._cached() is not None:
            strategies.append(("cache", self._from_cache))
        strategies.append(("lookup", self._from_lookup))
        if self.retry_prompt is not None:
            strategies.append(("lookup_retry", self._from_lookup_retry))
        if self.manual_entry is not None:
            strategies.append(("manual", self._from_manual_entry))
        return strategies

    async def lookup(self) -> Optional[str]:
        """
        Ask the discovery lookup service for a hub address

        Returns:
            First advertised internal IP address, or None if none was found
        """
        try:
            records = await self.http.request_json("GET", self.discovery_url)
        except HubRequestError as e:
            logger.warning("discovery_lookup_failed", url=self.discovery_url, error=str(e))
            return None

        if not isinstance(records, list):
            logger.warning("discovery_lookup_unexpected_body", url=self.discovery_url)
            return None

        for record in records:
            if isinstance(record, dict) and isinstance(record.get("internalipaddress"), str):
                return record["internalipaddress"]

        logger.info("discovery_lookup_empty", url=self.discovery_url)
        return None

    async def discover(self) -> str:
        """
        Find a reachable hub

        Returns:
            Normalized hub address

        Raises:
            BridgeUnreachable: If no strategy produced a reachable hub
        """
        tried = []
        for name, strategy in self._strategies():
            tried.append(name)
            candidate = await strategy()
            if not candidate or not candidate.strip():
                logger.info("discovery_strategy_empty", strategy=name)
                continue

            address = normalize_address(candidate)
            status = await self.verify(address, self._token_for(address))
            if status is ConnectionStatus.FAIL:
                logger.info("discovery_candidate_unreachable", strategy=name, address=address)
                continue

            self.discovered_by = name
            logger.info("bridge_discovered", strategy=name, address=address, status=status.value)
            return address

        logger.warning("bridge_not_found", strategies=tried)
        raise BridgeUnreachable(tried)

    # ------------------------------------------------------------------
    # Verification and authorization
    # ------------------------------------------------------------------

    async def verify(self, address: str, token: str = "") -> ConnectionStatus:
        """
        Probe a hub with a config request

        Never raises for transport errors; those classify as FAIL.
        """
        url = f"{BridgeSession(address, token).base_url}config"
        try:
            body = await self.http.request_json("GET", url)
        except HubRequestError:
            return ConnectionStatus.FAIL

        if isinstance(body, dict):
            if CONFIG_MARKER in body:
                return ConnectionStatus.SUCCESS
            if "error" in body:
                return ConnectionStatus.UNAUTHORIZED
        elif extract_errors(body):
            return ConnectionStatus.UNAUTHORIZED

        return ConnectionStatus.FAIL

    async def register(self, address: str) -> Optional[str]:
        """
        Request a new access token from the hub

        Succeeds only after the hub's link button was pressed.

        Returns:
            Issued token, or None if the hub refused or could not be reached
        """
        session = BridgeSession(address)
        devicetype = f"{self.app_name}#{uuid.uuid4().hex[:8]}"
        try:
            body = await self.http.request_json(
                "POST", session.registration_url, json={"devicetype": devicetype}
            )
        except HubRequestError as e:
            logger.warning("bridge_registration_failed", address=address, error=str(e))
            return None

        for success in extract_successes(body):
            token = success.get("username")
            if isinstance(token, str) and token:
                return token

        errors = extract_errors(body)
        logger.info(
            "bridge_registration_refused",
            address=address,
            errors=[e.description for e in errors],
        )
        return None

    async def authorize(self, address: str, token: str = "") -> str:
        """
        Obtain a working access token for a hub

        Args:
            address: Hub address
            token: Previously issued token to try first

        Returns:
            Access token accepted by the hub

        Raises:
            AuthorizationFailed: If the hub is unreachable, the caller abandons
                confirmation, or the attempt bound is exceeded
        """
        for attempt in range(1, self.max_attempts + 1):
            status = await self.verify(address, token)

            if status is ConnectionStatus.SUCCESS:
                logger.info("bridge_authorized", address=address, attempt=attempt)
                return token

            if status is ConnectionStatus.FAIL:
                raise AuthorizationFailed(address, "bridge did not answer the status probe", attempt)

            logger.info("bridge_link_button_required", address=address, attempt=attempt)
            if not await self.confirm():
                raise AuthorizationFailed(address, "confirmation abandoned", attempt)

            issued = await self.register(address)
            if issued:
                logger.info("bridge_registered", address=address, attempt=attempt)
                return issued

        raise AuthorizationFailed(address, "link button was not pressed", self.max_attempts)

    async def connect(self) -> BridgeSession:
        """
        Discover and authorize a hub

        Returns:
            Authorized session (also written to the cache port, if any)

        Raises:
            BridgeConnectionError: Tagged with the stage that failed
        """
        try:
            address = await self.discover()
        except BridgeUnreachable as e:
            raise BridgeConnectionError(ConnectionStage.DISCOVERY, e) from e

        try:
            token = await self.authorize(address, self._token_for(address))
        except AuthorizationFailed as e:
            logger.warning("bridge_authorization_failed", address=address, reason=e.reason)
            raise BridgeConnectionError(ConnectionStage.AUTHORIZATION, e) from e

        session = BridgeSession(address, token)
        if self.cache is not None:
            try:
                self.cache.save(session)
            except OSError as e:
                logger.warning("bridge_cache_save_failed", address=address, error=str(e))
        return session
