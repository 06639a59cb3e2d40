"""
Hub HTTP Client - Shared request plumbing for the bridge and lookup service

Owns a lazily created httpx.AsyncClient and maps transport failures,
error status codes and undecodable bodies to HubRequestError.
"""
from typing import Any, Dict, Optional

import httpx
import structlog

from huelink.exceptions import HubRequestError

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = 10.0
USER_AGENT = "huelink/0.1"


class HubHttpClient:
    """
    Thin async HTTP wrapper used by the connector and the fixture client
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize HTTP client

        Args:
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used to inject a mock in tests)
        """
        self.timeout = timeout
        self.transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers=self.headers,
                follow_redirects=True,
                transport=self.transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client"""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Make an HTTP request with error handling"""
        client = await self._get_client()

        try:
            response = await client.request(method, url, **kwargs)
            response.raise_for_status()
            return response

        except httpx.HTTPStatusError as e:
            logger.warning(
                "hub_http_error",
                method=method,
                url=url,
                status_code=e.response.status_code,
                detail=e.response.text[:200] if e.response.text else None,
            )
            raise HubRequestError(
                f"HTTP {e.response.status_code} from {url}",
                url=url,
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            logger.warning("hub_request_error", method=method, url=url, error=str(e))
            raise HubRequestError(f"Request failed: {e}", url=url) from e

    async def request_json(self, method: str, url: str, **kwargs) -> Any:
        """
        Make a request and decode its JSON body

        Raises:
            HubRequestError: On transport failure, error status or invalid JSON
        """
        response = await self.request(method, url, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            logger.warning("hub_invalid_json", method=method, url=url)
            raise HubRequestError(f"Invalid JSON from {url}", url=url,
                                  status_code=response.status_code) from e
