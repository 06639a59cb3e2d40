"""
Fixture Client - Typed access to a hub's light commands

Handles communication with an authorized hub, including:
- Enumerating fixtures (skipping malformed and unreachable entries)
- Fetching a single fixture
- Pushing partial state changes
- Renaming fixtures and triggering a fixture search
"""
from typing import Any, Dict, List, Optional

import httpx
import structlog
from pydantic import ValidationError

from huelink.exceptions import CommandFailed, HubRequestError, MalformedResponse
from huelink.hub.http import DEFAULT_TIMEOUT, HubHttpClient
from huelink.hub.schemas import FixtureSchema, extract_errors, extract_successes
from huelink.models.fixtures import Fixture, FixtureStateChange
from huelink.models.session import BridgeSession

logger = structlog.get_logger(__name__)

# Hub error type for an unknown resource id
RESOURCE_NOT_AVAILABLE = 3


class FixtureClient:
    """
    Client for the fixture endpoints of one hub session

    Every operation requires an authorized session; without a token the
    call raises Unauthorized before any request is made.
    """

    def __init__(
        self,
        session: BridgeSession,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        http: Optional[HubHttpClient] = None,
    ):
        """
        Initialize fixture client

        Args:
            session: Hub address and access token
            timeout: Request timeout in seconds
            transport: Optional httpx transport (ignored when ``http`` is given)
            http: Optional shared HTTP client
        """
        self.session = session
        self.http = http or HubHttpClient(timeout=timeout, transport=transport)

    async def close(self):
        await self.http.close()

    async def __aenter__(self) -> "FixtureClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def _url(self, command: str) -> str:
        return f"{self.session.base_url}{command}"

    async def _command(
        self,
        operation: str,
        method: str,
        command: str,
        fixture_id: Optional[str] = None,
        fields: Optional[List[str]] = None,
        **kwargs,
    ) -> Any:
        """Issue one hub command, mapping transport failures to CommandFailed"""
        self.session.require_token(operation, fixture_id=fixture_id)
        try:
            return await self.http.request_json(method, self._url(command), **kwargs)
        except HubRequestError as e:
            raise CommandFailed(
                operation, str(e), fixture_id=fixture_id, fields=fields or []
            ) from e

    @staticmethod
    def _decode_fixture(fixture_id: str, data: Any) -> Fixture:
        if not isinstance(data, dict):
            raise MalformedResponse(fixture_id, f"expected an object, got {type(data).__name__}")
        try:
            return FixtureSchema.model_validate(data).to_fixture(fixture_id)
        except ValidationError as e:
            raise MalformedResponse(fixture_id, f"{e.error_count()} validation errors") from e

    async def list_fixtures(self) -> List[Fixture]:
        """
        Fetch all reachable fixtures, in hub enumeration order

        Malformed entries are logged and skipped.

        Returns:
            List of reachable Fixture objects

        Raises:
            CommandFailed: If the request fails or the hub returns an error
        """
        body = await self._command("list_fixtures", "GET", "lights")

        if not isinstance(body, dict):
            errors = extract_errors(body)
            reason = errors[0].description if errors else "unexpected response body"
            raise CommandFailed(
                "list_fixtures", reason, errors=[e.model_dump() for e in errors]
            )

        fixtures = []
        skipped = 0
        for fixture_id, data in body.items():
            try:
                fixture = self._decode_fixture(fixture_id, data)
            except MalformedResponse as e:
                skipped += 1
                logger.warning("malformed_fixture_skipped", fixture_id=fixture_id, detail=e.detail)
                continue

            if not fixture.reachable:
                logger.debug("unreachable_fixture_skipped", fixture_id=fixture_id)
                continue
            fixtures.append(fixture)

        logger.info("fixtures_listed", count=len(fixtures), skipped=skipped)
        return fixtures

    async def get_fixture(self, fixture_id: str) -> Optional[Fixture]:
        """
        Fetch one fixture by id

        Returns:
            Fixture, or None if the hub does not know the id

        Raises:
            CommandFailed: If the request fails or the hub reports any other error
        """
        body = await self._command("get_fixture", "GET", f"lights/{fixture_id}", fixture_id=fixture_id)

        errors = extract_errors(body)
        if errors:
            if all(e.type == RESOURCE_NOT_AVAILABLE for e in errors):
                logger.info("fixture_not_found", fixture_id=fixture_id)
                return None
            raise CommandFailed(
                "get_fixture",
                errors[0].description or "hub reported an error",
                fixture_id=fixture_id,
                errors=[e.model_dump() for e in errors],
            )

        try:
            return self._decode_fixture(fixture_id, body)
        except MalformedResponse as e:
            raise CommandFailed("get_fixture", str(e), fixture_id=fixture_id) from e

    async def refresh_fixture(self, fixture: Fixture) -> Fixture:
        """
        Re-sync a fixture with the hub

        Returns the fetched fixture, or the given one unchanged if the hub no
        longer knows it.
        """
        latest = await self.get_fixture(fixture.id)
        if latest is None:
            return fixture
        fixture.state = latest.state
        fixture.reachable = latest.reachable
        fixture.name = latest.name
        return fixture

    async def set_fixture_state(self, fixture_id: str, change: FixtureStateChange) -> Dict[str, Any]:
        """
        Push a partial state change to one fixture

        Only the fields set on ``change`` are sent.

        Args:
            fixture_id: Target fixture
            change: Fields to change

        Returns:
            Mapping of wire field name to the value the hub confirmed

        Raises:
            ValueError: If the change is empty
            CommandFailed: If the request fails or the hub reports errors
        """
        if change.is_empty:
            raise ValueError("State change does not set any field")

        payload = change.to_payload()
        fields = list(payload)
        body = await self._command(
            "set_fixture_state",
            "PUT",
            f"lights/{fixture_id}/state",
            fixture_id=fixture_id,
            fields=fields,
            json=payload,
        )

        errors = extract_errors(body)
        if errors:
            logger.warning(
                "fixture_state_rejected",
                fixture_id=fixture_id,
                fields=fields,
                errors=[e.description for e in errors],
            )
            raise CommandFailed(
                "set_fixture_state",
                errors[0].description or "hub reported an error",
                fixture_id=fixture_id,
                fields=fields,
                errors=[e.model_dump() for e in errors],
            )

        confirmed = {}
        for success in extract_successes(body):
            for path, value in success.items():
                confirmed[path.rsplit("/", 1)[-1]] = value

        logger.debug("fixture_state_set", fixture_id=fixture_id, fields=fields)
        return confirmed

    async def set_power(self, fixture_id: str, on: bool) -> Dict[str, Any]:
        return await self.set_fixture_state(fixture_id, FixtureStateChange(on=on))

    async def rename_fixture(self, fixture_id: str, name: str) -> None:
        """
        Rename a fixture on the hub

        Raises:
            CommandFailed: If the request fails or the hub rejects the name
        """
        body = await self._command(
            "rename_fixture",
            "PUT",
            f"lights/{fixture_id}",
            fixture_id=fixture_id,
            fields=["name"],
            json={"name": name},
        )
        errors = extract_errors(body)
        if errors:
            raise CommandFailed(
                "rename_fixture",
                errors[0].description or "hub reported an error",
                fixture_id=fixture_id,
                fields=["name"],
                errors=[e.model_dump() for e in errors],
            )
        logger.info("fixture_renamed", fixture_id=fixture_id, name=name)

    async def search(self) -> None:
        """Ask the hub to scan for new fixtures"""
        self.session.require_token("search")
        try:
            await self.http.request("PUT", self._url("lights"), content=b"")
        except HubRequestError as e:
            raise CommandFailed("search", str(e)) from e
        logger.info("fixture_search_started", address=self.session.address)
