"""
Proximity Controller

Turns fixtures on when a tracked Bluetooth LE advertiser comes into range
and off when it leaves. Each batch of concurrently received samples is
classified as a whole; commands are sent one at a time with a fixed delay so
the hub's command intake is not flooded.
"""
import asyncio
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, List, Optional, Sequence

import structlog

from huelink.exceptions import CommandFailed
from huelink.hub.client import FixtureClient
from huelink.models.fixtures import Fixture
from huelink.models.proximity import ProximityClass, ProximitySample, ProximityState

logger = structlog.get_logger(__name__)

COMMAND_DELAY_SECONDS = 0.25
SETTLE_DELAY_SECONDS = 1.0


@dataclass
class BatchResult:
    """Outcome of one classify-and-act cycle"""
    classification: ProximityClass
    commanded: List[str] = field(default_factory=list)
    failed: Dict[str, CommandFailed] = field(default_factory=dict)
    suppressed: bool = False

    @property
    def succeeded(self) -> bool:
        return not self.failed


class ProximityController:
    """
    Proximity automation engine

    Consumes batches of ProximitySample and drives fixture power through a
    FixtureClient. A failed command on one fixture is recorded and the
    remaining fixtures are still processed.
    """

    def __init__(
        self,
        client: FixtureClient,
        fixtures: Optional[Sequence[Fixture]] = None,
        command_delay: float = COMMAND_DELAY_SECONDS,
        settle_delay: float = SETTLE_DELAY_SECONDS,
        suppress_repeats: bool = True,
    ):
        """
        Initialize proximity controller

        Args:
            client: Fixture client used to send power commands
            fixtures: Initially known fixtures
            command_delay: Pause after each fixture command, in seconds
            settle_delay: Pause after a batch, in seconds
            suppress_repeats: Skip in-range batches when in-range was already applied
        """
        self.client = client
        self.fixtures: List[Fixture] = list(fixtures or [])
        self.command_delay = command_delay
        self.settle_delay = settle_delay
        self.suppress_repeats = suppress_repeats
        self.state = ProximityState()

        # Statistics
        self.commands_sent = 0
        self.commands_failed = 0

        logger.info(
            "proximity_controller_initialized",
            fixtures=len(self.fixtures),
            command_delay=command_delay,
            settle_delay=settle_delay,
        )

    @staticmethod
    def classify(samples: Sequence[ProximitySample]) -> ProximityClass:
        """
        Classify a batch of samples

        Any out-of-range sentinel wins over every other reading in the batch.

        Raises:
            ValueError: If the batch is empty
        """
        if not samples:
            raise ValueError("Cannot classify an empty batch")
        if any(sample.out_of_range for sample in samples):
            return ProximityClass.OUT_OF_RANGE
        return ProximityClass.IN_RANGE

    def _targets(self, classification: ProximityClass) -> List[Fixture]:
        actionable = [f for f in self.fixtures if f.actionable]
        if classification is ProximityClass.OUT_OF_RANGE:
            # Stale local state must not leave a light on
            return actionable
        return [f for f in actionable if not f.state.on]

    async def refresh_fixtures(self) -> List[Fixture]:
        """Re-fetch the fixture set from the hub"""
        self.fixtures = await self.client.list_fixtures()
        return self.fixtures

    async def process_batch(self, samples: Sequence[ProximitySample]) -> BatchResult:
        """
        Classify one batch and send the resulting power commands

        Returns:
            BatchResult listing commanded and failed fixture ids
        """
        classification = self.classify(samples)
        self.state.batches_processed += 1
        result = BatchResult(classification=classification)

        # Out-of-range batches are never suppressed
        if (
            self.suppress_repeats
            and classification is ProximityClass.IN_RANGE
            and classification == self.state.classification
        ):
            logger.debug("proximity_batch_suppressed", classification=classification.value)
            result.suppressed = True
            return result

        power = classification is ProximityClass.IN_RANGE
        targets = self._targets(classification)
        logger.info(
            "proximity_batch_classified",
            classification=classification.value,
            samples=len(samples),
            strongest_rssi=max(s.rssi for s in samples),
            targets=len(targets),
        )

        for fixture in targets:
            try:
                await self.client.set_power(fixture.id, power)
            except CommandFailed as e:
                self.commands_failed += 1
                result.failed[fixture.id] = e
                logger.warning(
                    "proximity_command_failed",
                    fixture_id=fixture.id,
                    on=power,
                    reason=e.reason,
                )
            else:
                self.commands_sent += 1
                fixture.state.on = power
                result.commanded.append(fixture.id)
            await asyncio.sleep(self.command_delay)

        # Let in-flight requests finish before the caller tears anything down
        await asyncio.sleep(self.settle_delay)

        if result.succeeded:
            self.state.record(classification)

        logger.info(
            "proximity_batch_applied",
            classification=classification.value,
            commanded=len(result.commanded),
            failed=len(result.failed),
        )
        return result

    async def run(
        self,
        batches: AsyncIterator[Sequence[ProximitySample]],
        refresh: bool = True,
    ) -> None:
        """
        Process batches until the iterator is exhausted or the task is cancelled

        Args:
            batches: Async iterator of sample batches
            refresh: Re-fetch fixtures before each batch
        """
        async for samples in batches:
            if not samples:
                continue

            if refresh:
                try:
                    await self.refresh_fixtures()
                except CommandFailed as e:
                    logger.error("proximity_refresh_failed", reason=e.reason)
                    continue

            await self.process_batch(samples)
