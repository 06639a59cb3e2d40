"""
huelink Proximity Daemon - Main Entry Point

Connects to the bridge (prompting on the console when needed), caches the
session, and switches fixtures with the proximity of a BLE beacon until
interrupted.
"""
import asyncio
import signal
import sys
import threading
from typing import Optional

import structlog

from huelink import __version__
from huelink.cache import JsonFileBridgeCache
from huelink.config import Settings, get_settings
from huelink.exceptions import BridgeConnectionError, CommandFailed
from huelink.hardware import AdvertisementSource, MockAdvertisementSource
from huelink.hub import BridgeConnector, FixtureClient
from huelink.logging_config import setup_logging
from huelink.logic import ProximityController
from huelink.models import BridgeSession

logger = structlog.get_logger(__name__)


async def _ask(prompt: str) -> Optional[str]:
    """
    Read one line from the console without blocking the event loop

    The read runs on a daemon thread so a pending prompt never holds up
    shutdown after a signal.
    """
    loop = asyncio.get_running_loop()
    answer: asyncio.Future = loop.create_future()

    def deliver(line: Optional[str]) -> None:
        if not answer.done():
            answer.set_result(line)

    def read() -> None:
        try:
            line: Optional[str] = input(prompt)
        except EOFError:
            line = None
        if not loop.is_closed():
            loop.call_soon_threadsafe(deliver, line)

    threading.Thread(target=read, name="console-prompt", daemon=True).start()
    line = await answer
    return line.strip() if line is not None else None


async def prompt_link_button() -> bool:
    answer = await _ask(
        "Press the link button on your bridge, then press Enter (type 'q' to give up): "
    )
    return answer is not None and answer.lower() not in ("q", "quit")


async def prompt_retry() -> bool:
    answer = await _ask("No bridge found. Make sure it is powered on and search again? [Y/n] ")
    return answer is not None and answer.lower() not in ("n", "no")


async def prompt_address() -> Optional[str]:
    answer = await _ask("Enter the IP address of your bridge (leave blank to give up): ")
    return answer or None


def create_source(settings: Settings) -> AdvertisementSource:
    """Build the proximity source selected by the settings"""
    if settings.ble_mock:
        return MockAdvertisementSource(repeat=True)

    # bleak is only loaded when a real radio is used
    from huelink.hardware.ble import BleakAdvertisementSource

    return BleakAdvertisementSource(
        company_id=settings.ble_company_id,
        manufacturer_prefix=bytes.fromhex(settings.ble_manufacturer_prefix),
        in_range_dbm=settings.ble_in_range_dbm,
        out_of_range_dbm=settings.ble_out_of_range_dbm,
        out_of_range_timeout=settings.ble_out_of_range_timeout_seconds,
        sampling_interval=settings.ble_sampling_interval_seconds,
    )


class HueLinkDaemon:
    """Main controller for the proximity daemon"""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.session: Optional[BridgeSession] = None
        self.client: Optional[FixtureClient] = None
        self.source: Optional[AdvertisementSource] = None
        self.controller: Optional[ProximityController] = None
        self.stop_event = asyncio.Event()

    async def connect(self) -> BridgeSession:
        """Discover and authorize the bridge, caching the result"""
        connector = BridgeConnector(
            confirm=prompt_link_button,
            cache=JsonFileBridgeCache(self.settings.cache_file),
            retry_prompt=prompt_retry,
            manual_entry=prompt_address,
            app_name=self.settings.app_name,
            discovery_url=self.settings.discovery_url,
            max_attempts=self.settings.max_authorization_attempts,
            timeout=self.settings.request_timeout_seconds,
        )
        try:
            return await connector.connect()
        finally:
            await connector.close()

    async def startup(self):
        """Initialize all daemon components"""
        logger.info("huelink_starting", version=__version__)

        self.session = await self.connect()
        logger.info("bridge_ready", address=self.session.address)

        self.client = FixtureClient(self.session, timeout=self.settings.request_timeout_seconds)
        fixtures = await self.client.list_fixtures()
        if not fixtures:
            logger.warning(
                "no_fixtures_found",
                hint="Make sure the lights are in range and connected to power",
            )

        self.source = create_source(self.settings)
        if not await self.source.connect():
            raise RuntimeError(f"Could not start proximity source {self.source.name}")

        self.controller = ProximityController(
            self.client,
            fixtures,
            command_delay=self.settings.command_delay_ms / 1000,
            settle_delay=self.settings.settle_delay_ms / 1000,
            suppress_repeats=self.settings.suppress_repeats,
        )
        logger.info("huelink_ready", fixtures=len(fixtures), source=self.source.name)

    async def until_stopped(self, coro) -> bool:
        """
        Await ``coro`` unless a shutdown signal arrives first

        Returns:
            True if ``coro`` finished, False if it was cancelled by a signal
        """
        task = asyncio.create_task(coro)
        stopper = asyncio.create_task(self.stop_event.wait())
        await asyncio.wait({task, stopper}, return_when=asyncio.FIRST_COMPLETED)

        for pending in (task, stopper):
            if not pending.done():
                pending.cancel()
        await asyncio.gather(task, stopper, return_exceptions=True)

        if task.cancelled():
            return False
        if task.exception() is not None:
            raise task.exception()
        return True

    async def run(self) -> bool:
        """Run the proximity controller until stopped or the source ends"""
        return await self.until_stopped(self.controller.run(self.source.batches()))

    async def shutdown(self):
        """Gracefully shutdown all components"""
        logger.info("huelink_shutting_down")

        if self.source is not None and self.source.is_connected():
            await self.source.disconnect()
        if self.client is not None:
            await self.client.close()

        logger.info("huelink_stopped")

    def handle_signal(self, signum: int):
        """Handle shutdown signals"""
        logger.info("signal_received", signal=signal.Signals(signum).name)
        self.stop_event.set()


async def main_async() -> int:
    """Async main function"""
    daemon = HueLinkDaemon()

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, daemon.handle_signal, signum)

    try:
        # Prompts during startup wait on the console; a signal must still end them
        if not await daemon.until_stopped(daemon.startup()):
            logger.info("startup_interrupted")
            return 0
        await daemon.run()
        return 0

    except BridgeConnectionError as e:
        logger.error("bridge_connection_failed", stage=e.stage.value, error=str(e.cause))
        print(f"Something went wrong.\n{e.user_message}", file=sys.stderr)
        return 1
    except CommandFailed as e:
        logger.error("fixture_listing_failed", error=str(e))
        print(
            "Something went wrong.\nWe couldn't load your lights. Make sure they're in "
            "range and connected to a power source.",
            file=sys.stderr,
        )
        return 1
    except Exception as e:
        logger.error("daemon_error", error=str(e), exc_info=True)
        return 1
    finally:
        await daemon.shutdown()


def main():
    """Entry point for the daemon"""
    settings = get_settings()
    setup_logging(
        log_level=settings.log_level,
        json_logs=settings.json_logs,
        log_file=settings.log_file,
    )

    try:
        exit_code = asyncio.run(main_async())
    except KeyboardInterrupt:
        logger.info("interrupted_by_user")
        exit_code = 0
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
