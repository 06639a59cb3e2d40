"""
Tests for the proximity controller.

Covers batch classification, command targeting, pacing and the handling
of per-fixture command failures.
"""
from unittest.mock import AsyncMock, call, patch

import pytest

from huelink.exceptions import CommandFailed
from huelink.logic.proximity import ProximityController
from huelink.models import Fixture, FixtureState
from huelink.models.proximity import ProximityClass, ProximitySample


def make_fixture(fixture_id, on=False, reachable=True):
    return Fixture(
        id=fixture_id,
        name=f"Light {fixture_id}",
        reachable=reachable,
        state=FixtureState(on=on, brightness=200),
    )


def samples(*rssi_values):
    return [ProximitySample(rssi) for rssi in rssi_values]


@pytest.fixture
def client():
    mock = AsyncMock()
    mock.set_power.return_value = {"on": True}
    return mock


@pytest.fixture
def make_controller(client):
    def factory(fixtures, **kwargs):
        kwargs.setdefault("command_delay", 0)
        kwargs.setdefault("settle_delay", 0)
        return ProximityController(client, fixtures, **kwargs)
    return factory


class TestClassify:
    """Tests for batch classification."""

    def test_all_readings_in_range(self):
        assert ProximityController.classify(samples(-58, -61, -70)) is ProximityClass.IN_RANGE

    def test_sentinel_wins_over_other_readings(self):
        """One -127 reading among strong ones makes the batch out of range."""
        assert ProximityController.classify(samples(-40, -127, -55)) is ProximityClass.OUT_OF_RANGE

    def test_sentinel_among_five_readings(self):
        """One -127 reading among five others, four of them strong."""
        batch = samples(-40, -45, -50, -127, -55, -90)

        assert ProximityController.classify(batch) is ProximityClass.OUT_OF_RANGE

    def test_single_sentinel(self):
        assert ProximityController.classify(samples(-127)) is ProximityClass.OUT_OF_RANGE

    def test_weak_reading_is_still_in_range(self):
        assert ProximityController.classify(samples(-126)) is ProximityClass.IN_RANGE

    def test_empty_batch_rejected(self):
        with pytest.raises(ValueError):
            ProximityController.classify([])


class TestProcessBatch:
    """Tests for command targeting."""

    @pytest.mark.asyncio
    async def test_out_of_range_turns_every_fixture_off(self, make_controller, client):
        """Every reachable fixture is commanded off, even ones believed off."""
        fixtures = [make_fixture("1", on=True), make_fixture("2"), make_fixture("3", on=True)]
        controller = make_controller(fixtures)

        result = await controller.process_batch(samples(-127))

        assert result.classification is ProximityClass.OUT_OF_RANGE
        assert client.set_power.await_args_list == [
            call("1", False), call("2", False), call("3", False),
        ]
        assert result.commanded == ["1", "2", "3"]
        assert all(f.state.on is False for f in fixtures)

    @pytest.mark.asyncio
    async def test_in_range_only_turns_on_fixtures_that_are_off(self, make_controller, client):
        fixtures = [make_fixture("1", on=True), make_fixture("2"), make_fixture("3", on=True)]
        controller = make_controller(fixtures)

        result = await controller.process_batch(samples(-60))

        client.set_power.assert_awaited_once_with("2", True)
        assert result.commanded == ["2"]
        assert fixtures[1].state.on is True

    @pytest.mark.asyncio
    async def test_command_counts_differ_by_direction(self, client):
        """With [on, off, on], arrival sends 1 command and departure sends 3."""
        arriving = ProximityController(
            client, [make_fixture("1", on=True), make_fixture("2"), make_fixture("3", on=True)],
            command_delay=0, settle_delay=0,
        )
        await arriving.process_batch(samples(-50))
        assert client.set_power.await_count == 1

        client.set_power.reset_mock()
        leaving = ProximityController(
            client, [make_fixture("1", on=True), make_fixture("2"), make_fixture("3", on=True)],
            command_delay=0, settle_delay=0,
        )
        await leaving.process_batch(samples(-127))
        assert client.set_power.await_count == 3

    @pytest.mark.asyncio
    async def test_unreachable_fixtures_are_skipped(self, make_controller, client):
        fixtures = [make_fixture("1", on=True), make_fixture("2", on=True, reachable=False)]
        controller = make_controller(fixtures)

        await controller.process_batch(samples(-127))

        client.set_power.assert_awaited_once_with("1", False)

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_remaining_fixtures(self, make_controller, client):
        """A failed command is recorded and later fixtures are still commanded."""
        failure = CommandFailed("set_fixture_state", "timed out", fixture_id="2", fields=["on"])
        client.set_power.side_effect = [{"on": False}, failure, {"on": False}]
        fixtures = [make_fixture("1", on=True), make_fixture("2", on=True), make_fixture("3", on=True)]
        controller = make_controller(fixtures)

        result = await controller.process_batch(samples(-127))

        assert client.set_power.await_count == 3
        assert result.commanded == ["1", "3"]
        assert result.failed == {"2": failure}
        assert not result.succeeded
        assert fixtures[1].state.on is True
        assert controller.commands_sent == 2
        assert controller.commands_failed == 1

    @pytest.mark.asyncio
    async def test_failed_batch_is_not_recorded(self, make_controller, client):
        """A partially failed batch is retried when the same class arrives again."""
        client.set_power.side_effect = [CommandFailed("set_fixture_state", "busy", fixture_id="1"), {"on": False}]
        controller = make_controller([make_fixture("1", on=True)])

        first = await controller.process_batch(samples(-127))
        second = await controller.process_batch(samples(-127))

        assert not first.succeeded
        assert not second.suppressed
        assert client.set_power.await_count == 2
        assert controller.state.classification is ProximityClass.OUT_OF_RANGE

    @pytest.mark.asyncio
    async def test_repeat_in_range_is_suppressed(self, make_controller, client):
        """A fixture switched off by hand stays off while the beacon stays in range."""
        fixtures = [make_fixture("1")]
        controller = make_controller(fixtures)

        await controller.process_batch(samples(-60))
        fixtures[0].state.on = False
        result = await controller.process_batch(samples(-58, -62))

        assert result.suppressed
        client.set_power.assert_awaited_once_with("1", True)
        assert controller.state.batches_processed == 2

    @pytest.mark.asyncio
    async def test_repeat_out_of_range_is_always_applied(self, make_controller, client):
        """Every out-of-range batch turns fixtures off again."""
        controller = make_controller([make_fixture("1", on=True)])

        await controller.process_batch(samples(-127))
        result = await controller.process_batch(samples(-127, -127))

        assert not result.suppressed
        assert client.set_power.await_args_list == [call("1", False), call("1", False)]

    @pytest.mark.asyncio
    async def test_repeats_processed_when_suppression_disabled(self, make_controller, client):
        fixtures = [make_fixture("1")]
        controller = make_controller(fixtures, suppress_repeats=False)

        await controller.process_batch(samples(-60))
        fixtures[0].state.on = False
        await controller.process_batch(samples(-60))

        assert client.set_power.await_count == 2

    @pytest.mark.asyncio
    async def test_state_change_recorded(self, make_controller):
        controller = make_controller([make_fixture("1")])

        await controller.process_batch(samples(-55))

        assert controller.state.classification is ProximityClass.IN_RANGE
        assert controller.state.changed_at is not None

    @pytest.mark.asyncio
    async def test_empty_batch_raises(self, make_controller, client):
        controller = make_controller([make_fixture("1")])

        with pytest.raises(ValueError):
            await controller.process_batch([])

        client.set_power.assert_not_awaited()


class TestPacing:
    """Tests for inter-command and settle delays."""

    @pytest.mark.asyncio
    async def test_delay_after_each_command_then_settle(self, client):
        controller = ProximityController(
            client,
            [make_fixture("1", on=True), make_fixture("2", on=True)],
        )

        with patch("huelink.logic.proximity.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await controller.process_batch(samples(-127))

        assert mock_sleep.await_args_list == [call(0.25), call(0.25), call(1.0)]

    @pytest.mark.asyncio
    async def test_delay_follows_failed_command(self, client):
        client.set_power.side_effect = CommandFailed("set_fixture_state", "down", fixture_id="1")
        controller = ProximityController(
            client, [make_fixture("1", on=True)], command_delay=0.5, settle_delay=2.0,
        )

        with patch("huelink.logic.proximity.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await controller.process_batch(samples(-127))

        assert mock_sleep.await_args_list == [call(0.5), call(2.0)]


async def batch_stream(*batches):
    for batch in batches:
        yield batch


class TestRun:
    """Tests for the batch loop."""

    @pytest.mark.asyncio
    async def test_run_refreshes_before_each_batch(self, make_controller, client):
        client.list_fixtures.side_effect = [
            [make_fixture("1"), make_fixture("2", on=True)],
            [make_fixture("1", on=True), make_fixture("2", on=True)],
        ]
        controller = make_controller([])

        await controller.run(batch_stream(samples(-60), samples(-127)))

        assert client.list_fixtures.await_count == 2
        assert client.set_power.await_args_list == [
            call("1", True), call("1", False), call("2", False),
        ]

    @pytest.mark.asyncio
    async def test_run_skips_empty_batches(self, make_controller, client):
        controller = make_controller([make_fixture("1")])

        await controller.run(batch_stream([], samples(-60)), refresh=False)

        client.list_fixtures.assert_not_awaited()
        client.set_power.assert_awaited_once_with("1", True)
        assert controller.state.batches_processed == 1

    @pytest.mark.asyncio
    async def test_run_skips_batch_when_refresh_fails(self, make_controller, client):
        client.list_fixtures.side_effect = [
            CommandFailed("list_fixtures", "hub offline"),
            [make_fixture("1")],
        ]
        controller = make_controller([])

        await controller.run(batch_stream(samples(-60), samples(-61)))

        client.set_power.assert_awaited_once_with("1", True)
        assert controller.state.batches_processed == 1
