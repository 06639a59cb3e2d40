"""
Tests for session, fixture and proximity models.
"""
from dataclasses import fields

import pytest

from huelink.exceptions import Unauthorized
from huelink.models import (
    STATE_WIRE_FIELDS,
    BridgeSession,
    Fixture,
    FixtureState,
    FixtureStateChange,
    ProximityClass,
    ProximitySample,
    ProximityState,
    normalize_address,
)


class TestBridgeSession:

    @pytest.mark.parametrize("raw", [
        "192.168.1.2",
        " 192.168.1.2 ",
        "http://192.168.1.2",
        "http://192.168.1.2/",
        "HTTPS://192.168.1.2//",
    ])
    def test_address_normalization(self, raw):
        assert normalize_address(raw) == "192.168.1.2"

    def test_urls(self):
        session = BridgeSession("http://10.0.0.2/", "abc")

        assert session.address == "10.0.0.2"
        assert session.base_url == "http://10.0.0.2/api/abc/"
        assert session.registration_url == "http://10.0.0.2/api"
        assert session.authorized

    def test_unauthorized_session(self):
        session = BridgeSession("10.0.0.2")

        assert not session.authorized
        with pytest.raises(Unauthorized) as exc_info:
            session.require_token("set_fixture_state", fixture_id="3")

        assert exc_info.value.operation == "set_fixture_state"
        assert exc_info.value.fixture_id == "3"

    def test_sessions_compare_by_value(self):
        assert BridgeSession("http://10.0.0.2", "t") == BridgeSession("10.0.0.2", "t")


class TestFixtureStateChange:

    def test_payload_contains_only_changed_fields(self):
        change = FixtureStateChange(brightness=120)

        assert change.to_payload() == {"bri": 120}
        assert change.changed_fields() == ["brightness"]
        assert change.wire_fields() == ["bri"]

    def test_payload_wire_names(self):
        change = FixtureStateChange(
            on=True, saturation=10, xy=[0.25, 0.5], color_mode="xy", alert="select",
        )

        assert change.to_payload() == {
            "on": True,
            "sat": 10,
            "xy": [0.25, 0.5],
            "alert": "select",
            "colormode": "xy",
        }

    def test_false_is_a_change(self):
        assert FixtureStateChange(on=False).to_payload() == {"on": False}

    def test_empty_change(self):
        assert FixtureStateChange().is_empty
        assert FixtureStateChange().to_payload() == {}

    def test_xy_normalized_to_tuple(self):
        assert FixtureStateChange(xy=[0, 1]).xy == (0.0, 1.0)

    @pytest.mark.parametrize("kwargs", [
        {"brightness": 255},
        {"brightness": -1},
        {"hue": 65536},
        {"saturation": 300},
        {"xy": (1.2, 0.3)},
        {"xy": (0.1, 0.2, 0.3)},
    ])
    def test_out_of_range_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            FixtureStateChange(**kwargs)

    def test_range_limits_accepted(self):
        change = FixtureStateChange(brightness=254, hue=65535, saturation=254, xy=(0.0, 1.0))
        assert change.to_payload()["hue"] == 65535

    def test_apply_to_keeps_untouched_fields(self):
        state = FixtureState(on=True, brightness=200, hue=100, saturation=50)

        updated = FixtureStateChange(brightness=10).apply_to(state)

        assert updated == FixtureState(on=True, brightness=10, hue=100, saturation=50)
        assert state.brightness == 200

    def test_wire_table_covers_every_state_attribute(self):
        state_names = {f.name for f in fields(FixtureState)}
        change_names = {f.name for f in fields(FixtureStateChange)}

        assert set(STATE_WIRE_FIELDS) == state_names == change_names


class TestFixture:

    def test_unreachable_fixture_not_actionable(self):
        assert Fixture(id="1", name="a", reachable=True).actionable
        assert not Fixture(id="2", name="b", reachable=False).actionable


class TestProximityModels:

    def test_sentinel_sample(self):
        assert ProximitySample(-127).out_of_range
        assert not ProximitySample(-90).out_of_range

    def test_state_records_transitions_only(self):
        state = ProximityState()

        state.record(ProximityClass.IN_RANGE)
        first_change = state.changed_at
        state.record(ProximityClass.IN_RANGE)

        assert state.classification is ProximityClass.IN_RANGE
        assert state.changed_at == first_change
