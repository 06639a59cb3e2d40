"""
Hub Schemas - Pydantic models for decoding hub responses
"""
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from huelink.models.fixtures import Fixture, FixtureState


class FixtureStateSchema(BaseModel):
    model_config = ConfigDict(extra="ignore")

    on: bool = False
    bri: int = Field(default=0, ge=0, le=254)
    hue: int = Field(default=0, ge=0, le=65535)
    sat: int = Field(default=0, ge=0, le=254)
    xy: Optional[Tuple[float, float]] = None
    alert: Optional[str] = None
    effect: Optional[str] = None
    colormode: Optional[str] = None
    reachable: bool = False

    @field_validator("xy")
    @classmethod
    def xy_in_gamut(cls, value):
        if value is not None and not all(0.0 <= c <= 1.0 for c in value):
            raise ValueError("xy coordinates must be between 0.0 and 1.0")
        return value


class FixtureSchema(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    state: FixtureStateSchema
    type: Optional[str] = None
    modelid: Optional[str] = None
    swversion: Optional[str] = None

    def to_fixture(self, fixture_id: str) -> Fixture:
        """Convert the wire representation into a Fixture"""
        s = self.state
        return Fixture(
            id=fixture_id,
            name=self.name,
            reachable=s.reachable,
            state=FixtureState(
                on=s.on,
                brightness=s.bri,
                hue=s.hue,
                saturation=s.sat,
                xy=s.xy,
                alert=s.alert,
                effect=s.effect,
                color_mode=s.colormode,
            ),
            type=self.type,
            model_id=self.modelid,
            software_version=self.swversion,
        )


class HubError(BaseModel):
    """One entry of a hub error array: [{"error": {...}}]"""
    model_config = ConfigDict(extra="ignore")

    type: int = 0
    address: str = ""
    description: str = ""


def extract_errors(body: Any) -> List[HubError]:
    """Collect error entries from a hub response body"""
    if not isinstance(body, list):
        return []
    errors = []
    for entry in body:
        if isinstance(entry, dict) and isinstance(entry.get("error"), dict):
            errors.append(HubError.model_validate(entry["error"]))
    return errors


def extract_successes(body: Any) -> List[dict]:
    """Collect success payloads from a hub response body"""
    if not isinstance(body, list):
        return []
    return [
        entry["success"]
        for entry in body
        if isinstance(entry, dict) and isinstance(entry.get("success"), dict)
    ]
