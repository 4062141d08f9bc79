"""Progression state carried by the client, and location readings."""

from datetime import datetime
from uuid import UUID

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field

from questtrail.quests.models import Coordinates


class ProgressionState(BaseModel):
    """A player's progress through one scenario.

    Lives only inside the state token. Transitions build a new value with
    ``model_copy(update=...)``; instances are never mutated.

    Attributes:
        scenario: Name of the scenario being played
        current_quest: Order of the active quest
        quest_deadline: When the active quest times out, None for no deadline
        quest_started: When the active quest was started
        player_id: Stable player identifier, kept across restarts
        scenario_restart_count: Times this player re-initialized this scenario
        scenario_started: When the scenario was initialized
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    scenario: str = Field(min_length=1)
    current_quest: int = Field(ge=0)
    quest_deadline: AwareDatetime | None
    quest_started: AwareDatetime
    player_id: UUID
    scenario_restart_count: int = Field(ge=0)
    scenario_started: AwareDatetime


class LocationReading(BaseModel):
    """A GPS reading and the time it was captured on the device."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90.0, le=90.0, allow_inf_nan=False)
    lon: float = Field(ge=-180.0, le=180.0, allow_inf_nan=False)
    captured_at: AwareDatetime

    def to_coordinates(self) -> Coordinates:
        return Coordinates(lat=self.lat, lon=self.lon)

    def age_seconds(self, now: datetime) -> float:
        """Absolute difference between capture time and ``now``."""
        return abs((now - self.captured_at).total_seconds())
