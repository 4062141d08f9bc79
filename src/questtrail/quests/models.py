"""Quest catalog data models."""

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Coordinates(BaseModel):
    """A point on the WGS-84 ellipsoid, in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)


class Quest(BaseModel):
    """One step of a scenario.

    Attributes:
        order: Position in the scenario (0-based, dense)
        name: Diagnostic name, never shown to the player
        secret: Value encoded in the quest's QR code
        location: Target the player must reach, None for no proximity check
        countdown: Seconds to reach the target, None for no deadline
        fictional_countdown: Cosmetic countdown shown on the countdown page
        success_page: View shown when the quest is completed in time
        failure_page: View shown when the deadline was exceeded
        countdown_page: View shown while the quest is running
    """

    model_config = ConfigDict(frozen=True)

    order: int = Field(ge=0)
    name: str = ""
    secret: str = Field(min_length=1)
    location: Coordinates | None = None
    countdown: int | None = Field(default=None, ge=0)
    fictional_countdown: int | None = Field(default=None, ge=0)
    success_page: str
    failure_page: str
    countdown_page: str = "countdown"


class Scenario(BaseModel):
    """A named, ordered sequence of quests."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    quests: tuple[Quest, ...]

    @model_validator(mode="after")
    def _check_orders(self) -> "Scenario":
        orders = [quest.order for quest in self.quests]
        if not orders:
            raise ValueError(f"Scenario {self.name} has no quests")
        if orders != list(range(len(orders))):
            raise ValueError(
                f"Scenario {self.name} quest orders must be 0..{len(orders) - 1} in order, got {orders}"
            )
        return self

    @property
    def last_quest(self) -> Quest:
        return self.quests[-1]


class ScenarioTable(BaseModel):
    """Root of the scenario definition file."""

    model_config = ConfigDict(frozen=True)

    scenarios: tuple[Scenario, ...]

    @model_validator(mode="after")
    def _check_unique_names(self) -> "ScenarioTable":
        names = [scenario.name for scenario in self.scenarios]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate scenario names: {', '.join(duplicates)}")
        return self
