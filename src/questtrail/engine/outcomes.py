"""Client-visible outcomes of engine operations.

Each outcome names the view the client should show and carries the data
for it. The HTTP layer renders them as JSON.
"""

from dataclasses import dataclass

from questtrail.engine.state import ProgressionState
from questtrail.quests.models import Quest

ENGINE_PATH = "/api/engine"


def init_path(scenario: str, quest: Quest) -> str:
    """Path encoded in the QR code that (re)starts a scenario."""
    return f"{ENGINE_PATH}/init/{scenario}/{quest.secret}"


def complete_path(scenario: str, quest: Quest) -> str:
    """Path of the completion endpoint; the client appends the location segment."""
    return f"{ENGINE_PATH}/complete/{scenario}/{quest.order}/{quest.secret}"


def start_path(scenario: str, quest: Quest) -> str:
    """Path of the start endpoint; the client appends the location segment."""
    return f"{ENGINE_PATH}/start/{scenario}/{quest.order}/{quest.secret}"


@dataclass(frozen=True)
class Outcome:
    """Base class for all outcomes."""

    view: str


@dataclass(frozen=True)
class LocationRequest(Outcome):
    """Ask the device for a location, then call ``action`` with it appended."""

    action: str
    lat: float | None = None
    lon: float | None = None


@dataclass(frozen=True)
class Countdown(Outcome):
    """Quest is running; show the countdown and where to go.

    Times are epoch seconds. ``expires_at`` is None for quests without a
    deadline.
    """

    now: int
    expires_at: int | None
    fictional_countdown: int | None
    lat: float | None
    lon: float | None


@dataclass(frozen=True)
class QuestEnd(Outcome):
    """Quest completed (or failed); the player can start ``next_quest``."""

    failed: bool
    quest_order: int
    next_quest_order: int
    next_quest_action: str


@dataclass(frozen=True)
class ScenarioEnd(Outcome):
    """Last quest completed (or failed)."""

    failed: bool
    quest_order: int


@dataclass(frozen=True)
class EngineAction:
    """Outcome to show plus the state to store in the token.

    ``state_changed`` is False when the caller should leave the token as is.
    """

    outcome: Outcome
    state: ProgressionState
    state_changed: bool = True
