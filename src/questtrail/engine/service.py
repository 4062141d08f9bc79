"""Progression engine: decides whether a transition is legal and what comes next."""

import logging
import threading
import uuid
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from questtrail.engine.location_codec import decode_location
from questtrail.engine.outcomes import (
    Countdown,
    EngineAction,
    LocationRequest,
    QuestEnd,
    ScenarioEnd,
    complete_path,
    start_path,
)
from questtrail.engine.state import LocationReading, ProgressionState
from questtrail.errors import BadAccuracyError, LocationNotFreshError, MissingStateError, TechnicalError
from questtrail.quests.catalog import QuestCatalog, get_catalog
from questtrail.quests.models import Coordinates, Quest
from questtrail.settings import get_settings
from questtrail.utils.geo import distance

logger = logging.getLogger(__name__)

# A reading must reach us right after the device granted it.
LOCATION_FRESHNESS_SECONDS = 30
# Allowed distance between a reading and the quest target.
PROXIMITY_TOLERANCE_METERS = 100.0
# Scanning the initiating QR means the player is already there: no real deadline.
INIT_DEADLINE = timedelta(days=3650)

CHECK_LOCATION_VIEW = "checkLocation"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


class LocationVerification:
    """Process-wide switch for proximity checks.

    Operator controlled, not part of any player's state. Reads are
    unsynchronized; a racing request just sees the old or new value.
    """

    def __init__(self, enabled: bool = True) -> None:
        self._enabled = enabled
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self._enabled

    def toggle(self) -> bool:
        """Flip the switch and return the new value."""
        with self._lock:
            self._enabled = not self._enabled
            return self._enabled


class ProgressionEngine:
    """Stateless state machine over client-held progression state.

    Every operation takes the current state (if any) and the request
    evidence, and either returns an ``EngineAction`` or raises a
    ``TechnicalError``. Nothing is kept between calls apart from the
    catalog and the location verification switch.
    """

    def __init__(
        self,
        catalog: QuestCatalog,
        verification: LocationVerification | None = None,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize the engine.

        Args:
            catalog: Scenario definitions
            verification: Proximity check switch (enabled by default)
            clock: Source of the current time, injectable for tests
        """
        self.catalog = catalog
        self.verification = verification or LocationVerification()
        self.clock = clock

    @property
    def location_verification_enabled(self) -> bool:
        return self.verification.enabled

    def toggle_location_verification(self) -> bool:
        """Flip proximity checking on or off for the whole process."""
        enabled = self.verification.toggle()
        logger.warning(f"Location verification is now {'enabled' if enabled else 'disabled'}")
        return enabled

    def init_scenario(
        self,
        state: ProgressionState | None,
        scenario: str,
        secret: str,
    ) -> EngineAction:
        """Start (or restart) a scenario from its initiating QR code.

        The player is sent straight on to complete quest 0, so that location
        permission or device problems show up right away and not later in
        the field.

        Args:
            state: Existing state, None for a new player
            scenario: Scenario to start
            secret: Secret of quest 0

        Returns:
            Location request for completing quest 0, and the new state
        """
        quest = self.catalog.find_quest(scenario, 0, secret)
        now = self.clock()

        if state is None:
            player_id = uuid.uuid4()
            restart_count = 0
        else:
            player_id = state.player_id
            restart_count = state.scenario_restart_count + 1 if state.scenario == scenario else 0

        new_state = ProgressionState(
            scenario=scenario,
            current_quest=0,
            quest_deadline=now + INIT_DEADLINE,
            quest_started=now,
            player_id=player_id,
            scenario_restart_count=restart_count,
            scenario_started=now,
        )
        logger.info(
            f"Player {player_id} initialized scenario {scenario} (restart {restart_count})"
        )
        return EngineAction(self._location_request(scenario, quest), new_state)

    def start_quest(
        self,
        state: ProgressionState | None,
        scenario: str,
        quest_order: int,
        secret: str,
        location: str,
    ) -> EngineAction:
        """Start the next quest, when the player presses "go".

        The secret gates the quest being entered. The location must be
        close to the target of the quest being left.

        Returns:
            Countdown for the started quest and the new state. If the quest
            is already running, its countdown and the unchanged state.
        """
        quest = self.catalog.find_quest(scenario, quest_order, secret)
        previous = self.catalog.find_quest(scenario, quest_order - 1)

        if state is None:
            raise self._missing_state(scenario)

        self._assert_equal(state.scenario, scenario, "Bad cookie scenario")

        if quest_order == state.current_quest:
            logger.info(f"Quest {quest_order} of {scenario} already running, showing countdown")
            return EngineAction(self._countdown(quest, state.quest_deadline), state, state_changed=False)

        self._assert_equal(state.current_quest, quest_order - 1, "Bad cookie quest")

        if previous.location is not None:
            reading = self._fresh_reading(location)
            self._assert_proximity(previous.location, reading)

        now = self.clock()
        deadline = now + timedelta(seconds=quest.countdown) if quest.countdown is not None else None
        new_state = state.model_copy(
            update={
                "quest_started": now,
                "current_quest": quest_order,
                "quest_deadline": deadline,
            }
        )
        logger.info(f"Player {state.player_id} started quest {quest_order} of {scenario}")
        return EngineAction(self._countdown(quest, deadline), new_state)

    def init_complete(self, scenario: str, quest_order: int, secret: str) -> LocationRequest:
        """Send the player through the location prompt to the completion endpoint.

        No state is read or written; this only exists because reading the
        location is an asynchronous browser permission flow.
        """
        quest = self.catalog.find_quest(scenario, quest_order, secret)
        return self._location_request(scenario, quest)

    def complete(
        self,
        state: ProgressionState | None,
        scenario: str,
        quest_order: int,
        secret: str,
        location: str,
    ) -> EngineAction:
        """Complete the running quest by scanning its QR code on site.

        The state is never advanced here; the next quest only starts via
        :meth:`start_quest`. Calling this again with the same inputs gives
        the same result.

        Returns:
            Quest end (or scenario end) outcome and the unchanged state
        """
        quest = self.catalog.find_quest(scenario, quest_order, secret)
        reading = self._fresh_reading(location)

        if state is None:
            raise self._missing_state(scenario)

        self._assert_equal(state.scenario, scenario, "Bad cookie scenario")
        self._assert_equal(state.current_quest, quest_order, "Bad cookie quest")

        if quest.location is not None:
            self._assert_proximity(quest.location, reading)

        now = self.clock()
        failed = (
            quest.countdown is not None
            and state.quest_deadline is not None
            and now > state.quest_deadline
        )
        page = quest.failure_page if failed else quest.success_page
        if failed:
            logger.info(f"Player {state.player_id} ran out of time on quest {quest_order} of {scenario}")
        else:
            logger.info(f"Player {state.player_id} completed quest {quest_order} of {scenario}")

        if self.catalog.is_last_quest(scenario, quest_order):
            outcome = ScenarioEnd(view=page, failed=failed, quest_order=quest_order)
        else:
            next_quest = self.catalog.find_quest(scenario, quest_order + 1)
            outcome = QuestEnd(
                view=page,
                failed=failed,
                quest_order=quest_order,
                next_quest_order=next_quest.order,
                next_quest_action=start_path(scenario, next_quest),
            )
        return EngineAction(outcome, state, state_changed=False)

    def _fresh_reading(self, location: str) -> LocationReading:
        reading = decode_location(location)
        age = reading.age_seconds(self.clock())
        if age > LOCATION_FRESHNESS_SECONDS:
            raise LocationNotFreshError(f"Location reading is {age:.0f}s away from now")
        return reading

    def _assert_proximity(self, target: Coordinates, reading: LocationReading) -> None:
        if not self.verification.enabled:
            return
        meters = distance(target, reading.to_coordinates())
        if meters > PROXIMITY_TOLERANCE_METERS:
            logger.error(
                f"Quest location [{target.lat}, {target.lon}] "
                f"location [{reading.lat}, {reading.lon}] distance [{meters:.1f}]"
            )
            raise BadAccuracyError("Bad gps accuracy")

    def _countdown(self, quest: Quest, deadline: datetime | None) -> Countdown:
        return Countdown(
            view=quest.countdown_page,
            now=int(self.clock().timestamp()),
            expires_at=int(deadline.timestamp()) if deadline is not None else None,
            fictional_countdown=quest.fictional_countdown,
            lat=quest.location.lat if quest.location else None,
            lon=quest.location.lon if quest.location else None,
        )

    def _location_request(self, scenario: str, quest: Quest) -> LocationRequest:
        return LocationRequest(
            view=CHECK_LOCATION_VIEW,
            action=complete_path(scenario, quest),
            lat=quest.location.lat if quest.location else None,
            lon=quest.location.lon if quest.location else None,
        )

    def _missing_state(self, scenario: str) -> MissingStateError:
        first = self.catalog.first_quest(scenario)
        if first.location is None:
            return MissingStateError(scenario)
        return MissingStateError(scenario, first.location.lat, first.location.lon)

    @staticmethod
    def _assert_equal(actual: object, expected: object, message: str) -> None:
        if actual != expected:
            raise TechnicalError(f"{message}: expected {expected!r}, got {actual!r}")


# Global singleton instance
_engine: ProgressionEngine | None = None


def get_engine() -> ProgressionEngine:
    """Get the global engine instance."""
    global _engine
    if _engine is None:
        _engine = ProgressionEngine(
            get_catalog(),
            LocationVerification(get_settings().location_verification_enabled),
        )
    return _engine
