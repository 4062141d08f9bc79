"""Tests for the progression engine state machine."""

import uuid
from datetime import timedelta

import pytest

from questtrail.engine.outcomes import Countdown, LocationRequest, QuestEnd, ScenarioEnd
from questtrail.engine.service import (
    INIT_DEADLINE,
    LocationVerification,
    ProgressionEngine,
)
from questtrail.engine.state import ProgressionState
from questtrail.errors import (
    BadAccuracyError,
    DecodeError,
    LocationNotFreshError,
    MissingStateError,
    QuestNotFoundError,
    TechnicalError,
)

SCENARIO = "ancient-blood"
SECRETS = [
    "6a5fc6c0f8ec",
    "fd32c86119df9ea7",
    "a77e677275f1d5bf",
    "5f47fb7bd175f3fa",
    "55a20ef6c20eb34d",
    "1767c3c0e11b500c",
    "d6ae79f3091b4586",
]
SIGN = (60.2236, 24.7436)
BRIDGE = (60.2251, 24.7472)
SILO = (60.2284, 24.7398)

# At latitude 60 one degree of latitude is about 111.4 km
FIFTY_METERS_NORTH = 0.00045
ONE_HUNDRED_FIFTY_METERS_NORTH = 0.00135


@pytest.fixture
def engine(catalog, clock) -> ProgressionEngine:
    return ProgressionEngine(catalog, LocationVerification(True), clock=clock)


def make_state(clock, current_quest: int, deadline_in: float | None = None, **overrides) -> ProgressionState:
    values = {
        "scenario": SCENARIO,
        "current_quest": current_quest,
        "quest_deadline": clock.now + timedelta(seconds=deadline_in) if deadline_in is not None else None,
        "quest_started": clock.now,
        "player_id": uuid.UUID("00000000-0000-4000-8000-000000000001"),
        "scenario_restart_count": 0,
        "scenario_started": clock.now - timedelta(hours=1),
    }
    values.update(overrides)
    return ProgressionState(**values)


class TestInitScenario:
    """Tests for init_scenario."""

    def test_new_player(self, engine, clock) -> None:
        """A first scan creates a fresh state on quest 0."""
        action = engine.init_scenario(None, SCENARIO, SECRETS[0])

        state = action.state
        assert state.scenario == SCENARIO
        assert state.current_quest == 0
        assert state.scenario_restart_count == 0
        assert state.quest_started == clock.now
        assert state.scenario_started == clock.now
        assert state.quest_deadline == clock.now + INIT_DEADLINE
        assert action.state_changed is True

    def test_redirects_to_quest_zero_completion(self, engine) -> None:
        """Init funnels the player straight through completing quest 0."""
        action = engine.init_scenario(None, SCENARIO, SECRETS[0])

        assert isinstance(action.outcome, LocationRequest)
        assert action.outcome.view == "checkLocation"
        assert action.outcome.action == f"/api/engine/complete/{SCENARIO}/0/{SECRETS[0]}"

    def test_same_scenario_increments_restart_count(self, engine, clock) -> None:
        """Re-initializing the same scenario counts a restart and keeps the player."""
        existing = make_state(clock, 4, scenario_restart_count=2)

        action = engine.init_scenario(existing, SCENARIO, SECRETS[0])

        assert action.state.scenario_restart_count == 3
        assert action.state.player_id == existing.player_id
        assert action.state.current_quest == 0

    def test_other_scenario_resets_restart_count(self, engine, clock) -> None:
        """Switching scenarios resets the restart count but keeps the player."""
        existing = make_state(clock, 4, scenario_restart_count=2)

        action = engine.init_scenario(existing, "backyard-demo", "7f865c66f0881510")

        assert action.state.scenario_restart_count == 0
        assert action.state.player_id == existing.player_id
        assert action.state.scenario == "backyard-demo"

    def test_new_players_get_distinct_ids(self, engine) -> None:
        """Every new player gets a fresh id."""
        first = engine.init_scenario(None, SCENARIO, SECRETS[0])
        second = engine.init_scenario(None, SCENARIO, SECRETS[0])

        assert first.state.player_id != second.state.player_id

    @pytest.mark.parametrize(
        "scenario,secret",
        [
            (SCENARIO, "wrong"),
            (SCENARIO, SECRETS[1]),
            ("no-such-scenario", SECRETS[0]),
        ],
    )
    def test_bad_secret_or_scenario(self, engine, scenario, secret) -> None:
        """Secret failures never produce a state."""
        with pytest.raises(QuestNotFoundError, match="Quest not found"):
            engine.init_scenario(None, scenario, secret)


class TestStartQuest:
    """Tests for start_quest."""

    def test_start_after_quest_without_location(self, engine, clock) -> None:
        """Leaving a quest without a target needs no location check."""
        state = make_state(clock, 0, deadline_in=INIT_DEADLINE.total_seconds())

        action = engine.start_quest(state, SCENARIO, 1, SECRETS[1], "not-a-location")

        assert action.state.current_quest == 1
        assert action.state.quest_deadline is None
        assert action.state_changed is True
        assert isinstance(action.outcome, Countdown)
        assert action.outcome.view == "countdown"
        assert action.outcome.expires_at is None
        assert (action.outcome.lat, action.outcome.lon) == SIGN

    def test_start_sets_deadline_from_countdown(self, engine, clock, locate) -> None:
        """The deadline is now plus the quest's countdown."""
        state = make_state(clock, 1)

        action = engine.start_quest(state, SCENARIO, 2, SECRETS[2], locate(*SIGN))

        assert action.state.current_quest == 2
        assert action.state.quest_started == clock.now
        assert action.state.quest_deadline == clock.now + timedelta(seconds=900)
        assert action.outcome.now == int(clock.now.timestamp())
        assert action.outcome.expires_at == int(clock.now.timestamp()) + 900
        assert action.outcome.fictional_countdown == 3600
        assert (action.outcome.lat, action.outcome.lon) == BRIDGE

    def test_start_preserves_identity(self, engine, clock, locate) -> None:
        """Starting a quest keeps player, restart count and scenario start."""
        state = make_state(clock, 1, scenario_restart_count=5)

        action = engine.start_quest(state, SCENARIO, 2, SECRETS[2], locate(*SIGN))

        assert action.state.player_id == state.player_id
        assert action.state.scenario_restart_count == 5
        assert action.state.scenario_started == state.scenario_started

    def test_no_skipping(self, engine, clock, locate) -> None:
        """A quest can only be started right after the previous one."""
        state = make_state(clock, 0)

        with pytest.raises(TechnicalError, match="Bad cookie quest"):
            engine.start_quest(state, SCENARIO, 2, SECRETS[2], locate(*SIGN))

    def test_cannot_go_back(self, engine, clock, locate) -> None:
        """Starting an earlier quest is refused."""
        state = make_state(clock, 3)

        with pytest.raises(TechnicalError, match="Bad cookie quest"):
            engine.start_quest(state, SCENARIO, 2, SECRETS[2], locate(*SIGN))

    def test_rescan_of_running_quest_shows_countdown(self, engine, clock) -> None:
        """Starting the running quest again shows its countdown without a location check."""
        state = make_state(clock, 2, deadline_in=300)

        action = engine.start_quest(state, SCENARIO, 2, SECRETS[2], "not-a-location")

        assert action.state is state
        assert action.state_changed is False
        assert action.outcome.expires_at == int(state.quest_deadline.timestamp())

    def test_wrong_scenario_in_state(self, engine, clock, locate) -> None:
        """The state must belong to the requested scenario."""
        state = make_state(clock, 1, scenario="backyard-demo")

        with pytest.raises(TechnicalError, match="Bad cookie scenario"):
            engine.start_quest(state, SCENARIO, 2, SECRETS[2], locate(*SIGN))

    def test_missing_state(self, engine, locate) -> None:
        """Without a state the player is told where the scenario starts."""
        with pytest.raises(MissingStateError) as exc_info:
            engine.start_quest(None, SCENARIO, 2, SECRETS[2], locate(*SIGN))

        assert exc_info.value.scenario == SCENARIO
        # Quest 0 of this scenario has no target
        assert exc_info.value.lat is None

    def test_wrong_secret(self, engine, clock, locate) -> None:
        """The secret of the quest being started is required."""
        state = make_state(clock, 1)

        with pytest.raises(QuestNotFoundError):
            engine.start_quest(state, SCENARIO, 2, SECRETS[3], locate(*SIGN))

    def test_near_previous_target(self, engine, clock, locate) -> None:
        """A reading 50 meters from the previous target is accepted."""
        state = make_state(clock, 1)

        action = engine.start_quest(
            state, SCENARIO, 2, SECRETS[2], locate(SIGN[0] + FIFTY_METERS_NORTH, SIGN[1])
        )

        assert action.state.current_quest == 2

    def test_far_from_previous_target(self, engine, clock, locate) -> None:
        """A reading 150 meters from the previous target is refused."""
        state = make_state(clock, 1)

        with pytest.raises(BadAccuracyError):
            engine.start_quest(
                state, SCENARIO, 2, SECRETS[2], locate(SIGN[0] + ONE_HUNDRED_FIFTY_METERS_NORTH, SIGN[1])
            )

    def test_far_reading_accepted_when_verification_disabled(self, engine, clock, locate) -> None:
        """Toggling verification off lets the same reading through."""
        state = make_state(clock, 1)
        location = locate(SIGN[0] + ONE_HUNDRED_FIFTY_METERS_NORTH, SIGN[1])

        assert engine.toggle_location_verification() is False
        action = engine.start_quest(state, SCENARIO, 2, SECRETS[2], location)

        assert action.state.current_quest == 2

    @pytest.mark.parametrize("offset", [-31, 31])
    def test_stale_location(self, engine, clock, locate, offset) -> None:
        """A reading more than 30 seconds from now is refused even on target."""
        state = make_state(clock, 1)
        location = locate(*SIGN, captured_at=clock.now + timedelta(seconds=offset))

        with pytest.raises(LocationNotFreshError):
            engine.start_quest(state, SCENARIO, 2, SECRETS[2], location)

    def test_location_within_freshness_window(self, engine, clock, locate) -> None:
        """A reading 29 seconds old is still fresh."""
        state = make_state(clock, 1)
        location = locate(*SIGN, captured_at=clock.now - timedelta(seconds=29))

        action = engine.start_quest(state, SCENARIO, 2, SECRETS[2], location)

        assert action.state.current_quest == 2

    def test_garbled_location(self, engine, clock) -> None:
        """An undecodable location segment is refused."""
        state = make_state(clock, 1)

        with pytest.raises(DecodeError):
            engine.start_quest(state, SCENARIO, 2, SECRETS[2], "garbled")


class TestComplete:
    """Tests for init_complete and complete."""

    def test_init_complete(self, engine) -> None:
        """The location prompt points at the completion endpoint of the quest."""
        outcome = engine.init_complete(SCENARIO, 2, SECRETS[2])

        assert outcome == LocationRequest(
            view="checkLocation",
            action=f"/api/engine/complete/{SCENARIO}/2/{SECRETS[2]}",
            lat=BRIDGE[0],
            lon=BRIDGE[1],
        )

    def test_init_complete_wrong_secret(self, engine) -> None:
        with pytest.raises(QuestNotFoundError):
            engine.init_complete(SCENARIO, 2, SECRETS[0])

    def test_concrete_run(self, engine, locate) -> None:
        """Init then complete quest 0 ends the quest and leaves the state alone."""
        init = engine.init_scenario(None, SCENARIO, SECRETS[0])

        first = engine.complete(init.state, SCENARIO, 0, SECRETS[0], locate(*SIGN))
        second = engine.complete(init.state, SCENARIO, 0, SECRETS[0], locate(*SIGN))

        assert first.state is init.state
        assert first.state_changed is False
        assert first.outcome == QuestEnd(
            view="ancient-blood/intro",
            failed=False,
            quest_order=0,
            next_quest_order=1,
            next_quest_action=f"/api/engine/start/{SCENARIO}/1/{SECRETS[1]}",
        )
        assert second == first

    def test_complete_in_time(self, engine, clock, locate) -> None:
        """Completing on target before the deadline shows the success page."""
        state = make_state(clock, 2, deadline_in=900)
        clock.advance(600)

        action = engine.complete(state, SCENARIO, 2, SECRETS[2], locate(*BRIDGE))

        assert action.outcome.view == "ancient-blood/bridge-success"
        assert action.outcome.failed is False

    def test_complete_after_deadline(self, engine, clock, locate) -> None:
        """Completing after the deadline shows the failure page and still allows moving on."""
        state = make_state(clock, 2, deadline_in=900)
        clock.advance(901)

        action = engine.complete(state, SCENARIO, 2, SECRETS[2], locate(*BRIDGE))

        assert action.outcome.view == "ancient-blood/bridge-failure"
        assert action.outcome.failed is True
        assert action.outcome.next_quest_order == 3

    def test_last_quest_after_deadline(self, engine, clock, locate) -> None:
        """The last quest past its deadline ends the scenario with the failure page."""
        state = make_state(clock, 6, deadline_in=-1)

        action = engine.complete(state, SCENARIO, 6, SECRETS[6], locate(*SILO))

        assert action.outcome == ScenarioEnd(
            view="ancient-blood/scenario-failure", failed=True, quest_order=6
        )

    def test_last_quest_in_time(self, engine, clock, locate) -> None:
        state = make_state(clock, 6, deadline_in=60)

        action = engine.complete(state, SCENARIO, 6, SECRETS[6], locate(*SILO))

        assert action.outcome == ScenarioEnd(
            view="ancient-blood/scenario-success", failed=False, quest_order=6
        )

    def test_far_from_target(self, engine, clock, locate) -> None:
        state = make_state(clock, 2, deadline_in=900)

        with pytest.raises(BadAccuracyError):
            engine.complete(
                state, SCENARIO, 2, SECRETS[2], locate(BRIDGE[0] + ONE_HUNDRED_FIFTY_METERS_NORTH, BRIDGE[1])
            )

    def test_stale_location(self, engine, clock, locate) -> None:
        state = make_state(clock, 2, deadline_in=900)
        location = locate(*BRIDGE, captured_at=clock.now - timedelta(seconds=31))

        with pytest.raises(LocationNotFreshError):
            engine.complete(state, SCENARIO, 2, SECRETS[2], location)

    def test_wrong_quest_in_state(self, engine, clock, locate) -> None:
        """Completing a quest other than the running one is refused."""
        state = make_state(clock, 1)

        with pytest.raises(TechnicalError, match="Bad cookie quest"):
            engine.complete(state, SCENARIO, 2, SECRETS[2], locate(*BRIDGE))

    def test_missing_state(self, engine, locate) -> None:
        with pytest.raises(MissingStateError):
            engine.complete(None, SCENARIO, 2, SECRETS[2], locate(*BRIDGE))


class TestLocationVerification:
    """Tests for the process-wide verification switch."""

    def test_toggle(self) -> None:
        verification = LocationVerification(True)

        assert verification.toggle() is False
        assert verification.enabled is False
        assert verification.toggle() is True
        assert verification.enabled is True

    def test_engine_exposes_switch(self, catalog, clock) -> None:
        engine = ProgressionEngine(catalog, LocationVerification(False), clock=clock)

        assert engine.location_verification_enabled is False
        assert engine.toggle_location_verification() is True
        assert engine.location_verification_enabled is True
