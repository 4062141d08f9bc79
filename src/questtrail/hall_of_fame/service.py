"""Hall of fame service with business logic."""

import logging
from dataclasses import dataclass

from questtrail.db.models import NICKNAME_MAX_LENGTH
from questtrail.db.repositories.hall_of_fame import HallOfFameRepository
from questtrail.engine.outcomes import ScenarioEnd
from questtrail.engine.service import ProgressionEngine
from questtrail.engine.state import ProgressionState
from questtrail.errors import TechnicalError

logger = logging.getLogger(__name__)


def format_elapsed(seconds: int) -> str:
    """Format a duration as HH:MM:SS (hours are not wrapped at 24)."""
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


@dataclass(frozen=True)
class HallOfFameEntry:
    """One row of a scenario's hall of fame (domain object)."""

    nickname: str
    elapsed_seconds: int

    @property
    def time(self) -> str:
        return format_elapsed(self.elapsed_seconds)


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of a hall of fame submission."""

    scenario: str
    nickname: str
    elapsed_seconds: int
    created: bool


class HallOfFameService:
    """Hall of fame business logic."""

    def __init__(self, repo: HallOfFameRepository, engine: ProgressionEngine) -> None:
        """Initialize the service.

        Args:
            repo: Repository for stored results
            engine: Progression engine, to check the player finished; its
                catalog and clock are used as well
        """
        self.repo = repo
        self.engine = engine

    async def submit(
        self,
        state: ProgressionState,
        nickname: str,
        secret: str,
        location: str,
    ) -> SubmissionResult:
        """Record a finished scenario under a nickname.

        The submission carries the last quest's secret and a fresh location
        reading, and is only stored when completing the player's current
        quest with them ends the scenario. A run that ended after the
        deadline is stored as well. The elapsed time runs from scenario
        initialization to now. Submitting the same run twice within the
        same second stores it once.

        Args:
            state: Decoded progression state of the player
            nickname: Name to show, trimmed and cut to 50 characters
            secret: Secret of the last quest's QR code
            location: Encoded location reading taken at the last quest

        Returns:
            The stored values and whether a new row was created

        Raises:
            TechnicalError: If the scenario is not finished or the nickname is blank
        """
        if not self.engine.catalog.is_last_quest(state.scenario, state.current_quest):
            raise TechnicalError(
                f"Hall of fame submission from quest {state.current_quest} of {state.scenario}"
            )

        cleaned = nickname.strip()[:NICKNAME_MAX_LENGTH].strip()
        if not cleaned:
            raise TechnicalError("Blank hall of fame nickname")

        action = self.engine.complete(state, state.scenario, state.current_quest, secret, location)
        if not isinstance(action.outcome, ScenarioEnd):
            raise TechnicalError(f"Hall of fame submission did not end {state.scenario}")

        elapsed = max(0, int((self.engine.clock() - state.scenario_started).total_seconds()))
        created = await self.repo.create(
            player_id=state.player_id,
            scenario=state.scenario,
            restart_count=state.scenario_restart_count,
            elapsed_seconds=elapsed,
            nickname=cleaned,
        )
        logger.info(
            f"Hall of fame submission by {state.player_id} for {state.scenario}: "
            f"{format_elapsed(elapsed)} (created={created})"
        )
        return SubmissionResult(
            scenario=state.scenario,
            nickname=cleaned,
            elapsed_seconds=elapsed,
            created=created,
        )

    async def list_results(self, scenario: str) -> list[HallOfFameEntry]:
        """List a scenario's results, fastest first.

        Raises:
            QuestNotFoundError: If the scenario does not exist
        """
        self.engine.catalog.find_scenario(scenario)
        rows = await self.repo.list_for_scenario(scenario)
        return [HallOfFameEntry(nickname=row.nickname, elapsed_seconds=row.elapsed_seconds) for row in rows]
