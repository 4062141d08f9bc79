"""Quest catalog: read-only lookups over the scenario definitions."""

import hmac
import logging
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType

from questtrail.errors import ConfigurationError, QuestNotFoundError
from questtrail.quests.models import Quest, Scenario, ScenarioTable
from questtrail.settings import get_settings

logger = logging.getLogger(__name__)

DEFAULT_SCENARIO_FILE = Path(__file__).resolve().parent / "data" / "scenarios.json"


class QuestCatalog:
    """Immutable index of scenarios and their quests.

    Loaded once before request traffic starts and never modified, so it is
    safe to share between concurrent requests without locking.
    """

    def __init__(self, table: ScenarioTable) -> None:
        self._scenarios: Mapping[str, Scenario] = MappingProxyType(
            {scenario.name: scenario for scenario in table.scenarios}
        )

    @property
    def scenarios(self) -> Mapping[str, Scenario]:
        """Read-only view of scenarios by name."""
        return self._scenarios

    def find_scenario(self, scenario: str) -> Scenario:
        """Get a scenario by name.

        Raises:
            QuestNotFoundError: If there is no such scenario
        """
        found = self._scenarios.get(scenario)
        if found is None:
            logger.info(f"Lookup of unknown scenario {scenario!r}")
            raise QuestNotFoundError()
        return found

    def find_quest(self, scenario: str, order: int, secret: str | None = None) -> Quest:
        """Get a quest, optionally requiring its secret.

        Unknown scenario, unknown order and secret mismatch all raise the
        same error so that the response cannot be used to guess secrets.

        Args:
            scenario: Scenario name
            order: Quest order within the scenario
            secret: When given, must equal the quest's secret exactly

        Returns:
            The quest

        Raises:
            QuestNotFoundError: If the quest does not exist or the secret is wrong
        """
        quests = self.find_scenario(scenario).quests
        if not 0 <= order < len(quests):
            logger.info(f"Lookup of unknown quest {order} in scenario {scenario!r}")
            raise QuestNotFoundError()

        quest = quests[order]
        if secret is not None and not hmac.compare_digest(
            quest.secret.encode("utf-8"), secret.encode("utf-8")
        ):
            logger.info(f"Secret mismatch for quest {order} in scenario {scenario!r}")
            raise QuestNotFoundError()
        return quest

    def first_quest(self, scenario: str) -> Quest:
        return self.find_quest(scenario, 0)

    def is_last_quest(self, scenario: str, order: int) -> bool:
        """Check if the quest is the last one of its scenario."""
        return order + 1 >= len(self.find_scenario(scenario).quests)


def load_catalog(path: Path) -> QuestCatalog:
    """Load and validate the scenario definition file.

    Raises:
        ConfigurationError: If the file is missing or invalid
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read scenario file {path}: {exc}") from exc

    try:
        table = ScenarioTable.model_validate_json(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid scenario file {path}: {exc}") from exc

    logger.info(
        f"Loaded {len(table.scenarios)} scenarios from {path}: "
        + ", ".join(f"{s.name} ({len(s.quests)} quests)" for s in table.scenarios)
    )
    return QuestCatalog(table)


@lru_cache
def get_catalog() -> QuestCatalog:
    """Get the process-wide catalog, loading it on first use."""
    path = get_settings().scenario_file or DEFAULT_SCENARIO_FILE
    return load_catalog(path)
