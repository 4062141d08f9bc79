"""Quest catalog.

Provides the scenario and quest definitions:
- Data models (scenarios, quests, coordinates)
- Loading the definitions once from JSON
- Lookups that hide whether a scenario, quest or secret was wrong
"""

from questtrail.quests.catalog import DEFAULT_SCENARIO_FILE, QuestCatalog, get_catalog, load_catalog
from questtrail.quests.models import Coordinates, Quest, Scenario, ScenarioTable

__all__ = [
    # Models
    "Coordinates",
    "Quest",
    "Scenario",
    "ScenarioTable",
    # Catalog
    "QuestCatalog",
    "DEFAULT_SCENARIO_FILE",
    "get_catalog",
    "load_catalog",
]
