"""Stateless progression engine.

Provides:
- Progression state and location reading models
- State token codec (encrypted cookie value)
- Location transport codec (URL path segment)
- The engine state machine and its outcomes
"""

from questtrail.engine.location_codec import decode_location, encode_location
from questtrail.engine.outcomes import (
    Countdown,
    EngineAction,
    LocationRequest,
    Outcome,
    QuestEnd,
    ScenarioEnd,
)
from questtrail.engine.service import (
    LOCATION_FRESHNESS_SECONDS,
    PROXIMITY_TOLERANCE_METERS,
    LocationVerification,
    ProgressionEngine,
    get_engine,
)
from questtrail.engine.state import LocationReading, ProgressionState
from questtrail.engine.token_codec import StateTokenCodec, get_token_codec

__all__ = [
    # Models
    "ProgressionState",
    "LocationReading",
    # Codecs
    "StateTokenCodec",
    "get_token_codec",
    "encode_location",
    "decode_location",
    # Engine
    "ProgressionEngine",
    "LocationVerification",
    "get_engine",
    "LOCATION_FRESHNESS_SECONDS",
    "PROXIMITY_TOLERANCE_METERS",
    # Outcomes
    "Outcome",
    "EngineAction",
    "LocationRequest",
    "Countdown",
    "QuestEnd",
    "ScenarioEnd",
]
