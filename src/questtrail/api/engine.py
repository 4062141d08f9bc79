"""Engine API endpoints.

Every endpoint maps onto one progression engine operation. Outcomes are
rendered as JSON objects with a ``view`` field naming the page the client
should show. Only init and start write the state cookie.
"""

import dataclasses
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Response

from questtrail.auth.dependencies import OptionalState, RequiredState, TokenCodec, write_state_cookie
from questtrail.engine.outcomes import EngineAction, Outcome
from questtrail.engine.service import ProgressionEngine, get_engine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/engine", tags=["engine"])

Engine = Annotated[ProgressionEngine, Depends(get_engine)]


def render_outcome(outcome: Outcome) -> dict[str, Any]:
    """Render an outcome as a JSON-ready dict."""
    return dataclasses.asdict(outcome)


def _respond(action: EngineAction, response: Response, codec: TokenCodec) -> dict[str, Any]:
    if action.state_changed:
        write_state_cookie(response, codec, action.state)
    return render_outcome(action.outcome)


@router.get("/init/{scenario}/{secret}")
async def init_scenario(
    scenario: str,
    secret: str,
    state: OptionalState,
    engine: Engine,
    codec: TokenCodec,
    response: Response,
) -> dict[str, Any]:
    """Start or restart a scenario from its initiating QR code.

    An undecodable cookie is treated as a new player.
    """
    action = engine.init_scenario(state, scenario, secret)
    return _respond(action, response, codec)


@router.get("/start/{scenario}/{quest}/{secret}/{location}")
async def start_quest(
    scenario: str,
    quest: int,
    secret: str,
    location: str,
    state: RequiredState,
    engine: Engine,
    codec: TokenCodec,
    response: Response,
) -> dict[str, Any]:
    """Start the next quest, with the location read where the previous one ended."""
    action = engine.start_quest(state, scenario, quest, secret, location)
    return _respond(action, response, codec)


@router.get("/complete/{scenario}/{quest}/{secret}")
async def init_complete(
    scenario: str,
    quest: int,
    secret: str,
    engine: Engine,
) -> dict[str, Any]:
    """Ask the client for a location before completing a quest."""
    return render_outcome(engine.init_complete(scenario, quest, secret))


@router.get("/complete/{scenario}/{quest}/{secret}/{location}")
async def complete(
    scenario: str,
    quest: int,
    secret: str,
    location: str,
    state: OptionalState,
    engine: Engine,
) -> dict[str, Any]:
    """Complete the running quest; the cookie is left untouched."""
    action = engine.complete(state, scenario, quest, secret, location)
    return render_outcome(action.outcome)
