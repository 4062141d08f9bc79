"""Operator endpoints.

All endpoints require the ``X-Admin-Token`` header, except in dev mode when
no admin token is configured.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from questtrail.auth.dependencies import TokenCodec, read_state_cookie, require_admin
from questtrail.engine.outcomes import complete_path, init_path
from questtrail.engine.service import ProgressionEngine, get_engine
from questtrail.engine.state import ProgressionState
from questtrail.quests.catalog import QuestCatalog, get_catalog

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


class LocationVerificationResponse(BaseModel):
    """Current value of the proximity check switch."""

    enabled: bool


class StateResponse(BaseModel):
    """Decoded state cookie of the calling browser."""

    state: ProgressionState | None


class QRLink(BaseModel):
    """Path to encode in the QR code of one quest."""

    order: int
    name: str
    path: str


class ScenarioQRLinks(BaseModel):
    """QR code paths of one scenario."""

    scenario: str
    links: list[QRLink]


class QRLinksResponse(BaseModel):
    """QR code paths of all scenarios."""

    scenarios: list[ScenarioQRLinks]


@router.get("/location-verification", response_model=LocationVerificationResponse)
async def get_location_verification(
    engine: Annotated[ProgressionEngine, Depends(get_engine)],
) -> LocationVerificationResponse:
    """Check whether proximity checks are enabled."""
    return LocationVerificationResponse(enabled=engine.location_verification_enabled)


@router.post("/location-verification/toggle", response_model=LocationVerificationResponse)
async def toggle_location_verification(
    engine: Annotated[ProgressionEngine, Depends(get_engine)],
) -> LocationVerificationResponse:
    """Flip proximity checks for every player of this process."""
    return LocationVerificationResponse(enabled=engine.toggle_location_verification())


@router.get("/state", response_model=StateResponse)
async def expose_state(request: Request, codec: TokenCodec) -> StateResponse:
    """Decode the caller's state cookie, for debugging a player's device."""
    return StateResponse(state=codec.decode_lenient(read_state_cookie(request)))


@router.get("/qr-links", response_model=QRLinksResponse)
async def qr_links(
    catalog: Annotated[QuestCatalog, Depends(get_catalog)],
) -> QRLinksResponse:
    """List the paths to print as QR codes.

    Quest 0 gets the scenario init path; every other quest gets the path
    of its completion endpoint.
    """
    scenarios = []
    for scenario in catalog.scenarios.values():
        links = [
            QRLink(
                order=quest.order,
                name=quest.name,
                path=init_path(scenario.name, quest) if quest.order == 0 else complete_path(scenario.name, quest),
            )
            for quest in scenario.quests
        ]
        scenarios.append(ScenarioQRLinks(scenario=scenario.name, links=links))
    return QRLinksResponse(scenarios=scenarios)
