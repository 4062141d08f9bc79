"""Hall of fame API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from questtrail.auth.dependencies import RequiredState
from questtrail.auth.rate_limit import hall_of_fame_submit_rate_limit
from questtrail.db.repositories.hall_of_fame import HallOfFameRepository
from questtrail.db.session import get_db_session
from questtrail.engine.service import ProgressionEngine, get_engine
from questtrail.errors import TechnicalError
from questtrail.hall_of_fame.service import HallOfFameEntry, HallOfFameService, format_elapsed

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/hall-of-fame", tags=["hall-of-fame"])


# Request/response models


class SubmitRequest(BaseModel):
    """Hall of fame submission."""

    nickname: str = Field(max_length=200)
    secret: str = Field(max_length=200)
    location: str = Field(max_length=200)


class ResultResponse(BaseModel):
    """One hall of fame row."""

    time: str
    nickname: str


class HallOfFameResponse(BaseModel):
    """Results of a scenario, fastest first."""

    view: str = "hallOfFame"
    scenario: str
    results: list[ResultResponse]


class SubmitResponse(HallOfFameResponse):
    """Submitted result and the updated hall of fame."""

    time: str
    nickname: str
    created: bool


# Helper functions


def get_hall_of_fame_service(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[ProgressionEngine, Depends(get_engine)],
) -> HallOfFameService:
    """Create a hall of fame service over the request's database session."""
    return HallOfFameService(HallOfFameRepository(session), engine)


Service = Annotated[HallOfFameService, Depends(get_hall_of_fame_service)]


def _rows(entries: list[HallOfFameEntry]) -> list[ResultResponse]:
    return [ResultResponse(time=entry.time, nickname=entry.nickname) for entry in entries]


# Endpoints


@router.get("/{scenario}", response_model=HallOfFameResponse)
async def list_results(scenario: str, service: Service) -> HallOfFameResponse:
    """List the results of a scenario."""
    entries = await service.list_results(scenario)
    return HallOfFameResponse(scenario=scenario, results=_rows(entries))


@router.post(
    "",
    response_model=SubmitResponse,
    dependencies=[Depends(hall_of_fame_submit_rate_limit)],
)
async def submit_result(
    payload: SubmitRequest,
    state: RequiredState,
    service: Service,
) -> SubmitResponse:
    """Record the caller's finished scenario under a nickname.

    Requires the state cookie of a player on the scenario's last quest, plus
    that quest's secret and a location segment read on site, as for completing it.
    """
    if state is None:
        raise TechnicalError("Hall of fame submission without state")

    result = await service.submit(state, payload.nickname, payload.secret, payload.location)
    entries = await service.list_results(result.scenario)
    return SubmitResponse(
        scenario=result.scenario,
        results=_rows(entries),
        time=format_elapsed(result.elapsed_seconds),
        nickname=result.nickname,
        created=result.created,
    )
