"""Hall of fame repository for database operations."""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from questtrail.db.models import HallOfFameResult

logger = logging.getLogger(__name__)


class HallOfFameRepository:
    """Repository for storing and listing finished scenario runs."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: The database session to use
        """
        self.session = session

    def _insert(self):
        # ON CONFLICT is dialect specific: PostgreSQL in production, SQLite in tests
        if self.session.get_bind().dialect.name == "sqlite":
            return sqlite_insert(HallOfFameResult)
        return pg_insert(HallOfFameResult)

    async def create(
        self,
        player_id: uuid.UUID,
        scenario: str,
        restart_count: int,
        elapsed_seconds: int,
        nickname: str,
    ) -> bool:
        """Store a result unless the same run was already stored.

        Args:
            player_id: Player id from the state token
            scenario: Scenario name
            restart_count: Scenario restart count from the state token
            elapsed_seconds: Scenario completion time
            nickname: Display name

        Returns:
            True if a new row was inserted, False for a duplicate submission
        """
        stmt = (
            self._insert()
            .values(
                player_id=player_id,
                scenario=scenario,
                restart_count=restart_count,
                elapsed_seconds=elapsed_seconds,
                nickname=nickname,
            )
            .on_conflict_do_nothing(
                index_elements=["player_id", "scenario", "restart_count", "elapsed_seconds"]
            )
        )
        result = await self.session.execute(stmt)
        await self.session.flush()

        inserted = result.rowcount == 1
        if inserted:
            logger.info(f"Stored hall of fame result for player {player_id} in {scenario}")
        else:
            logger.info(f"Duplicate hall of fame submission for player {player_id} in {scenario}")
        return inserted

    async def list_for_scenario(self, scenario: str, limit: int = 100) -> list[HallOfFameResult]:
        """List results of a scenario, fastest first.

        Args:
            scenario: Scenario name
            limit: Maximum number of results

        Returns:
            Results ordered by elapsed time
        """
        result = await self.session.execute(
            select(HallOfFameResult)
            .where(HallOfFameResult.scenario == scenario)
            .order_by(HallOfFameResult.elapsed_seconds, HallOfFameResult.id)
            .limit(limit)
        )
        return list(result.scalars().all())
