"""Database models for QuestTrail."""

import uuid
from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Index, Integer, String, UniqueConstraint, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# BIGINT primary keys only autoincrement on SQLite when declared as INTEGER.
BigIntegerPK = BigInteger().with_variant(Integer(), "sqlite")

NICKNAME_MAX_LENGTH = 50


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class HallOfFameResult(Base):
    """A finished scenario run.

    The unique key covers everything that identifies one run, so submitting
    the same result twice stores it once.

    Attributes:
        id: Unique identifier
        player_id: Player id from the state token
        scenario: Scenario name
        restart_count: Scenario restart count from the state token
        elapsed_seconds: Time from scenario start to submission
        nickname: Name shown in the hall of fame
        created_at: When the result was stored
    """

    __tablename__ = "hall_of_fame_results"

    id: Mapped[int] = mapped_column(BigIntegerPK, primary_key=True, autoincrement=True)
    player_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    scenario: Mapped[str] = mapped_column(String(100), nullable=False)
    restart_count: Mapped[int] = mapped_column(Integer, nullable=False)
    elapsed_seconds: Mapped[int] = mapped_column(Integer, nullable=False)
    nickname: Mapped[str] = mapped_column(String(NICKNAME_MAX_LENGTH), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "player_id",
            "scenario",
            "restart_count",
            "elapsed_seconds",
            name="uq_hall_of_fame_results_run",
        ),
        Index("ix_hall_of_fame_results_scenario_elapsed", "scenario", "elapsed_seconds"),
    )
