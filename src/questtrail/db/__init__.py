"""Database layer."""

from questtrail.db.models import Base, HallOfFameResult
from questtrail.db.repositories import HallOfFameRepository
from questtrail.db.session import async_session_factory, get_db_session

__all__ = [
    "Base",
    "HallOfFameResult",
    "HallOfFameRepository",
    "async_session_factory",
    "get_db_session",
]
