"""Database repositories."""

from questtrail.db.repositories.hall_of_fame import HallOfFameRepository

__all__ = [
    "HallOfFameRepository",
]
