"""Hall of fame: finished scenario runs, fastest first."""

from questtrail.hall_of_fame.service import (
    HallOfFameEntry,
    HallOfFameService,
    SubmissionResult,
    format_elapsed,
)

__all__ = [
    "HallOfFameEntry",
    "HallOfFameService",
    "SubmissionResult",
    "format_elapsed",
]
