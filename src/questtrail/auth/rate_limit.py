"""Rate limiting for secret-bearing endpoints.

Uses SlowAPI to slow down guessing of quest secrets through the engine
endpoints, and to keep hall of fame submissions from being spammed.
"""

from collections.abc import Callable

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.util import get_remote_address

from questtrail.settings import get_settings

# Create the limiter instance using IP address as the key
limiter = Limiter(key_func=get_remote_address)

# Rate limit strings for different endpoints
# Format: "requests/period" (e.g., "5/minute", "3/hour")
ENGINE_LIMIT = "30/minute"  # A team may share one phone and rescan often
HALL_OF_FAME_SUBMIT_LIMIT = "5/minute"
ADMIN_LIMIT = "10/minute"


def create_rate_limit_dependency(limit_string: str, name: str) -> Callable:
    """Create a rate limit dependency for use with FastAPI routers.

    The limited check is registered with the limiter once, under its own
    name, so that every limit keeps a separate per-IP counter.

    Args:
        limit_string: Rate limit in format "requests/period" (e.g., "5/minute")
        name: Unique name of the limit, used as the limiter scope

    Returns:
        An async dependency function that applies rate limiting
    """

    # limiter.limit only wraps functions, so check against a no-op one
    async def _check_limit(request: Request, response: Response) -> None:
        pass

    _check_limit.__name__ = f"{name}_limit"
    _check_limit.__qualname__ = f"{name}_limit"
    check_limit = limiter.limit(limit_string)(_check_limit)

    async def rate_limit_dependency(request: Request, response: Response) -> None:
        """Apply rate limiting to this request."""
        # Skip rate limiting if disabled (e.g., during tests)
        if not get_settings().rate_limiting_enabled:
            return

        await check_limit(request=request, response=response)

    return rate_limit_dependency


engine_rate_limit = create_rate_limit_dependency(ENGINE_LIMIT, "engine")
hall_of_fame_submit_rate_limit = create_rate_limit_dependency(
    HALL_OF_FAME_SUBMIT_LIMIT, "hall_of_fame_submit"
)
admin_rate_limit = create_rate_limit_dependency(ADMIN_LIMIT, "admin")
