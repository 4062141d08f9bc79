"""Player state cookie, operator token and rate limiting.

Provides:
- Strict and lenient state cookie dependencies
- Cookie writing with the configured attributes
- Operator token check for admin endpoints
- SlowAPI rate limits
"""

from questtrail.auth.dependencies import (
    OptionalState,
    RequiredState,
    TokenCodec,
    get_optional_state,
    get_required_state,
    read_state_cookie,
    require_admin,
    write_state_cookie,
)
from questtrail.auth.rate_limit import (
    admin_rate_limit,
    engine_rate_limit,
    hall_of_fame_submit_rate_limit,
    limiter,
)

__all__ = [
    # Dependencies
    "OptionalState",
    "RequiredState",
    "TokenCodec",
    "get_optional_state",
    "get_required_state",
    "read_state_cookie",
    "require_admin",
    "write_state_cookie",
    # Rate limiting
    "limiter",
    "engine_rate_limit",
    "hall_of_fame_submit_rate_limit",
    "admin_rate_limit",
]
