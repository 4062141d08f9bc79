"""State cookie and operator token dependencies.

The encrypted state cookie is the only per-player record, so reading it
is this service's notion of authentication. Engine endpoints read it
either strictly (a bad or missing token fails the request) or leniently
(a bad token is treated as no token).
"""

import hmac
import logging
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, Response, status

from questtrail.engine.state import ProgressionState
from questtrail.engine.token_codec import StateTokenCodec, get_token_codec
from questtrail.logging_context import bind_player
from questtrail.settings import get_settings

logger = logging.getLogger(__name__)

TokenCodec = Annotated[StateTokenCodec, Depends(get_token_codec)]


def read_state_cookie(request: Request) -> str | None:
    """Get the raw state token from the request cookies."""
    return request.cookies.get(get_settings().cookie_name)


async def get_optional_state(
    request: Request,
    codec: TokenCodec,
) -> ProgressionState | None:
    """Decode the state cookie leniently.

    Returns:
        The decoded state, or None when the cookie is missing or undecodable
    """
    state = codec.decode_lenient(read_state_cookie(request))
    if state is not None:
        bind_player(state.player_id)
    return state


async def get_required_state(
    request: Request,
    codec: TokenCodec,
) -> ProgressionState | None:
    """Decode the state cookie strictly.

    A missing cookie yields None so the engine can explain how to start the
    scenario; a cookie that is present but cannot be decoded fails the
    request.

    Raises:
        DecodeError: If the cookie is present but invalid
    """
    token = read_state_cookie(request)
    if token is None:
        return None
    state = codec.decode(token)
    bind_player(state.player_id)
    return state


def write_state_cookie(response: Response, codec: StateTokenCodec, state: ProgressionState) -> None:
    """Attach the encoded state as the cookie of the response."""
    settings = get_settings()
    response.set_cookie(
        key=settings.cookie_name,
        value=codec.encode(state),
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
    )


async def require_admin(
    x_admin_token: Annotated[str | None, Header()] = None,
) -> None:
    """Check the operator token of admin endpoints.

    In dev mode without a configured token the endpoints are open.

    Raises:
        HTTPException: 403 if the token is missing or wrong
    """
    settings = get_settings()
    if settings.admin_open:
        return
    if not settings.admin_token or x_admin_token is None or not hmac.compare_digest(
        x_admin_token.encode("utf-8"), settings.admin_token.encode("utf-8")
    ):
        logger.warning("Rejected admin request with missing or wrong token")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


OptionalState = Annotated[ProgressionState | None, Depends(get_optional_state)]
RequiredState = Annotated[ProgressionState | None, Depends(get_required_state)]
