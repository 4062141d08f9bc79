"""Per-request logging context.

A middleware records the request path, and the state cookie dependencies
record the player id once the cookie has been decoded. A logging filter
copies both onto every record so the formatter can print them.
"""

import logging
import uuid
from contextvars import ContextVar

_request_path: ContextVar[str] = ContextVar("request_path", default="-")
_player_id: ContextVar[str] = ContextVar("player_id", default="-")


def bind_request(path: str) -> None:
    """Set the path of the request being handled."""
    _request_path.set(path)
    _player_id.set("-")


def bind_player(player_id: uuid.UUID) -> None:
    """Set the player of the request being handled."""
    _player_id.set(str(player_id))


class RequestContextFilter(logging.Filter):
    """Adds ``path`` and ``player`` attributes to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.path = _request_path.get()
        record.player = _player_id.get()
        return True
