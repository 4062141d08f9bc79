"""State token codec.

The player's whole progression state travels in one cookie. The state is
serialized to compact JSON, encrypted with AES-256-GCM under the server key
and a fresh random nonce, and the ``nonce || ciphertext`` bytes are encoded
as unpadded URL-safe base64. GCM authenticates the ciphertext, so a token
that was edited, truncated or produced under another key fails to decode.
"""

import base64
import binascii
import logging
import os
from functools import lru_cache

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from pydantic import ValidationError

from questtrail.engine.state import ProgressionState
from questtrail.errors import ConfigurationError, DecodeError
from questtrail.settings import SECRET_KEY_LENGTH, get_settings

logger = logging.getLogger(__name__)

NONCE_LENGTH = 12
TAG_LENGTH = 16
# Binds ciphertexts to this purpose and format version.
ASSOCIATED_DATA = b"questtrail-state:v1"


def _b64encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64decode(value: str) -> bytes:
    padded = value + "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii"))


class StateTokenCodec:
    """Encrypts progression state into an opaque cookie value and back."""

    def __init__(self, secret_key: str) -> None:
        """Initialize the codec.

        Args:
            secret_key: Server key, exactly 32 characters (32 UTF-8 bytes)

        Raises:
            ConfigurationError: If the key has the wrong length
        """
        key = secret_key.encode("utf-8")
        if len(key) != SECRET_KEY_LENGTH:
            raise ConfigurationError(
                f"Secret key must be {SECRET_KEY_LENGTH} bytes, got {len(key)}"
            )
        self._aead = AESGCM(key)

    def encode(self, state: ProgressionState) -> str:
        """Serialize and encrypt a state into a token."""
        payload = state.model_dump_json().encode("utf-8")
        nonce = os.urandom(NONCE_LENGTH)
        return _b64encode(nonce + self._aead.encrypt(nonce, payload, ASSOCIATED_DATA))

    def decode(self, token: str) -> ProgressionState:
        """Decrypt and validate a token.

        Raises:
            DecodeError: If the token cannot be decrypted or is not a valid state
        """
        try:
            raw = _b64decode(token)
        except (binascii.Error, ValueError) as exc:
            raise DecodeError("State token is not valid base64") from exc

        if len(raw) < NONCE_LENGTH + TAG_LENGTH:
            raise DecodeError("State token is too short")

        nonce, ciphertext = raw[:NONCE_LENGTH], raw[NONCE_LENGTH:]
        try:
            payload = self._aead.decrypt(nonce, ciphertext, ASSOCIATED_DATA)
        except InvalidTag as exc:
            raise DecodeError("State token failed authentication") from exc

        try:
            return ProgressionState.model_validate_json(payload)
        except ValidationError as exc:
            raise DecodeError(f"State token payload is not a valid state: {exc}") from exc

    def decode_lenient(self, token: str | None) -> ProgressionState | None:
        """Decode a token, treating a missing or broken token as no state.

        Only for entry points where an unknown player is legitimate.
        """
        if not token:
            return None
        try:
            return self.decode(token)
        except DecodeError as exc:
            logger.info(f"Ignoring undecodable state token: {exc}")
            return None


@lru_cache
def get_token_codec() -> StateTokenCodec:
    """Get the process-wide codec built from settings."""
    return StateTokenCodec(get_settings().secret_key)
