"""Location transport encoding.

A location reading travels from the browser to the engine as a single URL
path segment. The reading is serialized as::

    lat;lon;epochMillis;check

where ``check`` is the CRC-32 of ``lat;lon;epochMillis`` modulo 10000 as
four digits. Each character is then substituted through a fixed table that
is rotated by the character's position, so the output only contains
letters and digits.

THIS IS OBFUSCATION, NOT SECURITY. Anyone who reads this module can forge a
reading. It only keeps casual players from editing coordinates in the URL:
reordering, truncating or editing the segment without the table breaks
either the substitution or the check digits and the reading is rejected.
"""

import zlib
from datetime import UTC, datetime, timedelta

from pydantic import ValidationError

from questtrail.engine.state import LocationReading
from questtrail.errors import DecodeError

PLAIN_ALPHABET = "0123456789.;-e+"
TRANSPORT_ALPHABET = "Kq3Xb8Lm1VzR5tH"

# Generous upper bound: two shortest-repr floats, a 13-14 digit timestamp and the check.
MAX_TRANSPORT_LENGTH = 96

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_ONE_MILLISECOND = timedelta(milliseconds=1)
_FIELD_SEPARATOR = ";"


def _checksum(payload: str) -> str:
    return f"{zlib.crc32(payload.encode('ascii')) % 10000:04d}"


def _scramble(plain: str) -> str:
    size = len(PLAIN_ALPHABET)
    return "".join(
        TRANSPORT_ALPHABET[(PLAIN_ALPHABET.index(char) + position) % size]
        for position, char in enumerate(plain)
    )


def _unscramble(transport: str) -> str:
    size = len(TRANSPORT_ALPHABET)
    plain = []
    for position, char in enumerate(transport):
        index = TRANSPORT_ALPHABET.find(char)
        if index < 0:
            raise DecodeError(f"Unexpected character {char!r} in location")
        plain.append(PLAIN_ALPHABET[(index - position) % size])
    return "".join(plain)


def encode_location(reading: LocationReading) -> str:
    """Encode a reading for use as a URL path segment.

    The capture time is carried with millisecond precision, so it must be a
    whole number of milliseconds.

    Raises:
        ValueError: If the capture time has sub-millisecond digits
    """
    if reading.captured_at.microsecond % 1000:
        raise ValueError(f"Capture time {reading.captured_at.isoformat()} is not in whole milliseconds")
    millis = (reading.captured_at - _EPOCH) // _ONE_MILLISECOND
    payload = _FIELD_SEPARATOR.join((repr(float(reading.lat)), repr(float(reading.lon)), str(millis)))
    return _scramble(payload + _FIELD_SEPARATOR + _checksum(payload))


def decode_location(transport: str) -> LocationReading:
    """Decode a path segment produced by :func:`encode_location`.

    Raises:
        DecodeError: If the segment is malformed, truncated, tampered with
            or holds out of range values
    """
    if not transport or len(transport) > MAX_TRANSPORT_LENGTH:
        raise DecodeError("Location has invalid length")

    fields = _unscramble(transport).split(_FIELD_SEPARATOR)
    if len(fields) != 4:
        raise DecodeError("Location has wrong number of fields")

    lat_str, lon_str, millis_str, check = fields
    if len(check) != 4 or not check.isdigit():
        raise DecodeError("Location check digits malformed")
    if _checksum(_FIELD_SEPARATOR.join(fields[:3])) != check:
        raise DecodeError("Location check digits do not match")

    try:
        captured_at = _EPOCH + int(millis_str) * _ONE_MILLISECOND
        return LocationReading(lat=float(lat_str), lon=float(lon_str), captured_at=captured_at)
    except (ValueError, OverflowError, ValidationError) as exc:
        raise DecodeError(f"Location fields invalid: {exc}") from exc
