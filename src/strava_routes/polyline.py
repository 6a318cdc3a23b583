"""Decoder for Google's encoded polyline format.

Each point is stored as a latitude delta followed by a longitude delta.
A delta is zigzag-encoded and split into 5-bit groups, least significant
group first; every group is offset by 63 so it lands in the printable
range ``?``..``~``, and all groups except the last carry the 0x20
continuation bit.
"""

from typing import NamedTuple

from .errors import MalformedPathError

DEFAULT_PRECISION = 5

_CHAR_OFFSET = 63
_CONTINUATION_BIT = 0x20
_VALUE_MASK = 0x1F
_MAX_GROUP = 0x3F


class Coordinate(NamedTuple):
    """A point in decimal degrees."""

    latitude: float
    longitude: float


def _read_varint(encoded: str, index: int) -> tuple[int, int]:
    """Read one variable-length chunk starting at ``index``.

    Returns:
        Tuple of (unsigned value, index of the next unread character)

    Raises:
        MalformedPathError: On a character outside the encoding alphabet or
            when the string ends while the continuation bit is still set
    """
    result = 0
    shift = 0
    while True:
        if index >= len(encoded):
            raise MalformedPathError("Truncated polyline chunk", index)
        group = ord(encoded[index]) - _CHAR_OFFSET
        if group < 0 or group > _MAX_GROUP:
            raise MalformedPathError(f"Invalid polyline character {encoded[index]!r}", index)
        index += 1
        result |= (group & _VALUE_MASK) << shift
        shift += 5
        if not group & _CONTINUATION_BIT:
            return result, index


def _zigzag_decode(value: int) -> int:
    """Undo zigzag encoding: the low bit carries the sign."""
    if value & 1:
        return ~(value >> 1)
    return value >> 1


def decode_polyline(encoded: str, precision: int = DEFAULT_PRECISION) -> list[Coordinate]:
    """Decode an encoded polyline into an ordered list of coordinates.

    Args:
        encoded: Encoded polyline string (e.g. an activity's ``summary_polyline``)
        precision: Number of decimal places the coordinates were encoded with

    Returns:
        One Coordinate per (latitude, longitude) pair, in path order

    Raises:
        MalformedPathError: If the string is truncated, contains invalid
            characters, or ends after a latitude without its longitude
    """
    factor = 10**precision
    coordinates: list[Coordinate] = []
    lat = 0
    lng = 0
    index = 0

    while index < len(encoded):
        lat_chunk, index = _read_varint(encoded, index)
        if index >= len(encoded):
            raise MalformedPathError("Polyline ends after a latitude without longitude", index)
        lng_chunk, index = _read_varint(encoded, index)

        lat += _zigzag_decode(lat_chunk)
        lng += _zigzag_decode(lng_chunk)
        coordinates.append(Coordinate(lat / factor, lng / factor))

    return coordinates
