"""Encoded polyline codec (Google polyline algorithm, 1e5 precision).

Each coordinate is stored as the signed delta from the previous point,
zig-zag shifted, split into 5-bit chunks (low bits first) with 0x20 as the
continuation flag, and offset by 63 into printable ASCII.
"""

from collections.abc import Iterable, Sequence

from mapmyway.models import Coordinate, MalformedPolylineError

PRECISION = 1e5

_MIN_CHAR = 63
_MAX_CHAR = 126
# 7 chunks cover a 32-bit value; anything longer is corrupt.
_MAX_CHUNKS = 7


def _decode_value(encoded: str, index: int) -> tuple[int, int]:
    """Decode one signed value starting at ``index``.

    Returns the value and the index just past it.
    """
    start = index
    shift = 0
    result = 0
    chunks = 0
    while True:
        if index >= len(encoded):
            raise MalformedPolylineError("Polyline ends in the middle of a value", start)
        code = ord(encoded[index])
        if code < _MIN_CHAR or code > _MAX_CHAR:
            raise MalformedPolylineError(f"Invalid polyline character {encoded[index]!r}", index)
        b = code - _MIN_CHAR
        index += 1
        chunks += 1
        if chunks > _MAX_CHUNKS:
            raise MalformedPolylineError("Polyline value overflows 32 bits", start)
        result |= (b & 0x1F) << shift
        shift += 5
        if b < 0x20:
            if b == 0 and chunks > 1:
                raise MalformedPolylineError("Non-canonical value encoding", start)
            break
    value = ~(result >> 1) if result & 1 else result >> 1
    return value, index


def decode_polyline(encoded: str) -> list[Coordinate]:
    """Decode a polyline string into coordinates in route order.

    Raises:
        MalformedPolylineError: if the string is truncated, contains
            characters outside the polyline alphabet, pads a value with
            empty high chunks, or decodes to a coordinate outside the
            valid latitude/longitude range.
    """
    if not encoded:
        return []

    points: list[Coordinate] = []
    index = 0
    lat = 0
    lng = 0

    while index < len(encoded):
        point_start = index
        d_lat, index = _decode_value(encoded, index)
        if index >= len(encoded):
            raise MalformedPolylineError("Latitude without a longitude", point_start)
        d_lng, index = _decode_value(encoded, index)
        lat += d_lat
        lng += d_lng

        if not (-90 * PRECISION <= lat <= 90 * PRECISION):
            raise MalformedPolylineError(f"Latitude {lat / PRECISION} out of range", point_start)
        if not (-180 * PRECISION <= lng <= 180 * PRECISION):
            raise MalformedPolylineError(f"Longitude {lng / PRECISION} out of range", point_start)

        points.append(Coordinate(latitude=lat / PRECISION, longitude=lng / PRECISION))

    return points


def _encode_value(value: int, out: list[str]) -> None:
    value = ~(value << 1) if value < 0 else value << 1
    while value >= 0x20:
        out.append(chr((0x20 | (value & 0x1F)) + _MIN_CHAR))
        value >>= 5
    out.append(chr(value + _MIN_CHAR))


def _as_pair(point: Coordinate | Sequence[float]) -> tuple[float, float]:
    if isinstance(point, Coordinate):
        return point.latitude, point.longitude
    lat, lng = point
    if not (-90 <= lat <= 90) or not (-180 <= lng <= 180):
        raise ValueError(f"Coordinate out of range: ({lat}, {lng})")
    return lat, lng


def encode_polyline(points: Iterable[Coordinate | Sequence[float]]) -> str:
    """Encode coordinates (or ``(lat, lng)`` pairs) into a polyline string."""
    result: list[str] = []
    prev_lat = 0
    prev_lng = 0

    for point in points:
        lat, lng = _as_pair(point)
        lat_int = int(round(lat * PRECISION))
        lng_int = int(round(lng * PRECISION))

        _encode_value(lat_int - prev_lat, result)
        _encode_value(lng_int - prev_lng, result)

        prev_lat = lat_int
        prev_lng = lng_int

    return "".join(result)
