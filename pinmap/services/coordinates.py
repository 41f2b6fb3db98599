"""Parsing and formatting of pin coordinates.

Coordinates are stored as ``"<lng>, <lat>"`` strings. Longitude comes first
everywhere: in the database, in the API, and in the seed data.
"""
import math
from typing import Optional, Sequence, Tuple, Union

MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0
MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0

LngLat = Tuple[float, float]
RawCoordinates = Union[str, Sequence[float], None]


def is_valid_lng_lat(lng: float, lat: float) -> bool:
    if not (math.isfinite(lng) and math.isfinite(lat)):
        return False
    return MIN_LONGITUDE <= lng <= MAX_LONGITUDE and MIN_LATITUDE <= lat <= MAX_LATITUDE


def parse_coordinates(raw: RawCoordinates) -> Optional[LngLat]:
    """Return ``(lng, lat)`` for a valid string or pair, otherwise ``None``."""
    if raw is None:
        return None

    if isinstance(raw, str):
        trimmed = raw.strip()
        if not trimmed:
            return None
        parts = [part.strip() for part in trimmed.split(",")]
        if len(parts) != 2:
            return None
        try:
            lng, lat = float(parts[0]), float(parts[1])
        except ValueError:
            return None
    else:
        try:
            values = list(raw)
        except TypeError:
            return None
        if len(values) != 2 or any(isinstance(value, bool) for value in values):
            return None
        try:
            lng, lat = float(values[0]), float(values[1])
        except (TypeError, ValueError):
            return None

    if not is_valid_lng_lat(lng, lat):
        return None
    return lng, lat


def format_coordinates(lng_lat: Sequence[float]) -> str:
    lng, lat = lng_lat
    return f"{float(lng)}, {float(lat)}"


def normalize_coordinates(raw: RawCoordinates) -> Optional[str]:
    """Canonical string for ``raw``; ``None`` when it does not parse."""
    parsed = parse_coordinates(raw)
    if parsed is None:
        return None
    return format_coordinates(parsed)


def is_blank(raw: RawCoordinates) -> bool:
    if raw is None:
        return True
    if isinstance(raw, str):
        return not raw.strip()
    try:
        return len(raw) == 0
    except TypeError:
        return False
