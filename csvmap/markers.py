"""
Utility functions for turning table rows into map markers
"""
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .geocoding import GeocodedLocation


@dataclass(frozen=True)
class Marker:
    id: str
    lat: float
    lng: float
    data: Dict[str, str]


def parse_coordinate(value, limit: float) -> Optional[float]:
    """
    Convert a cell value to a coordinate in [-limit, limit].

    Returns None for empty, non-numeric, non-finite or out of range values.
    """
    if value is None:
        return None
    try:
        number = float(str(value).strip())
    except (ValueError, TypeError):
        return None
    if not math.isfinite(number) or not -limit <= number <= limit:
        return None
    return number


def _make_marker(index: int, lat, lng, row) -> Optional[Marker]:
    lat = parse_coordinate(lat, 90)
    lng = parse_coordinate(lng, 180)
    if lat is None or lng is None:
        return None
    return Marker(id=f"marker-{index}", lat=lat, lng=lng, data=row)


def markers_from_columns(rows: List[Dict[str, str]], lat_column: str, lng_column: str) -> List[Marker]:
    """Build markers from two coordinate columns. Ids follow the row index."""
    markers = []
    for index, row in enumerate(rows):
        marker = _make_marker(index, row.get(lat_column), row.get(lng_column), row)
        if marker:
            markers.append(marker)
    return markers


def markers_from_geocoding(
    rows: List[Dict[str, str]], column: str, locations: Iterable[GeocodedLocation]
) -> List[Marker]:
    """
    Build markers by looking each row's place string up in geocoding results.

    The lookup uses the exact string; when the results repeat a location the
    last entry wins.
    """
    lookup = {loc.location: loc for loc in locations}
    markers = []
    for index, row in enumerate(rows):
        loc = lookup.get(row.get(column, ""))
        if loc is None:
            continue
        marker = _make_marker(index, loc.lat, loc.lng, row)
        if marker:
            markers.append(marker)
    return markers
