"""
Utility functions for working out what the columns of a table mean
"""
import re
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

# Names must start a word, so "Population" or "Colony" do not count
LAT_PATTERNS = [re.compile(r"(?<![a-z])lat", re.I), re.compile(r"latitude", re.I)]
LNG_PATTERNS = [re.compile(r"(?<![a-z])lon", re.I), re.compile(r"(?<![a-z])lng", re.I), re.compile(r"longitude", re.I)]


def _matches(header: str, patterns) -> bool:
    return any(pattern.search(header) for pattern in patterns)


def detect_lat_lng_columns(headers: Iterable[str]) -> Tuple[Optional[str], Optional[str]]:
    """
    Guess which headers hold latitude and longitude values.

    The first matching header wins for each role. A header picked as the
    latitude column is not considered for longitude.

    Returns:
        Tuple of (lat_header, lng_header); either is None when nothing matches
    """
    lat, lng = None, None
    for header in headers:
        if lat is None and _matches(header, LAT_PATTERNS):
            lat = header
            continue
        if lng is None and _matches(header, LNG_PATTERNS):
            lng = header
    return lat, lng


def unique_column_values(rows: List[Dict[str, str]], column: str) -> List[str]:
    """Sorted distinct non-empty values of one column."""
    values = pd.Series([row.get(column, "") for row in rows], dtype=object)
    values = values[values != ""]
    return sorted(values.unique().tolist())
