"""
Filter and search logic for the visible marker set.

Everything here is a pure function of its arguments: the visible markers are
recomputed from the full marker list and the current facet state every time,
never patched in place.
"""
from typing import Dict, List, Optional

from .columns import unique_column_values
from .markers import Marker

FACET_VALUE_CEILING = 200


def active_filters(filters: Dict[str, str]) -> Dict[str, str]:
    return {column: value for column, value in filters.items() if value != ""}


def matches_filters(marker: Marker, filters: Dict[str, str]) -> bool:
    return all(marker.data.get(column) == value for column, value in active_filters(filters).items())


def matches_search(marker: Marker, search: str) -> bool:
    if not search.strip():
        return True
    needle = search.lower()
    return any(needle in str(value).lower() for value in marker.data.values())


def filter_markers(markers: List[Marker], filters: Dict[str, str], search: str = "") -> List[Marker]:
    """
    Markers that satisfy every equality filter and contain the search text.

    Args:
        markers: All derived markers
        filters: Column -> required value; "" leaves the column unconstrained
        search: Case-insensitive substring looked for in every field of the row

    Returns:
        The matching markers in their original order
    """
    return [m for m in markers if matches_filters(m, filters) and matches_search(m, search)]


def filters_active(filters: Dict[str, str], search: str) -> bool:
    return bool(active_filters(filters)) or search.strip() != ""


def filterable_columns(headers: List[str], lat_column: Optional[str], lng_column: Optional[str]) -> List[str]:
    """Headers other than the coordinate source columns."""
    return [h for h in headers if h != lat_column and h != lng_column]


def facet_options(
    rows: List[Dict[str, str]], columns: List[str], ceiling: int = FACET_VALUE_CEILING
) -> Dict[str, List[str]]:
    """
    Selectable values per column.

    Columns with no values, or with more distinct values than the ceiling,
    behave like identifiers and are left out.
    """
    options = {}
    for column in columns:
        values = unique_column_values(rows, column)
        if 0 < len(values) <= ceiling:
            options[column] = values
    return options
