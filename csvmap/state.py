"""
Per-session application state

AppState holds everything one browser session has done so far: the uploaded
table, the markers derived from it, the facet selections and the display
toggles. Views that depend on it (visible markers, facet options, marker
style) are computed on demand.
"""
import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .csv_parsing import Table
from .filtering import (
    FACET_VALUE_CEILING,
    facet_options,
    filter_markers,
    filterable_columns,
    filters_active,
)
from .geocoding import GeocodedLocation
from .map_generation import MarkerStyle, style_for_category
from .markers import Marker, markers_from_columns, markers_from_geocoding

STATUS_EMPTY = "empty"
STATUS_NEEDS_GEOCODING = "needs_geocoding"
STATUS_NO_LOCATIONS = "no_locations"
STATUS_READY = "ready"

DEFAULT_MAX_SESSIONS = 100


@dataclass
class AppState:
    table: Optional[Table] = None
    filename: Optional[str] = None
    lat_column: Optional[str] = None
    lng_column: Optional[str] = None
    geocode_column: Optional[str] = None
    markers: List[Marker] = field(default_factory=list)
    filters: Dict[str, str] = field(default_factory=dict)
    search: str = ""
    category: str = ""
    theme: str = "light"
    sidebar_open: bool = True
    cluster: bool = False
    error: Optional[str] = None
    _geocode_token: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def reset(self):
        """Back to "no file loaded". Display toggles survive."""
        with self._lock:
            # responses to requests issued for the old table must not land on the new one
            self._geocode_token += 1
        self.table = None
        self.filename = None
        self.lat_column = None
        self.lng_column = None
        self.geocode_column = None
        self.markers = []
        self.filters = {}
        self.search = ""
        self.category = ""
        self.error = None

    def load_table(self, table: Table, lat_column: Optional[str], lng_column: Optional[str],
                   filename: Optional[str] = None):
        """
        Replace the current table. Markers are derived right away when both
        coordinate columns are known, otherwise the table waits for geocoding.
        """
        self.reset()
        self.table = table
        self.filename = filename
        self.lat_column = lat_column
        self.lng_column = lng_column
        if lat_column and lng_column:
            self.markers = markers_from_columns(table.rows, lat_column, lng_column)

    def reset_filters(self):
        self.filters = {}
        self.search = ""

    def set_filter(self, column: str, value: str):
        self.filters[column] = value

    def begin_geocode(self) -> int:
        """Issue a token for a new geocode request; older tokens go stale."""
        with self._lock:
            self._geocode_token += 1
            return self._geocode_token

    def is_current(self, token: int) -> bool:
        return token == self._geocode_token

    def apply_geocode(self, token: int, column: str, locations: List[GeocodedLocation]) -> bool:
        """
        Derive markers from geocoding results, unless a newer request was
        issued after this one. Returns False for a stale response.
        """
        with self._lock:
            if not self.is_current(token) or self.table is None:
                return False
            self.geocode_column = column
            self.markers = markers_from_geocoding(self.table.rows, column, locations)
            self.error = None
            return True

    def fail_geocode(self, token: int, message: str) -> bool:
        with self._lock:
            if not self.is_current(token):
                return False
            self.error = message
            return True

    def toggle_theme(self):
        self.theme = "dark" if self.theme == "light" else "light"

    def toggle_sidebar(self):
        self.sidebar_open = not self.sidebar_open

    @property
    def status(self) -> str:
        if self.table is None:
            return STATUS_EMPTY
        if not self.markers:
            if not (self.lat_column and self.lng_column) and self.geocode_column is None:
                return STATUS_NEEDS_GEOCODING
            return STATUS_NO_LOCATIONS
        return STATUS_READY

    @property
    def needs_geocoding(self) -> bool:
        return self.table is not None and not (self.lat_column and self.lng_column)

    def visible_markers(self) -> List[Marker]:
        return filter_markers(self.markers, self.filters, self.search)

    def filterable_columns(self) -> List[str]:
        if self.table is None:
            return []
        return filterable_columns(self.table.headers, self.lat_column, self.lng_column)

    def facet_options(self, ceiling: int = FACET_VALUE_CEILING) -> Dict[str, List[str]]:
        if self.table is None:
            return {}
        return facet_options(self.table.rows, self.filterable_columns(), ceiling)

    def filters_active(self) -> bool:
        return filters_active(self.filters, self.search)

    def style(self) -> MarkerStyle:
        return style_for_category(self.category)


class SessionStore:
    """
    Thread-safe map of session id -> AppState.

    Holds at most ``max_sessions`` states; the least recently used one is
    dropped when a new session would exceed the cap.
    """

    def __init__(self, max_sessions: int = DEFAULT_MAX_SESSIONS):
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self.max_sessions = max_sessions
        self._states: "OrderedDict[str, AppState]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, session_id: str) -> AppState:
        """Return the state for a session, creating it if needed."""
        with self._lock:
            state = self._states.get(session_id)
            if state is None:
                state = self._states[session_id] = AppState()
                while len(self._states) > self.max_sessions:
                    self._states.popitem(last=False)
            else:
                self._states.move_to_end(session_id)
            return state

    def find(self, session_id: str) -> Optional[AppState]:
        """Return the state for a session, or None if it has none."""
        with self._lock:
            state = self._states.get(session_id)
            if state is not None:
                self._states.move_to_end(session_id)
            return state

    def discard(self, session_id: str):
        with self._lock:
            self._states.pop(session_id, None)

    def __contains__(self, session_id):
        return session_id in self._states

    def __len__(self):
        return len(self._states)
