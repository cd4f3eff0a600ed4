"""
Utility functions for map creation and HTML generation
"""
import html
from dataclasses import dataclass
from typing import List, Optional, Union

import folium
from folium.plugins import MarkerCluster

from .colors import color_from_string
from .exceptions import MapGenerationError
from .markers import Marker

DEFAULT_CENTER = [20, 0]
DEFAULT_ZOOM = 2

OSM_ATTRIBUTION = '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> contributors'
TILE_THEMES = {
    "light": {
        "tiles": "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png",
        "attr": OSM_ATTRIBUTION,
    },
    "dark": {
        "tiles": "https://{s}.basemaps.cartocdn.com/dark_all/{z}/{x}/{y}{r}.png",
        "attr": OSM_ATTRIBUTION + ' &copy; <a href="https://carto.com/attributions">CARTO</a>',
    },
}

DOT_HTML = (
    '<div style="background-color:{color};width:20px;height:20px;border-radius:50%;'
    'border:2px solid #ffffff;box-shadow:0 1px 3px rgba(0,0,0,0.4);box-sizing:border-box;"></div>'
)


@dataclass(frozen=True)
class DefaultStyle:
    """Standard Leaflet pin for every marker."""

    def icon_for(self, marker: Marker):
        return None


@dataclass(frozen=True)
class CategoryStyle:
    """Coloured dot per distinct value of one column."""
    field: str

    def color_for(self, marker: Marker) -> Optional[str]:
        value = marker.data.get(self.field)
        return color_from_string(value) if value else None

    def icon_for(self, marker: Marker):
        color = self.color_for(marker)
        if color is None:
            return None
        return folium.DivIcon(
            html=DOT_HTML.format(color=color),
            icon_size=(20, 20),
            icon_anchor=(10, 10),
            class_name="custom-div-icon",
        )


MarkerStyle = Union[DefaultStyle, CategoryStyle]


def style_for_category(field: Optional[str]) -> MarkerStyle:
    return CategoryStyle(field) if field else DefaultStyle()


def popup_html(data: dict) -> str:
    """Popup body listing every field of the row."""
    rows = "".join(
        f'<tr><th style="text-align:left;padding-right:8px;">{html.escape(str(key))}:</th>'
        f"<td>{html.escape(str(value))}</td></tr>"
        for key, value in data.items()
    )
    return f'<table class="marker-popup">{rows}</table>'


def create_folium_map(markers: List[Marker], style: MarkerStyle = DefaultStyle(), theme: str = "light",
                      cluster: bool = False) -> folium.Map:
    """
    Create a Folium Map with one marker per visible row.
    Returns the Folium Map object.
    """
    tile_theme = TILE_THEMES.get(theme, TILE_THEMES["light"])
    m = folium.Map(location=DEFAULT_CENTER, zoom_start=DEFAULT_ZOOM, tiles=None)
    folium.TileLayer(tiles=tile_theme["tiles"], attr=tile_theme["attr"], name=theme).add_to(m)

    marker_layer = MarkerCluster().add_to(m) if cluster else folium.FeatureGroup(name="markers").add_to(m)

    for marker in markers:
        folium.Marker(
            location=[marker.lat, marker.lng],
            icon=style.icon_for(marker),
            popup=folium.Popup(popup_html(marker.data), max_width=300),
        ).add_to(marker_layer)

    if markers:
        lats = [marker.lat for marker in markers]
        lngs = [marker.lng for marker in markers]
        m.fit_bounds([[min(lats), min(lngs)], [max(lats), max(lngs)]], padding=(50, 50), max_zoom=15)
    return m


def render_map_html(map_obj: folium.Map, full_page: bool = False) -> str:
    """
    Render a folium map to HTML: an embeddable snippet, or a whole document.
    """
    try:
        if full_page:
            return map_obj.get_root().render()
        return map_obj._repr_html_()
    except Exception as e:
        raise MapGenerationError(f"Failed to render map: {e}") from e


def save_map_file(map_obj: folium.Map, filepath: str) -> str:
    """
    Save the map as a standalone HTML document and return its path.
    """
    with open(filepath, "w", encoding="utf-8") as f:
        f.write(render_map_html(map_obj, full_page=True))
    return filepath
