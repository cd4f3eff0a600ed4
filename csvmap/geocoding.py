"""
Utility functions for geocoding place names

Two backends answer the same question (which of these strings can be placed
on a map, and where): the Gemini generateContent REST endpoint and the
OpenStreetMap Nominatim service. Both make at most one attempt per call and
leave out anything they cannot resolve.
"""
import json
import logging
from dataclasses import dataclass
from numbers import Real
from typing import Iterable, List, Optional

import requests
from geopy.exc import GeopyError
from geopy.extra.rate_limiter import RateLimiter
from geopy.geocoders import Nominatim

from .exceptions import GeocodingError

logger = logging.getLogger(__name__)

GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
FAILURE_MESSAGE = "Failed to geocode locations. Please check your locations and try again."

RESPONSE_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "location": {
                "type": "STRING",
                "description": "The original location string provided in the input.",
            },
            "lat": {"type": "NUMBER", "description": "The latitude of the location."},
            "lng": {"type": "NUMBER", "description": "The longitude of the location."},
        },
        "required": ["location", "lat", "lng"],
    },
}


@dataclass(frozen=True)
class GeocodedLocation:
    location: str
    lat: float
    lng: float


def build_prompt(locations: List[str]) -> str:
    return (
        "You are a geocoding expert. Find the precise latitude and longitude for this list of "
        "locations. If a location is ambiguous or cannot be found, omit it from your response. "
        f"Locations: {json.dumps(locations)}"
    )


def _is_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def parse_geocode_payload(text: Optional[str]) -> List[GeocodedLocation]:
    """
    Turn the JSON text returned by the model into GeocodedLocation objects.

    Raises GeocodingError for an empty, non-JSON or non-list payload. Single
    entries that do not look like {location, lat, lng} are skipped.
    """
    text = (text or "").strip()
    if not text:
        raise GeocodingError("Geocoding service returned an empty response.")
    try:
        payload = json.loads(text)
    except ValueError as e:
        raise GeocodingError(f"Geocoding service returned invalid JSON: {e}") from e
    if not isinstance(payload, list):
        raise GeocodingError("Geocoding service returned an unexpected payload.")

    results = []
    for item in payload:
        if not isinstance(item, dict):
            logger.warning("Skipping geocoding entry that is not an object: %r", item)
            continue
        location, lat, lng = item.get("location"), item.get("lat"), item.get("lng")
        if not isinstance(location, str) or not _is_number(lat) or not _is_number(lng):
            logger.warning("Skipping malformed geocoding entry: %r", item)
            continue
        results.append(GeocodedLocation(location, float(lat), float(lng)))
    return results


class GeminiGeocoder:
    """Geocodes a batch of place names with a single Gemini request."""

    def __init__(self, api_key: str, model: str = DEFAULT_GEMINI_MODEL, timeout: float = 30.0):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    def _request_body(self, locations: List[str]) -> dict:
        return {
            "contents": [{"parts": [{"text": build_prompt(locations)}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }

    def geocode(self, locations: List[str]) -> List[GeocodedLocation]:
        if not self.api_key:
            raise GeocodingError("GEMINI_API_KEY is not set; geocoding is unavailable.")

        url = f"{GEMINI_API_URL}/{self.model}:generateContent"
        headers = {"x-goog-api-key": self.api_key, "Content-Type": "application/json"}
        try:
            resp = requests.post(url, json=self._request_body(locations), headers=headers, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as e:
            logger.error("Gemini geocoding request failed: %s", e)
            raise GeocodingError(FAILURE_MESSAGE) from e
        except ValueError as e:
            logger.error("Gemini geocoding response was not JSON: %s", e)
            raise GeocodingError(FAILURE_MESSAGE) from e

        try:
            parts = data["candidates"][0]["content"]["parts"]
            text = "".join(part.get("text", "") for part in parts)
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            logger.error("Gemini geocoding response had no content: %r", data)
            raise GeocodingError(FAILURE_MESSAGE) from e

        try:
            results = parse_geocode_payload(text)
        except GeocodingError as e:
            logger.error("Gemini geocoding payload rejected: %s", e)
            raise GeocodingError(FAILURE_MESSAGE) from e
        logger.info("Gemini resolved %d of %d locations", len(results), len(locations))
        return results


class NominatimGeocoder:
    """Geocodes place names one at a time against OpenStreetMap Nominatim."""

    def __init__(self, user_agent: str = "csv_mapper", delay: float = 1.0, timeout: float = 10.0):
        geolocator = Nominatim(user_agent=user_agent, timeout=timeout)
        self._geocode = RateLimiter(
            geolocator.geocode, min_delay_seconds=delay, max_retries=0, swallow_exceptions=False
        )

    def geocode(self, locations: List[str]) -> List[GeocodedLocation]:
        results = []
        try:
            for name in dict.fromkeys(locations):
                loc = self._geocode(name)
                if loc:
                    results.append(GeocodedLocation(name, loc.latitude, loc.longitude))
        except GeopyError as e:
            logger.error("Nominatim geocoding failed: %s", e)
            raise GeocodingError(FAILURE_MESSAGE) from e
        logger.info("Nominatim resolved %d of %d distinct locations", len(results), len(set(locations)))
        return results


def create_geocoder(config):
    """Build the geocoder named by the GEOCODER setting of a config mapping."""
    backend = (config.get("GEOCODER") or "gemini").lower()
    timeout = config.get("GEOCODE_TIMEOUT", 30.0)
    if backend == "gemini":
        return GeminiGeocoder(
            config.get("GEMINI_API_KEY"),
            model=config.get("GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
            timeout=timeout,
        )
    if backend == "nominatim":
        return NominatimGeocoder(user_agent=config.get("NOMINATIM_USER_AGENT", "csv_mapper"), timeout=timeout)
    raise ValueError(f"Unknown geocoder backend: {backend}")


def collect_locations(values: Iterable[str]) -> List[str]:
    """Non-empty values in their original order, duplicates kept."""
    return [value for value in values if value]


def geocode_column(table, column: str, geocoder) -> List[GeocodedLocation]:
    """
    Geocode every non-empty value of a table column.

    Raises:
        GeocodingError: if the column holds no values or the backend fails
    """
    locations = collect_locations(table.column(column))
    if not locations:
        raise GeocodingError("No locations found in the selected column.")
    return geocoder.geocode(locations)
