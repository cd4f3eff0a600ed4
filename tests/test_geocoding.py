"""Test module for the geocoding adapters"""

import json

import pytest
import requests
from geopy.exc import GeocoderServiceError

from csvmap import geocoding
from csvmap.csv_parsing import parse_csv
from csvmap.exceptions import GeocodingError
from csvmap.geocoding import (
    GeminiGeocoder,
    GeocodedLocation,
    NominatimGeocoder,
    create_geocoder,
    geocode_column,
    parse_geocode_payload,
)


class FakeResponse:

    def __init__(self, payload=None, status_code=200, text_payload=None):
        self.payload = payload
        self.status_code = status_code
        self.text_payload = text_payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self.text_payload is not None:
            return json.loads(self.text_payload)
        return self.payload


def gemini_reply(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class TestParseGeocodePayload:

    def test_valid_entries(self):
        text = '[{"location": "Paris", "lat": 48.85, "lng": 2.35}, {"location": "Oslo", "lat": 59, "lng": 10}]'
        assert parse_geocode_payload(text) == [
            GeocodedLocation("Paris", 48.85, 2.35),
            GeocodedLocation("Oslo", 59.0, 10.0),
        ]

    def test_malformed_entries_are_skipped(self):
        text = json.dumps([
            {"location": "Paris", "lat": "48.85", "lng": 2.35},
            {"location": "Oslo", "lat": True, "lng": 10},
            {"lat": 1, "lng": 2},
            "Rome",
            {"location": "Lima", "lat": -12.05, "lng": -77.04},
        ])
        assert parse_geocode_payload(text) == [GeocodedLocation("Lima", -12.05, -77.04)]

    def test_empty_list_is_valid(self):
        assert parse_geocode_payload("[]") == []

    @pytest.mark.parametrize("text", [None, "", "   ", "not json", '{"location": "Paris"}'])
    def test_invalid_payload(self, text):
        with pytest.raises(GeocodingError):
            parse_geocode_payload(text)


class TestGeminiGeocoder:

    def test_successful_call(self, monkeypatch):
        captured = {}

        def fake_post(url, json=None, headers=None, timeout=None):
            captured.update(url=url, body=json, headers=headers, timeout=timeout)
            return FakeResponse(gemini_reply('[{"location": "Paris", "lat": 48.85, "lng": 2.35}]'))

        monkeypatch.setattr(geocoding.requests, "post", fake_post)
        geocoder = GeminiGeocoder("secret", model="gemini-test", timeout=5)

        results = geocoder.geocode(["Paris", "Atlantis", "Paris"])

        assert results == [GeocodedLocation("Paris", 48.85, 2.35)]
        assert captured["url"].endswith("/gemini-test:generateContent")
        assert captured["headers"]["x-goog-api-key"] == "secret"
        assert captured["timeout"] == 5
        prompt = captured["body"]["contents"][0]["parts"][0]["text"]
        assert '["Paris", "Atlantis", "Paris"]' in prompt
        assert captured["body"]["generationConfig"]["responseMimeType"] == "application/json"

    def test_missing_api_key(self, monkeypatch):
        def fail_post(*args, **kwargs):
            raise AssertionError("no request expected")

        monkeypatch.setattr(geocoding.requests, "post", fail_post)
        with pytest.raises(GeocodingError):
            GeminiGeocoder("").geocode(["Paris"])

    @pytest.mark.parametrize("error", [requests.Timeout("slow"), requests.ConnectionError("down")])
    def test_network_errors(self, monkeypatch, error):
        def fake_post(*args, **kwargs):
            raise error

        monkeypatch.setattr(geocoding.requests, "post", fake_post)
        with pytest.raises(GeocodingError, match="Failed to geocode"):
            GeminiGeocoder("secret").geocode(["Paris"])

    @pytest.mark.parametrize("response", [
        FakeResponse({}, status_code=500),
        FakeResponse(text_payload="<html>oops</html>"),
        FakeResponse({"candidates": []}),
        FakeResponse(gemini_reply("")),
        FakeResponse(gemini_reply("sorry, I cannot help")),
        FakeResponse({"candidates": [{"content": {"parts": ["x"]}}]}),
        FakeResponse({"candidates": [{"content": {"parts": None}}]}),
    ])
    def test_bad_responses(self, monkeypatch, response):
        monkeypatch.setattr(geocoding.requests, "post", lambda *a, **kw: response)
        with pytest.raises(GeocodingError):
            GeminiGeocoder("secret").geocode(["Paris"])

    def test_single_attempt(self, monkeypatch):
        calls = []

        def fake_post(*args, **kwargs):
            calls.append(1)
            raise requests.Timeout("slow")

        monkeypatch.setattr(geocoding.requests, "post", fake_post)
        with pytest.raises(GeocodingError):
            GeminiGeocoder("secret").geocode(["Paris"])
        assert len(calls) == 1


class FakeLocation:

    def __init__(self, latitude, longitude):
        self.latitude = latitude
        self.longitude = longitude


class TestNominatimGeocoder:

    def test_each_distinct_name_is_looked_up_once(self):
        asked = []

        def fake_geocode(name):
            asked.append(name)
            return FakeLocation(48.85, 2.35) if name == "Paris" else None

        geocoder = NominatimGeocoder(delay=0)
        geocoder._geocode = fake_geocode

        results = geocoder.geocode(["Paris", "Atlantis", "Paris"])

        assert asked == ["Paris", "Atlantis"]
        assert results == [GeocodedLocation("Paris", 48.85, 2.35)]

    def test_service_error(self):
        def fake_geocode(name):
            raise GeocoderServiceError("unavailable")

        geocoder = NominatimGeocoder(delay=0)
        geocoder._geocode = fake_geocode
        with pytest.raises(GeocodingError):
            geocoder.geocode(["Paris"])


class TestCreateGeocoder:

    def test_gemini_is_default(self):
        geocoder = create_geocoder({"GEMINI_API_KEY": "k", "GEMINI_MODEL": "m", "GEOCODE_TIMEOUT": 3})
        assert isinstance(geocoder, GeminiGeocoder)
        assert (geocoder.api_key, geocoder.model, geocoder.timeout) == ("k", "m", 3)

    def test_nominatim(self):
        assert isinstance(create_geocoder({"GEOCODER": "Nominatim"}), NominatimGeocoder)

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            create_geocoder({"GEOCODER": "carrier-pigeon"})


class TestGeocodeColumn:

    def test_non_empty_values_in_order(self, places_csv, stub_geocoder):
        table = parse_csv(places_csv + "Blank,,Myth\nAgain,Paris,Museum\n")

        results = geocode_column(table, "City", stub_geocoder)

        assert stub_geocoder.calls == [["Paris", "Berlin", "Atlantis", "Paris"]]
        assert {r.location for r in results} == {"Paris", "Berlin"}

    def test_empty_column(self, stub_geocoder):
        table = parse_csv("Name,City\nA,\nB,\n")
        with pytest.raises(GeocodingError, match="No locations found"):
            geocode_column(table, "City", stub_geocoder)
        assert stub_geocoder.calls == []
