"""Address lookup for stop search."""

from __future__ import annotations

import re

import requests

DEFAULT_GEOCODER_URL = "https://nominatim.openstreetmap.org/search"
USER_AGENT = "transit-config/0.1"

_COORDINATES = re.compile(r"^(-?\d+\.?\d*),\s*(-?\d+\.?\d*)$")


class GeocoderError(Exception):
    """Raised when an address cannot be resolved."""


def parse_coordinates(text: str) -> tuple[float, float] | None:
    """Parse 'lat, lng' input; returns None for anything else."""
    match = _COORDINATES.match(text.strip())
    if not match:
        return None
    return float(match.group(1)), float(match.group(2))


class Geocoder:
    """Resolves free-text addresses through a Nominatim-compatible endpoint."""

    def __init__(self, url: str = DEFAULT_GEOCODER_URL) -> None:
        self._url = url
        self._timeout_seconds = 10

    def locate(self, query: str) -> tuple[float, float]:
        """Return (lat, lng) for coordinates or an address."""
        query = query.strip()
        if not query:
            raise GeocoderError("Enter an address or coordinates")
        coordinates = parse_coordinates(query)
        if coordinates is not None:
            return coordinates

        try:
            response = requests.get(
                self._url,
                params={"format": "json", "q": query},
                headers={"User-Agent": USER_AGENT},
                timeout=self._timeout_seconds,
            )
        except requests.RequestException as exc:
            raise GeocoderError(f"Geocoding failed: {exc}") from exc
        if response.status_code != 200:
            raise GeocoderError(f"Geocoding failed: Status {response.status_code}")
        try:
            results = response.json()
        except ValueError as exc:
            raise GeocoderError("Geocoding response was not valid JSON") from exc

        if not results:
            raise GeocoderError("Address not found")
        first = results[0]
        try:
            return float(first["lat"]), float(first["lon"])
        except (KeyError, TypeError, ValueError) as exc:
            raise GeocoderError("Geocoding result had no coordinates") from exc


__all__ = ["Geocoder", "GeocoderError", "parse_coordinates"]
