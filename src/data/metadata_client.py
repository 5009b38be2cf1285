"""Transit Tracker metadata API client (stops and their routes)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import requests

DEFAULT_API_BASE = "https://tt.horner.tj"
MILES_PER_DEGREE = 69.0


class MetadataClientError(Exception):
    """Raised when a metadata API request fails or returns a non-200 response."""


@dataclass(frozen=True)
class Stop:
    """A stop returned by a bounding-box search."""

    stop_id: str
    name: str
    stop_code: str | None = None
    lat: float | None = None
    lng: float | None = None


@dataclass(frozen=True)
class RouteInfo:
    """A route serving a stop."""

    route_id: str
    name: str
    color: str | None = None
    headsigns: tuple[str, ...] = ()

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "RouteInfo":
        route_id = str(data.get("routeId", ""))
        return cls(
            route_id=route_id,
            name=data.get("name") or route_id,
            color=data.get("color") or None,
            headsigns=tuple(data.get("headsigns") or ()),
        )


def bounding_box(lat: float, lng: float, radius_miles: float) -> tuple[float, float, float, float]:
    """Return (min_lng, min_lat, max_lng, max_lat) around a point."""
    offset = radius_miles / MILES_PER_DEGREE
    return (lng - offset, lat - offset, lng + offset, lat + offset)


class MetadataClient:
    """Thin wrapper around the stop/route metadata API using requests."""

    def __init__(self, api_base: str = DEFAULT_API_BASE) -> None:
        self._api_base = api_base.rstrip("/")
        self._timeout_seconds = 10

    def get_stop_routes(self, stop_id: str) -> list[dict[str, Any]]:
        """Fetch the raw route list for a stop."""
        data = self._get(f"/stops/{stop_id}/routes")
        if not isinstance(data, list):
            raise MetadataClientError("Metadata API returned an unexpected route list")
        return [route for route in data if isinstance(route, dict)]

    def get_stops_within(
        self, min_lng: float, min_lat: float, max_lng: float, max_lat: float
    ) -> list[Stop]:
        data = self._get(f"/stops/within/{min_lng},{min_lat},{max_lng},{max_lat}")
        if not isinstance(data, list):
            raise MetadataClientError("Metadata API returned an unexpected stop list")
        stops = []
        for item in data:
            if not isinstance(item, dict) or not item.get("stopId"):
                continue
            stops.append(
                Stop(
                    stop_id=str(item["stopId"]),
                    name=item.get("name") or str(item["stopId"]),
                    stop_code=item.get("stopCode"),
                    lat=item.get("lat"),
                    lng=item.get("lng"),
                )
            )
        return stops

    def get_stops_near(self, lat: float, lng: float, radius_miles: float) -> list[Stop]:
        return self.get_stops_within(*bounding_box(lat, lng, radius_miles))

    def _get(self, path: str) -> Any:
        url = f"{self._api_base}{path}"
        try:
            response = requests.get(url, timeout=self._timeout_seconds)
        except requests.RequestException as exc:
            raise MetadataClientError(f"Metadata API request failed: {exc}") from exc

        if response.status_code != 200:
            body_text = response.text.strip()
            detail = f"Status {response.status_code}"
            if body_text:
                detail = f"{detail}, Body: {body_text}"
            raise MetadataClientError(f"Metadata API request failed: {detail}")

        try:
            return response.json()
        except ValueError as exc:
            raise MetadataClientError("Metadata API response was not valid JSON") from exc


__all__ = [
    "MetadataClient",
    "MetadataClientError",
    "RouteInfo",
    "Stop",
    "bounding_box",
]
