from __future__ import annotations

from typing import Any
from unittest.mock import Mock, patch

import pytest
import requests

from src.data.metadata_client import MetadataClient, MetadataClientError, RouteInfo, bounding_box


@pytest.fixture()
def metadata_client() -> MetadataClient:
    return MetadataClient("https://api.example/")


def _mock_response(status_code: int, json_data: Any = None, text: str = "") -> Mock:
    response = Mock()
    response.status_code = status_code
    response.text = text
    if json_data is not None:
        response.json.return_value = json_data
    else:
        response.json.side_effect = ValueError("Invalid JSON")
    return response


def test_get_stop_routes_returns_route_dicts(metadata_client: MetadataClient) -> None:
    payload = [
        {"routeId": "st:1_100", "name": "100", "color": "28813F", "headsigns": ["Downtown"]},
        {"routeId": "st:1_200"},
        "junk",
    ]
    with patch("requests.get", return_value=_mock_response(200, payload)) as mock_get:
        routes = metadata_client.get_stop_routes("st:1_12345")

    assert [RouteInfo.from_json(route) for route in routes] == [
        RouteInfo("st:1_100", "100", "28813F", ("Downtown",)),
        RouteInfo("st:1_200", "st:1_200", None, ()),
    ]
    mock_get.assert_called_once_with("https://api.example/stops/st:1_12345/routes", timeout=10)


def test_get_stops_near_uses_bounding_box(metadata_client: MetadataClient) -> None:
    payload = [
        {"stopId": "st:1_1", "name": "Pine St", "stopCode": "1", "lat": 47.6, "lng": -122.3},
        {"name": "no id"},
    ]
    with patch("requests.get", return_value=_mock_response(200, payload)) as mock_get:
        stops = metadata_client.get_stops_near(47.6, -122.3, 0.69)

    assert [(stop.stop_id, stop.name, stop.stop_code) for stop in stops] == [("st:1_1", "Pine St", "1")]
    url = mock_get.call_args.args[0]
    assert url.startswith("https://api.example/stops/within/")
    assert len(url.rsplit("/", 1)[1].split(",")) == 4


def test_bounding_box_offsets_by_miles_per_degree() -> None:
    min_lng, min_lat, max_lng, max_lat = bounding_box(10.0, 20.0, 6.9)

    assert min_lat == pytest.approx(9.9)
    assert max_lat == pytest.approx(10.1)
    assert min_lng == pytest.approx(19.9)
    assert max_lng == pytest.approx(20.1)


def test_non_200_raises_metadata_client_error(metadata_client: MetadataClient) -> None:
    response = _mock_response(404, {"error": "Not found"}, text="Not found")
    with patch("requests.get", return_value=response):
        with pytest.raises(MetadataClientError) as exc_info:
            metadata_client.get_stop_routes("missing")

    assert "Status 404" in str(exc_info.value)
    assert "Not found" in str(exc_info.value)


def test_request_exception_raises_metadata_client_error(metadata_client: MetadataClient) -> None:
    with patch("requests.get", side_effect=requests.RequestException("Connection error")):
        with pytest.raises(MetadataClientError) as exc_info:
            metadata_client.get_stop_routes("st:1_1")

    assert "Connection error" in str(exc_info.value)


def test_invalid_json_raises_metadata_client_error(metadata_client: MetadataClient) -> None:
    with patch("requests.get", return_value=_mock_response(200, None)):
        with pytest.raises(MetadataClientError):
            metadata_client.get_stop_routes("st:1_1")


def test_unexpected_shape_raises_metadata_client_error(metadata_client: MetadataClient) -> None:
    with patch("requests.get", return_value=_mock_response(200, {"data": []})):
        with pytest.raises(MetadataClientError):
            metadata_client.get_stops_within(0, 0, 1, 1)
