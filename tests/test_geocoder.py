from __future__ import annotations

from unittest.mock import Mock, patch

import pytest
import requests

from src.data.geocoder import Geocoder, GeocoderError, parse_coordinates


def _mock_response(status_code: int, json_data=None) -> Mock:
    response = Mock()
    response.status_code = status_code
    if json_data is not None:
        response.json.return_value = json_data
    else:
        response.json.side_effect = ValueError("Invalid JSON")
    return response


def test_parse_coordinates() -> None:
    assert parse_coordinates("47.6062, -122.3321") == (47.6062, -122.3321)
    assert parse_coordinates(" 40,-74 ") == (40.0, -74.0)
    assert parse_coordinates("123 Main St") is None


def test_locate_coordinates_skips_network() -> None:
    with patch("requests.get") as mock_get:
        assert Geocoder().locate("47.6, -122.3") == (47.6, -122.3)

    mock_get.assert_not_called()


def test_locate_address_uses_first_result() -> None:
    response = _mock_response(200, [{"lat": "47.61", "lon": "-122.33"}, {"lat": "0", "lon": "0"}])
    with patch("requests.get", return_value=response) as mock_get:
        result = Geocoder("https://geo.example/search").locate("Pike Place Market")

    assert result == (47.61, -122.33)
    assert mock_get.call_args.args[0] == "https://geo.example/search"
    assert mock_get.call_args.kwargs["params"] == {"format": "json", "q": "Pike Place Market"}
    assert "User-Agent" in mock_get.call_args.kwargs["headers"]


def test_locate_errors() -> None:
    geocoder = Geocoder()

    with pytest.raises(GeocoderError):
        geocoder.locate("   ")
    with patch("requests.get", return_value=_mock_response(200, [])):
        with pytest.raises(GeocoderError, match="not found"):
            geocoder.locate("Nowhere")
    with patch("requests.get", return_value=_mock_response(500, [])):
        with pytest.raises(GeocoderError, match="Status 500"):
            geocoder.locate("Somewhere")
    with patch("requests.get", side_effect=requests.RequestException("offline")):
        with pytest.raises(GeocoderError, match="offline"):
            geocoder.locate("Somewhere")
