"""REST client for the display device's entity store."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Iterator
from urllib.parse import quote

import requests

from src.data.entities import RELOAD_BUTTON, RELOAD_BUTTON_FALLBACK

logger = logging.getLogger(__name__)


class EntityGatewayError(Exception):
    """Raised when a device write fails or returns a non-2xx response."""


def _encode(value: str) -> str:
    return quote(value, safe="")


def parse_sse(lines: Iterable[str]) -> Iterator[tuple[str, str]]:
    """Yield (event, data) pairs from server-sent event stream lines."""
    event = "message"
    data: list[str] = []
    for raw in lines:
        line = raw.rstrip("\r") if isinstance(raw, str) else raw.decode("utf-8").rstrip("\r")
        if not line:
            if data:
                yield event, "\n".join(data)
            event = "message"
            data = []
            continue
        if line.startswith(":"):
            continue
        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if name == "event":
            event = value
        elif name == "data":
            data.append(value)
    if data:
        yield event, "\n".join(data)


class EntityGateway:
    """Reads and writes switch, select and text entities over HTTP.

    Reads degrade to a default value on any failure; writes raise
    EntityGatewayError so callers can report them.
    """

    def __init__(self, base_url: str, timeout_seconds: float = 10) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds

    @property
    def base_url(self) -> str:
        return self._base_url

    def get_switch(self, entity_id: str) -> bool:
        data = self._get_json(f"/switch/{entity_id}")
        return bool(data) and data.get("state") == "ON"

    def set_switch(self, entity_id: str, state: bool) -> None:
        action = "turn_on" if state else "turn_off"
        self._post(f"/switch/{entity_id}/{action}")

    def get_select(self, entity_id: str) -> str | None:
        data = self._get_json(f"/select/{entity_id}")
        if not data:
            return None
        return data.get("value")

    def set_select(self, entity_id: str, value: str) -> None:
        self._post(f"/select/{entity_id}/set?option={_encode(value)}")

    def get_text(self, entity_id: str) -> str:
        data = self._get_json(f"/text/{entity_id}")
        if not data:
            return ""
        return data.get("value") or ""

    def set_text(self, entity_id: str, value: str) -> None:
        logger.debug("Writing text %s (%d chars)", entity_id, len(value))
        self._post(f"/text/{entity_id}/set?value={_encode(value)}")

    def press_button(self, entity_id: str) -> None:
        self._post(f"/button/{_encode(entity_id)}/press")

    def press_reload(self) -> str:
        """Press the reload button, falling back to its alternate id.

        Returns the id that was accepted.
        """
        try:
            self.press_button(RELOAD_BUTTON)
            return RELOAD_BUTTON
        except EntityGatewayError as exc:
            logger.info("Reload via %s failed (%s), trying %r", RELOAD_BUTTON, exc, RELOAD_BUTTON_FALLBACK)
        self.press_button(RELOAD_BUTTON_FALLBACK)
        return RELOAD_BUTTON_FALLBACK

    def stream_events(self) -> Iterator[tuple[str, dict[str, Any]]]:
        """Yield (event, payload) pairs from the device's /events stream."""
        url = f"{self._base_url}/events"
        try:
            response = requests.get(url, stream=True, timeout=(self._timeout_seconds, None))
        except requests.RequestException as exc:
            raise EntityGatewayError(f"Event stream request failed: {exc}") from exc
        if not 200 <= response.status_code < 300:
            raise EntityGatewayError(f"Event stream request failed: Status {response.status_code}")

        try:
            for event, data in parse_sse(response.iter_lines(decode_unicode=True)):
                try:
                    payload = json.loads(data)
                except ValueError:
                    logger.debug("Ignoring non-JSON %s event: %r", event, data)
                    continue
                if isinstance(payload, dict):
                    yield event, payload
        except requests.RequestException as exc:
            raise EntityGatewayError(f"Event stream interrupted: {exc}") from exc
        finally:
            response.close()

    def _get_json(self, path: str) -> dict[str, Any] | None:
        url = f"{self._base_url}{path}"
        try:
            response = requests.get(url, timeout=self._timeout_seconds)
        except requests.RequestException as exc:
            logger.warning("Device read %s failed: %s", path, exc)
            return None

        if not 200 <= response.status_code < 300:
            logger.warning("Device read %s failed: Status %s", path, response.status_code)
            return None

        try:
            data = response.json()
        except ValueError:
            logger.warning("Device read %s returned invalid JSON", path)
            return None
        return data if isinstance(data, dict) else None

    def _post(self, path: str) -> None:
        url = f"{self._base_url}{path}"
        try:
            response = requests.post(url, timeout=self._timeout_seconds)
        except requests.RequestException as exc:
            raise EntityGatewayError(f"Device write {path} failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            body_text = (response.text or "").strip()
            detail = f"Status {response.status_code}"
            if body_text:
                detail = f"{detail}, Body: {body_text}"
            raise EntityGatewayError(f"Device write {path} failed: {detail}")


__all__ = ["EntityGateway", "EntityGatewayError", "parse_sse"]
