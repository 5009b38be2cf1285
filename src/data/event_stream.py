"""Threaded subscriber for the device's server-sent state events."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

from src.data import entities
from src.data.entity_gateway import EntityGateway, EntityGatewayError
from src.model.session import ConfigSession

logger = logging.getLogger(__name__)

STATE_EVENT = "state"
SWITCH_PREFIX = "switch-"

_SWITCH_SETTINGS = {
    entities.SHOW_LINE_ICONS: "show_line_icons",
    entities.SCROLL_HEADSIGNS: "scroll_headsigns",
    entities.FLIP_DISPLAY: "flip_display",
}


def apply_state_event(session: ConfigSession, payload: dict[str, Any]) -> bool:
    """Apply an out-of-band switch change; returns True if a setting changed.

    The session is not marked dirty: the device already holds this state.
    """
    event_id = payload.get("id")
    if not isinstance(event_id, str) or not event_id.startswith(SWITCH_PREFIX):
        return False
    setting = _SWITCH_SETTINGS.get(event_id[len(SWITCH_PREFIX) :])
    if setting is None:
        return False
    value = payload.get("state") == "ON"
    if getattr(session.settings, setting) == value:
        return False
    session.update_settings(**{setting: value})
    return True


class EventSubscriber:
    """Background thread that applies device state events to a session."""

    def __init__(
        self,
        gateway: EntityGateway,
        session: ConfigSession,
        reconnect_seconds: float = 5.0,
        on_change: Callable[[dict[str, Any]], None] | None = None,
    ) -> None:
        self._gateway = gateway
        self._session = session
        self._reconnect_seconds = reconnect_seconds
        self._on_change = on_change
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        """Start the background subscription thread."""
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Signal the subscription thread to stop after the current event."""
        self._stop_event.set()

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            self._consume_once()
            self._stop_event.wait(timeout=self._reconnect_seconds)

    def _consume_once(self) -> None:
        try:
            for event, payload in self._gateway.stream_events():
                if self._stop_event.is_set():
                    return
                self.handle(event, payload)
        except EntityGatewayError as exc:
            logger.warning("Event stream connection lost, will reconnect: %s", exc)

    def handle(self, event: str, payload: dict[str, Any]) -> bool:
        if event != STATE_EVENT:
            return False
        changed = apply_state_event(self._session, payload)
        if changed and self._on_change is not None:
            self._on_change(payload)
        return changed


__all__ = ["EventSubscriber", "apply_state_event"]
