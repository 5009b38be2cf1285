"""Debounced, single-flight saving of the configuration to the device."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from functools import partial
import logging
import threading
import time
from typing import Callable, Mapping

from src.codec.fields import encode_fields
from src.data.entity_gateway import EntityGateway, EntityGatewayError
from src.model.session import ConfigSession
from src.sync.save_state import SaveAction, SaveEvent, SaveState, transition

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.3
DEFAULT_SETTLE_SECONDS = 0.5

StatusCallback = Callable[[str, str], None]


@dataclass(frozen=True)
class SaveResult:
    """Outcome of one batch of device writes."""

    written: tuple[str, ...]
    failures: dict[str, str] = field(default_factory=dict)
    reload_id: str | None = None
    reload_error: str | None = None

    @property
    def ok(self) -> bool:
        return not self.failures and self.reload_error is None


class SaveOrchestrator:
    """Turns bursts of edits into bounded-rate batch writes.

    `request_save()` arms (or re-arms) a debounce timer; `save_now()` saves
    immediately unless a save is already running, in which case one more
    save is scheduled after it. Saves never overlap: the scheduling rules
    live in `save_state.transition`, which also queues an import batch
    behind a running save.
    """

    def __init__(
        self,
        session: ConfigSession,
        gateway: EntityGateway,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        settle_seconds: float = DEFAULT_SETTLE_SECONDS,
        on_status: StatusCallback | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._session = session
        self._gateway = gateway
        self._debounce_seconds = max(0.0, float(debounce_seconds))
        self._settle_seconds = max(0.0, float(settle_seconds))
        self._on_status = on_status
        self._sleep = sleep
        self._lock = threading.Lock()
        self._changed = threading.Condition(self._lock)
        self._flight = threading.Lock()
        self._import_lock = threading.Lock()
        self._state = SaveState.IDLE
        self._timer: threading.Timer | None = None
        self._generation = 0
        self._last_result: SaveResult | None = None

    @property
    def state(self) -> SaveState:
        with self._lock:
            return self._state

    @property
    def last_result(self) -> SaveResult | None:
        with self._lock:
            return self._last_result

    def request_save(self) -> None:
        """Queue a debounced save; only the last request in a burst counts."""
        self._dispatch(SaveEvent.REQUEST)

    def save_now(self) -> SaveResult | None:
        """Save immediately; returns None if the save was deferred."""
        return self._dispatch(SaveEvent.SAVE_NOW)

    def flush(self, timeout: float | None = None) -> bool:
        """Run any pending save now and wait until no save is in flight."""
        if self.state is SaveState.PENDING:
            self.save_now()
        with self._changed:
            return self._changed.wait_for(lambda: self._state is SaveState.IDLE, timeout=timeout)

    def cancel(self) -> None:
        """Drop a pending debounced save, if any."""
        with self._lock:
            self._cancel_timer_locked()
            if self._state is SaveState.PENDING:
                self._state = SaveState.IDLE
                self._changed.notify_all()

    def import_batch(
        self,
        texts: Mapping[str, str],
        selects: Mapping[str, str] | None = None,
        after: Callable[[], None] | None = None,
    ) -> SaveResult:
        """Write an import batch, then run `after` before saves resume.

        Waits for a running save to finish and drops any queued save. Save
        requests made until `after` returns are ignored.
        """
        writes: dict[str, Callable[[], None]] = {}
        for entity_id, value in texts.items():
            writes[entity_id] = partial(self._gateway.set_text, entity_id, value)
        for entity_id, value in (selects or {}).items():
            writes[entity_id] = partial(self._gateway.set_select, entity_id, value)

        with self._import_lock:
            self._dispatch(SaveEvent.IMPORT)
            with self._changed:
                self._changed.wait_for(lambda: self._state is SaveState.IMPORTING)
            try:
                with self._flight:
                    result = self._execute(writes)
                with self._lock:
                    self._last_result = result
                if after is not None:
                    after()
                return result
            finally:
                self._dispatch(SaveEvent.IMPORT_FINISHED)

    def _dispatch(self, event: SaveEvent, generation: int | None = None) -> SaveResult | None:
        start_save = False
        with self._lock:
            if event is SaveEvent.TIMER_EXPIRED and generation != self._generation:
                return None
            step = transition(self._state, event)
            if step.state is not self._state:
                logger.debug("Save state %s -> %s on %s", self._state.value, step.state.value, event.value)
            self._state = step.state
            for action in step.actions:
                if action is SaveAction.ARM_TIMER:
                    self._arm_timer_locked()
                elif action is SaveAction.CANCEL_TIMER:
                    self._cancel_timer_locked()
                elif action is SaveAction.START_SAVE:
                    start_save = True
            self._changed.notify_all()
        if start_save:
            return self._run_save()
        return None

    def _arm_timer_locked(self) -> None:
        self._cancel_timer_locked()
        generation = self._generation
        timer = threading.Timer(self._debounce_seconds, self._on_timer, args=(generation,))
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _cancel_timer_locked(self) -> None:
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self, generation: int) -> None:
        self._dispatch(SaveEvent.TIMER_EXPIRED, generation)

    def _run_save(self) -> SaveResult:
        try:
            with self._flight:
                result = self._save_snapshot()
            with self._lock:
                self._last_result = result
            return result
        finally:
            self._dispatch(SaveEvent.SAVE_FINISHED)

    def _save_snapshot(self) -> SaveResult:
        self._status("Saving...", "info")
        fields = encode_fields(self._session.snapshot())
        writes = {entity_id: partial(self._gateway.set_text, entity_id, value) for entity_id, value in fields.items()}
        result = self._execute(writes)

        if result.failures:
            failed = ", ".join(sorted(result.failures))
            self._status(f"Save failed: {failed}", "error")
        elif result.reload_error:
            self._status(f"Saved, but reload failed: {result.reload_error}", "error")
        else:
            if encode_fields(self._session.snapshot()) == fields:
                self._session.mark_clean()
            self._status("Configuration saved!", "success")
        return result

    def _execute(self, writes: Mapping[str, Callable[[], None]]) -> SaveResult:
        written, failures = self._fan_out(writes)
        if self._settle_seconds:
            self._sleep(self._settle_seconds)
        reload_id = None
        reload_error = None
        try:
            reload_id = self._gateway.press_reload()
        except EntityGatewayError as exc:
            logger.error("Reload signal rejected: %s", exc)
            reload_error = str(exc)
        return SaveResult(
            written=written,
            failures=failures,
            reload_id=reload_id,
            reload_error=reload_error,
        )

    def _fan_out(self, writes: Mapping[str, Callable[[], None]]) -> tuple[tuple[str, ...], dict[str, str]]:
        if not writes:
            return (), {}
        with ThreadPoolExecutor(max_workers=len(writes), thread_name_prefix="entity-write") as pool:
            futures = {entity_id: pool.submit(write) for entity_id, write in writes.items()}
            wait(futures.values())

        written = []
        failures: dict[str, str] = {}
        for entity_id, future in futures.items():
            exc = future.exception()
            if exc is None:
                written.append(entity_id)
                continue
            if isinstance(exc, EntityGatewayError):
                logger.error("Write to %s failed: %s", entity_id, exc)
            else:
                logger.error("Write to %s raised %s: %s", entity_id, type(exc).__name__, exc)
            failures[entity_id] = str(exc)
        return tuple(written), failures

    def _status(self, message: str, level: str) -> None:
        logger.info("%s", message)
        if self._on_status is not None:
            self._on_status(message, level)


__all__ = ["SaveOrchestrator", "SaveResult", "StatusCallback"]
