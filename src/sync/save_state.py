"""Save scheduling state machine.

Coalesces save requests so that at most one save runs at a time and a
burst of debounced requests produces a single save. An import waits for
the running save and drops any queued one. Saves requested during the
import are ignored.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SaveState(Enum):
    IDLE = "idle"
    PENDING = "pending"
    SAVING = "saving"
    SAVING_THEN_PENDING = "saving_then_pending"
    SAVING_THEN_IMPORT = "saving_then_import"
    IMPORTING = "importing"


class SaveEvent(Enum):
    REQUEST = "request"
    SAVE_NOW = "save_now"
    TIMER_EXPIRED = "timer_expired"
    SAVE_FINISHED = "save_finished"
    IMPORT = "import"
    IMPORT_FINISHED = "import_finished"


class SaveAction(Enum):
    ARM_TIMER = "arm_timer"
    CANCEL_TIMER = "cancel_timer"
    START_SAVE = "start_save"


@dataclass(frozen=True)
class Transition:
    state: SaveState
    actions: tuple[SaveAction, ...] = ()


_TRANSITIONS: dict[tuple[SaveState, SaveEvent], Transition] = {
    (SaveState.IDLE, SaveEvent.REQUEST): Transition(SaveState.PENDING, (SaveAction.ARM_TIMER,)),
    (SaveState.IDLE, SaveEvent.SAVE_NOW): Transition(SaveState.SAVING, (SaveAction.START_SAVE,)),
    (SaveState.PENDING, SaveEvent.REQUEST): Transition(SaveState.PENDING, (SaveAction.ARM_TIMER,)),
    (SaveState.PENDING, SaveEvent.SAVE_NOW): Transition(
        SaveState.SAVING, (SaveAction.CANCEL_TIMER, SaveAction.START_SAVE)
    ),
    (SaveState.PENDING, SaveEvent.TIMER_EXPIRED): Transition(SaveState.SAVING, (SaveAction.START_SAVE,)),
    (SaveState.SAVING, SaveEvent.REQUEST): Transition(SaveState.SAVING_THEN_PENDING),
    (SaveState.SAVING, SaveEvent.SAVE_NOW): Transition(SaveState.SAVING_THEN_PENDING),
    (SaveState.SAVING, SaveEvent.SAVE_FINISHED): Transition(SaveState.IDLE),
    (SaveState.SAVING_THEN_PENDING, SaveEvent.REQUEST): Transition(SaveState.SAVING_THEN_PENDING),
    (SaveState.SAVING_THEN_PENDING, SaveEvent.SAVE_NOW): Transition(SaveState.SAVING_THEN_PENDING),
    (SaveState.SAVING_THEN_PENDING, SaveEvent.SAVE_FINISHED): Transition(
        SaveState.PENDING, (SaveAction.ARM_TIMER,)
    ),
    (SaveState.IDLE, SaveEvent.IMPORT): Transition(SaveState.IMPORTING),
    (SaveState.PENDING, SaveEvent.IMPORT): Transition(SaveState.IMPORTING, (SaveAction.CANCEL_TIMER,)),
    (SaveState.SAVING, SaveEvent.IMPORT): Transition(SaveState.SAVING_THEN_IMPORT),
    (SaveState.SAVING_THEN_PENDING, SaveEvent.IMPORT): Transition(SaveState.SAVING_THEN_IMPORT),
    (SaveState.SAVING_THEN_IMPORT, SaveEvent.SAVE_FINISHED): Transition(SaveState.IMPORTING),
    (SaveState.IMPORTING, SaveEvent.IMPORT_FINISHED): Transition(SaveState.IDLE),
}


def transition(state: SaveState, event: SaveEvent) -> Transition:
    """Return the next state and the actions to run.

    Pairs not listed leave the state unchanged: a stale timer firing while
    idle or saving, a finish while not saving, and save requests made while
    an import is queued or running.
    """
    return _TRANSITIONS.get((state, event), Transition(state))


__all__ = ["SaveAction", "SaveEvent", "SaveState", "Transition", "transition"]
