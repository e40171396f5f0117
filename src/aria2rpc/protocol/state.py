"""Connection phase state machine."""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Callable

logger = logging.getLogger(__name__)


class ConnectionPhase(Enum):
    """
    Lifecycle of the single connection owned by an RPC client.

    State transitions:
        UNOPENED -> OPENING -> OPEN -> CLOSED
            \\           \\              ^
             -------------------------->

    CLOSED is terminal: a closed client never opens again.
    """

    UNOPENED = auto()
    OPENING = auto()
    OPEN = auto()
    CLOSED = auto()

    def __str__(self) -> str:
        return self.name


class InvalidStateTransition(Exception):
    """Raised when an invalid phase transition is attempted."""

    def __init__(self, from_state: ConnectionPhase, to_state: ConnectionPhase):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Invalid state transition: {from_state.name} -> {to_state.name}"
        )


StateTransitionCallback = Callable[[ConnectionPhase, ConnectionPhase], None]


class ConnectionStateMachine:
    """
    Tracks the connection phase and notifies listeners on transitions.
    """

    VALID_TRANSITIONS: dict[ConnectionPhase, tuple[ConnectionPhase, ...]] = {
        ConnectionPhase.UNOPENED: (
            ConnectionPhase.OPENING,
            ConnectionPhase.CLOSED,  # closed before first use
        ),
        ConnectionPhase.OPENING: (
            ConnectionPhase.OPEN,
            ConnectionPhase.CLOSED,  # open failed
        ),
        ConnectionPhase.OPEN: (ConnectionPhase.CLOSED,),
        ConnectionPhase.CLOSED: (),
    }

    def __init__(self) -> None:
        self._state = ConnectionPhase.UNOPENED
        self._listeners: list[StateTransitionCallback] = []

    @property
    def state(self) -> ConnectionPhase:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is ConnectionPhase.OPEN

    @property
    def is_closed(self) -> bool:
        return self._state is ConnectionPhase.CLOSED

    def can_transition_to(self, new_state: ConnectionPhase) -> bool:
        return new_state in self.VALID_TRANSITIONS[self._state]

    def transition(self, new_state: ConnectionPhase) -> None:
        """
        Move to ``new_state``.

        Raises:
            InvalidStateTransition: If the transition is not allowed.
        """
        if not self.can_transition_to(new_state):
            raise InvalidStateTransition(self._state, new_state)

        old_state = self._state
        self._state = new_state

        for listener in list(self._listeners):
            try:
                listener(old_state, new_state)
            except Exception:
                logger.exception(
                    f"State listener failed on {old_state} -> {new_state}"
                )

    def on_transition(self, callback: StateTransitionCallback) -> None:
        self._listeners.append(callback)

    def remove_listener(self, callback: StateTransitionCallback) -> None:
        try:
            self._listeners.remove(callback)
        except ValueError:
            pass

    def __str__(self) -> str:
        return f"ConnectionStateMachine({self._state.name})"

    def __repr__(self) -> str:
        return f"ConnectionStateMachine(state={self._state!r})"
