"""Module with the single-slot handoff of keyboard states from the telemetry thread to its consumer."""

import threading

from keymap_viewer.telemetry.state import KeyboardState


class StateSlot:
    """
    Holds the most recent KeyboardState. The producer replaces it with `publish`, consumers read it
    with `latest` whenever they like; states that were overwritten before being read are gone.
    """

    def __init__(self, initial: KeyboardState):
        self._lock = threading.Lock()
        self._state = initial
        self._sequence = 0

    def publish(self, state: KeyboardState) -> None:
        """Replace the current state."""
        with self._lock:
            self._state = state
            self._sequence += 1

    def latest(self) -> KeyboardState:
        """The most recently published state, or the initial state if nothing was published yet."""
        with self._lock:
            return self._state

    def snapshot(self) -> tuple[int, KeyboardState]:
        """The sequence number and state, read together."""
        with self._lock:
            return self._sequence, self._state

    @property
    def sequence(self) -> int:
        """Number of states published so far."""
        with self._lock:
            return self._sequence
