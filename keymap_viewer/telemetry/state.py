"""Module containing the keyboard state snapshot produced by telemetry decoders, and the decode error types."""

from dataclasses import dataclass

from keymap_viewer.telemetry.bitset import KeyBitset


class DecodeError(Exception):
    """Error type for exceptions that happen while reading or decoding device telemetry."""


class BadLengthError(DecodeError):
    """A binary frame does not have the length expected for the keyboard's key count."""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"Expected a frame of {expected} bytes, got {actual} bytes")
        self.expected = expected
        self.actual = actual


class IoTimeoutError(DecodeError):
    """No data arrived within the read timeout, this is expected while the keyboard is idle."""


class IoClosedError(DecodeError):
    """The device stream was closed or disconnected, the telemetry session is over."""


@dataclass(frozen=True, slots=True)
class KeyboardState:
    """Snapshot of the active layer and the set of pressed key indices. Replaced as a whole, never modified."""

    active_layer: int
    pressed: KeyBitset

    @classmethod
    def initial(cls, total_keys: int) -> "KeyboardState":
        """State on layer 0 with no keys pressed."""
        return cls(0, KeyBitset.empty(total_keys))

    def is_pressed(self, index: int) -> bool:
        """Whether the key with the given index is pressed."""
        return index in self.pressed

    def pressed_positions(self, cols: int) -> list[tuple[int, int]]:
        """Pressed keys as (row, col) positions on a grid with `cols` columns."""
        return [divmod(index, cols) for index in self.pressed]
