"""
Module containing the decoder for fixed-length binary telemetry frames, as sent in raw HID reports:
one byte with the active layer followed by the pressed keys, bit-packed little-endian.
"""

import logging
from typing import Literal

from keymap_viewer.telemetry.bitset import KeyBitset, byte_count
from keymap_viewer.telemetry.state import BadLengthError, KeyboardState

logger = logging.getLogger(__name__)


def frame_length(total_keys: int) -> int:
    """Length of a binary frame for a keyboard with `total_keys` keys."""
    return 1 + byte_count(total_keys)


def feed_binary_frame(frame: bytes, total_keys: int) -> KeyboardState:
    """Decode a single frame into a KeyboardState, raising BadLengthError if the length is off."""
    if len(frame) != (expected := frame_length(total_keys)):
        raise BadLengthError(expected, len(frame))
    return KeyboardState(frame[0], KeyBitset.from_bytes(frame[1:], total_keys))


def encode_frame(state: KeyboardState, total_keys: int) -> bytes:
    """Encode a KeyboardState into a binary frame, the inverse of `feed_binary_frame`."""
    if not 0 <= state.active_layer <= 0xFF:
        raise ValueError(f"Layer {state.active_layer} does not fit in a frame's layer byte")
    if state.pressed.capacity != total_keys:
        raise ValueError(f"State holds {state.pressed.capacity} keys, expected {total_keys}")
    return bytes([state.active_layer]) + state.pressed.to_bytes()


class BinaryFrameDecoder:
    """
    Decoder of binary frames for a keyboard with a fixed number of keys. With `framing="report"` every
    chunk fed is one frame, as with HID reads. With `framing="stream"` chunks are arbitrary pieces of
    a byte stream, like a serial port or a capture file, and frames are cut from it back to back.
    """

    def __init__(self, total_keys: int, framing: Literal["report", "stream"] = "report"):
        if total_keys <= 0:
            raise ValueError(f"Number of keys must be positive, got {total_keys}")
        if framing not in ("report", "stream"):
            raise ValueError(f'Unknown framing "{framing}", use "report" or "stream"')
        self.total_keys = total_keys
        self.framing = framing
        self.dropped = 0
        self._buffer = bytearray()

    @property
    def expected_length(self) -> int:
        """Expected length of every frame, in bytes."""
        return frame_length(self.total_keys)

    def decode(self, frame: bytes) -> KeyboardState:
        """Decode one frame, raising BadLengthError if its length is not `expected_length`."""
        return feed_binary_frame(frame, self.total_keys)

    def feed(self, chunk: bytes) -> list[KeyboardState]:
        """
        Decode the frames completed by a chunk. In report framing a malformed chunk is dropped with a
        warning; in stream framing an incomplete trailing frame is kept until the next call.
        """
        if self.framing == "stream":
            self._buffer += chunk
            length = self.expected_length
            complete = len(self._buffer) - len(self._buffer) % length
            frames = [bytes(self._buffer[ind : ind + length]) for ind in range(0, complete, length)]
            del self._buffer[:complete]
            return [self.decode(frame) for frame in frames]

        try:
            return [self.decode(bytes(chunk))]
        except BadLengthError as err:
            self.dropped += 1
            logger.warning("dropping telemetry frame: %s", err)
            return []
