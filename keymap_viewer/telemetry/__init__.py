"""Decoding of live keyboard telemetry into keyboard states, and their handoff to a consumer thread."""

from keymap_viewer.telemetry.binary import BinaryFrameDecoder, encode_frame, feed_binary_frame
from keymap_viewer.telemetry.bitset import KeyBitset
from keymap_viewer.telemetry.console import ConsoleLineDecoder
from keymap_viewer.telemetry.reader import MockFrameSource, StreamSource, TelemetryReader
from keymap_viewer.telemetry.state import (
    BadLengthError,
    DecodeError,
    IoClosedError,
    IoTimeoutError,
    KeyboardState,
)
from keymap_viewer.telemetry.sync import StateSlot

__all__ = [
    "BadLengthError",
    "BinaryFrameDecoder",
    "ConsoleLineDecoder",
    "DecodeError",
    "IoClosedError",
    "IoTimeoutError",
    "KeyBitset",
    "KeyboardState",
    "MockFrameSource",
    "StateSlot",
    "StreamSource",
    "TelemetryReader",
    "encode_frame",
    "feed_binary_frame",
]
