"""
Load QMK-style keymaps (structured JSON/YAML documents or keymap.c source) into a generic keyboard
model with an inferred physical grid, and decode live telemetry from the keyboard into press/layer
snapshots.
"""

import logging

logging.basicConfig(format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

# pylint: disable=wrong-import-position
from keymap_viewer.keyboard import KeyboardModel
from keymap_viewer.keycodes import KeyCategory, KeyDefinition, lookup
from keymap_viewer.layout import IndeterminateLayoutError, LayoutError, LayoutMismatchError, infer_layout
from keymap_viewer.loader import load_keymap
from keymap_viewer.parse import (
    KeymapIR,
    LayersNotFoundError,
    MalformedKeymapError,
    ParseError,
    UnbalancedBracketError,
)
from keymap_viewer.telemetry import (
    BadLengthError,
    BinaryFrameDecoder,
    ConsoleLineDecoder,
    DecodeError,
    IoClosedError,
    IoTimeoutError,
    KeyBitset,
    KeyboardState,
    StateSlot,
    TelemetryReader,
    feed_binary_frame,
)

__all__ = [
    "logger",
    "KeyboardModel",
    "KeyCategory",
    "KeyDefinition",
    "lookup",
    "LayoutError",
    "IndeterminateLayoutError",
    "LayoutMismatchError",
    "infer_layout",
    "load_keymap",
    "KeymapIR",
    "ParseError",
    "MalformedKeymapError",
    "LayersNotFoundError",
    "UnbalancedBracketError",
    "DecodeError",
    "BadLengthError",
    "IoTimeoutError",
    "IoClosedError",
    "KeyBitset",
    "KeyboardState",
    "BinaryFrameDecoder",
    "ConsoleLineDecoder",
    "StateSlot",
    "TelemetryReader",
    "feed_binary_frame",
]
