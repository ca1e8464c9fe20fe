"""
Module containing the decoder for line-oriented console telemetry, where the firmware prints
one report as a `LAYER:<n>` line, any number of `PRESS:<row>,<col>` lines and a closing `END` line.
"""

import codecs
import logging
import re

from keymap_viewer.config import TelemetryConfig
from keymap_viewer.telemetry.bitset import KeyBitset, byte_count
from keymap_viewer.telemetry.state import KeyboardState

logger = logging.getLogger(__name__)


class ConsoleLineDecoder:
    """
    Stateful decoder for console telemetry. Feed it whole lines with `feed_line` or arbitrary chunks
    of the stream with `feed`; a state is produced for each `END` line. The active layer carries
    over to the next report while pressed keys start over.
    """

    _layer_re = re.compile(r"LAYER:\s*(\d+)")
    _press_re = re.compile(r"PRESS:\s*(\d+)\s*,\s*(\d+)")
    _compact_re = re.compile(r"L:(\d+)\s+B:(?:0[xX])?([0-9a-fA-F]+)")

    def __init__(self, rows: int, cols: int, config: TelemetryConfig | None = None):
        if rows <= 0 or cols <= 0:
            raise ValueError(f"Grid dimensions must be positive, got {rows}x{cols}")
        self.rows = rows
        self.cols = cols
        self.cfg = config if config is not None else TelemetryConfig()
        self.dropped = 0

        self._layer = 0
        self._pressed: set[int] = set()
        self._buffer = ""
        self._discarding = False
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")

    @property
    def total_keys(self) -> int:
        """Number of keys on the grid."""
        return self.rows * self.cols

    def _emit(self) -> KeyboardState:
        state = KeyboardState(self._layer, KeyBitset.from_indices(self._pressed, self.total_keys))
        self._pressed = set()
        return state

    def _compact_report(self, layer: int, hex_bits: str) -> KeyboardState:
        bits = int(hex_bits, 16) & ((1 << self.total_keys) - 1)
        self._layer = layer
        self._pressed = set()
        return KeyboardState(
            layer, KeyBitset.from_bytes(bits.to_bytes(byte_count(self.total_keys), "little"), self.total_keys)
        )

    def feed_line(self, line: str) -> KeyboardState | None:
        """Process one line of console output, returning a state if the line completes a report."""
        line = line.strip()
        if m := self._layer_re.fullmatch(line):
            self._layer = int(m.group(1))
            self._pressed = set()
        elif m := self._press_re.fullmatch(line):
            row, col = int(m.group(1)), int(m.group(2))
            if row < self.rows and col < self.cols:
                self._pressed.add(row * self.cols + col)
            else:
                logger.debug("ignoring press at %d,%d outside of the %dx%d grid", row, col, self.rows, self.cols)
        elif line == "END":
            return self._emit()
        elif self.cfg.accept_compact_reports and (m := self._compact_re.search(line)):
            return self._compact_report(int(m.group(1)), m.group(2))
        elif line:
            logger.debug("ignoring console line: %s", line)
        return None

    def feed(self, chunk: bytes | str) -> list[KeyboardState]:
        """
        Process a chunk of console output that can start or end in the middle of a line, the incomplete
        trailing line is kept until the next call. Returns the states completed by this chunk.
        """
        text = self._utf8.decode(chunk) if isinstance(chunk, (bytes, bytearray)) else chunk
        self._buffer += text.replace("\r", "")

        *lines, self._buffer = self._buffer.split("\n")
        if self._discarding:
            if lines:
                # the first line is the tail of the line being discarded
                lines = lines[1:]
                self._discarding = False
            else:
                self._buffer = ""
        if len(self._buffer) > self.cfg.max_line_length:
            self.dropped += 1
            logger.warning(
                "discarding %d characters of console output without a line break", len(self._buffer)
            )
            self._buffer = ""
            self._discarding = True

        return [state for line in lines if (state := self.feed_line(line)) is not None]
