"""
Module containing the telemetry producer thread and the byte sources it reads from.
The thread owns all device I/O and hands decoded states to consumers through a StateSlot.
"""

import logging
import threading
import time
from typing import IO, Protocol

from keymap_viewer.config import TelemetryConfig
from keymap_viewer.telemetry.binary import encode_frame
from keymap_viewer.telemetry.bitset import KeyBitset
from keymap_viewer.telemetry.state import IoClosedError, IoTimeoutError, KeyboardState
from keymap_viewer.telemetry.sync import StateSlot

logger = logging.getLogger(__name__)


class ByteSource(Protocol):
    """Source of raw telemetry bytes, raising IoTimeoutError when idle and IoClosedError when disconnected."""

    def read(self, size: int) -> bytes: ...


class ChunkDecoder(Protocol):
    """Decoder turning chunks of telemetry into keyboard states, counting what it had to drop."""

    dropped: int

    def feed(self, chunk: bytes) -> list[KeyboardState]: ...


class StreamSource:
    """
    ByteSource over a binary file-like object, like an opened device node or a `serial.Serial` port
    with a read timeout. An empty read is a timeout, unless `eof_is_closed` is set.
    """

    def __init__(self, stream: IO[bytes], eof_is_closed: bool = False):
        self.stream = stream
        self.eof_is_closed = eof_is_closed

    def read(self, size: int) -> bytes:
        try:
            chunk = self.stream.read(size)
        except (OSError, ValueError) as err:
            raise IoClosedError(f"Telemetry stream failed: {err}") from err
        if not chunk:
            if self.eof_is_closed:
                raise IoClosedError("Telemetry stream reached end of file")
            raise IoTimeoutError("No telemetry data available")
        return chunk


class MockFrameSource:
    """
    ByteSource generating binary frames without a device: a single pressed key walks across the
    keyboard and the active layer advances every `layers_period` frames. After `max_frames` frames,
    if given, the source reports itself closed.
    """

    def __init__(
        self,
        total_keys: int,
        layers: int = 4,
        layers_period: int = 16,
        interval: float = 0.05,
        max_frames: int | None = None,
    ):
        assert total_keys > 0 and layers > 0 and layers_period > 0, "Mock source parameters must be positive"
        self.total_keys = total_keys
        self.layers = layers
        self.layers_period = layers_period
        self.interval = interval
        self.max_frames = max_frames
        self.frames = 0

    def state_for(self, frame: int) -> KeyboardState:
        """State encoded in the frame with the given sequence number."""
        return KeyboardState(
            (frame // self.layers_period) % self.layers,
            KeyBitset.from_indices([frame % self.total_keys], self.total_keys),
        )

    def read(self, size: int) -> bytes:
        if self.max_frames is not None and self.frames >= self.max_frames:
            raise IoClosedError(f"Mock source finished after {self.frames} frames")
        if self.interval > 0:
            time.sleep(self.interval)
        frame = encode_frame(self.state_for(self.frames), self.total_keys)
        self.frames += 1
        return frame


class TelemetryReader(threading.Thread):
    """Daemon thread reading a ByteSource, decoding the chunks and publishing states to a StateSlot."""

    def __init__(
        self,
        source: ByteSource,
        decoder: ChunkDecoder,
        slot: StateSlot,
        config: TelemetryConfig | None = None,
    ):
        super().__init__(name="telemetry-reader", daemon=True)
        self.source = source
        self.decoder = decoder
        self.slot = slot
        self.cfg = config if config is not None else TelemetryConfig()
        self.closed = False
        self._stop_event = threading.Event()

    @property
    def errors(self) -> int:
        """Number of frames or lines the decoder dropped so far."""
        return self.decoder.dropped

    def stop(self) -> None:
        """Ask the thread to exit, it does so after the read in progress returns."""
        self._stop_event.set()

    def run(self):
        logger.debug("telemetry reader started")
        while not self._stop_event.is_set():
            try:
                chunk = self.source.read(self.cfg.read_size)
            except IoTimeoutError:
                self._stop_event.wait(self.cfg.read_timeout)
                continue
            except IoClosedError as err:
                logger.warning("telemetry source closed: %s", err)
                self.closed = True
                break

            for state in self.decoder.feed(chunk):
                self.slot.publish(state)
        logger.debug("telemetry reader stopped, %d states published, %d dropped", self.slot.sequence, self.errors)
