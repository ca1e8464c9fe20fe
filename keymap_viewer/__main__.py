"""
Given a QMK-style keymap (a structured JSON/YAML document or keymap.c source), load it into
a keyboard model with a physical rows x columns grid and print it as YAML, or watch live
telemetry from the keyboard and print the active layer and pressed keys as they change.
"""

import logging
import sys
import time
from argparse import ArgumentParser, ArgumentTypeError, FileType, Namespace
from importlib.metadata import version
from pathlib import Path

import yaml

from keymap_viewer import logger
from keymap_viewer.config import Config
from keymap_viewer.keyboard import KeyboardModel
from keymap_viewer.keycodes import lookup
from keymap_viewer.layout import LayoutError, infer_layout
from keymap_viewer.loader import load_keymap
from keymap_viewer.parse import ParseError
from keymap_viewer.telemetry import (
    BinaryFrameDecoder,
    ConsoleLineDecoder,
    KeyboardState,
    MockFrameSource,
    StateSlot,
    StreamSource,
    TelemetryReader,
)


def grid_spec(value: str) -> tuple[int, int]:
    """Argument type for grids given as ROWSxCOLS, e.g. 4x12."""
    try:
        rows, cols = (int(part) for part in value.lower().split("x"))
    except ValueError as err:
        raise ArgumentTypeError(f'Grid should be given as ROWSxCOLS, e.g. "4x12", got "{value}"') from err
    if rows <= 0 or cols <= 0:
        raise ArgumentTypeError(f'Grid dimensions should be positive, got "{value}"')
    return rows, cols


def parse(args: Namespace, config: Config) -> None:
    """Load the keymap and dump its YAML keyboard model representation to stdout."""
    model = load_keymap(args.keymap, grid=args.grid, fmt=args.format, config=config)
    yaml.safe_dump(model.dump(), args.output, width=160, sort_keys=False, default_flow_style=None, allow_unicode=True)


def infer(args: Namespace, config: Config) -> None:
    """Print the physical grid inferred for a number of keys."""
    rows, cols = infer_layout(args.key_count, args.hint, args.name, config=config.layout_config)
    print(f"{rows}x{cols}", file=args.output)


def _describe(state: KeyboardState, model: KeyboardModel | None, cols: int) -> str:
    if model is None:
        return f"layer {state.active_layer}: {state.pressed_positions(cols)}"

    if state.active_layer < len(model.layers):
        layer, layer_name = state.active_layer, model.layer_names[state.active_layer]
    else:
        layer, layer_name = 0, str(state.active_layer)
    pressed = [
        f"{index // cols},{index % cols}={lookup(model.layers[layer][index]).display_label or '-'}"
        for index in state.pressed
    ]
    return f"layer {layer_name}: {' '.join(pressed) if pressed else '-'}"


def monitor(args: Namespace, config: Config) -> None:
    """Read telemetry from a device (or a mock source) and print every new keyboard state."""
    model = load_keymap(args.keymap, config=config) if args.keymap else None
    if model is not None:
        rows, cols = model.rows, model.cols
    else:
        rows, cols = infer_layout(args.keys, config=config.layout_config)
    total_keys = rows * cols
    logger.debug("monitoring %d keys on a %dx%d grid", total_keys, rows, cols)

    if args.protocol == "console":
        decoder: BinaryFrameDecoder | ConsoleLineDecoder = ConsoleLineDecoder(rows, cols, config.telemetry_config)
    else:
        framing = args.framing or ("report" if args.mock or args.device.name.startswith("hidraw") else "stream")
        decoder = BinaryFrameDecoder(total_keys, framing)
        logger.debug("decoding binary frames with %s framing", framing)

    if args.mock:
        source: MockFrameSource | StreamSource = MockFrameSource(total_keys, layers=len(model.layers) if model else 4)
        stream = None
    else:
        stream = open(args.device, "rb", buffering=0)  # pylint: disable=consider-using-with
        source = StreamSource(stream, eof_is_closed=args.device.is_file())

    slot = StateSlot(KeyboardState.initial(total_keys))
    reader = TelemetryReader(source, decoder, slot, config.telemetry_config)
    reader.start()

    deadline = time.monotonic() + args.duration if args.duration is not None else None
    seen = 0
    try:
        while reader.is_alive() and (deadline is None or time.monotonic() < deadline):
            sequence, state = slot.snapshot()
            if sequence != seen:
                seen = sequence
                print(_describe(state, model, cols), file=args.output, flush=True)
            time.sleep(config.telemetry_config.read_timeout / 2)
    except KeyboardInterrupt:
        pass
    finally:
        reader.stop()
        reader.join(timeout=1.0)
        if stream is not None:
            stream.close()

    sequence, state = slot.snapshot()
    if sequence != seen:
        print(_describe(state, model, cols), file=args.output, flush=True)
    if reader.errors:
        logger.warning("dropped %d malformed telemetry reports", reader.errors)


def dump_config(args: Namespace, config: Config) -> None:
    """Dump the currently active config, either default or parsed from args."""
    yaml.safe_dump(config.model_dump(), args.output, sort_keys=False, allow_unicode=True)


def main() -> None:
    """Parse the arguments and the configuration, then run the selected command."""
    parser = ArgumentParser(description=__doc__)
    parser.add_argument("-v", "--version", action="version", version=version("keymap-viewer"))
    parser.add_argument("-d", "--debug", action="store_true")
    parser.add_argument(
        "-c",
        "--config",
        help="A YAML file containing settings for parsing, layout inference and telemetry, "
        "default can be dumped using `dump-config` command and to be modified",
        type=FileType("rt", encoding="utf-8"),
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    parse_p = subparsers.add_parser("parse", help="load a keymap and dump its keyboard model as YAML to stdout")
    parse_p.add_argument(
        "keymap", help="Path to a QMK keymap.json (or YAML equivalent) or a keymap.c source file", type=Path
    )
    parse_p.add_argument(
        "-g", "--grid", help="Physical grid to use instead of inferring it, as ROWSxCOLS", type=grid_spec
    )
    parse_p.add_argument(
        "-f",
        "--format",
        help="Format of the keymap file, detected from the file name or content if not specified",
        choices=["structured", "source"],
    )
    parse_p.add_argument(
        "-o",
        "--output",
        help="Output to path instead of stdout",
        type=FileType("wt", encoding="utf-8"),
        default=sys.stdout,
    )

    infer_p = subparsers.add_parser("infer", help="print the physical grid inferred for a number of keys")
    infer_p.add_argument("key_count", help="Number of keys on the keyboard", type=int)
    infer_p.add_argument("--hint", help="Grid declared for the keyboard, used if it fits", type=grid_spec)
    infer_p.add_argument("-n", "--name", help="Keyboard or layout macro name to look up among known keyboards")
    infer_p.add_argument(
        "-o",
        "--output",
        help="Output to path instead of stdout",
        type=FileType("wt", encoding="utf-8"),
        default=sys.stdout,
    )

    monitor_p = subparsers.add_parser(
        "monitor", help="read live telemetry from the keyboard and print the active layer and pressed keys"
    )
    device_srcs = monitor_p.add_mutually_exclusive_group(required=True)
    device_srcs.add_argument(
        "device",
        help="Path to the device node (e.g. /dev/hidraw3 or /dev/ttyACM0) or a capture file",
        nargs="?",
        type=Path,
    )
    device_srcs.add_argument(
        "--mock", help="Use a generated stream of binary frames instead of a device", action="store_true"
    )
    size_srcs = monitor_p.add_mutually_exclusive_group(required=True)
    size_srcs.add_argument("-n", "--keys", help="Number of keys on the keyboard, the grid is inferred", type=int)
    size_srcs.add_argument(
        "-k", "--keymap", help="Keymap file to take the grid from and to label pressed keys with", type=Path
    )
    monitor_p.add_argument(
        "-p",
        "--protocol",
        help="Telemetry format, fixed-length binary frames or console lines (default: binary)",
        choices=["binary", "console"],
        default="binary",
    )
    monitor_p.add_argument(
        "--framing",
        help="How binary frames arrive, one per read (HID reports) or back to back in a byte stream "
        "(serial ports, capture files). Default: report for hidraw devices and --mock, stream otherwise",
        choices=["report", "stream"],
    )
    monitor_p.add_argument(
        "-t", "--duration", help="Stop after this many seconds, run until Ctrl-C if not set", type=float
    )
    monitor_p.add_argument(
        "-o",
        "--output",
        help="Output to path instead of stdout",
        type=FileType("wt", encoding="utf-8"),
        default=sys.stdout,
    )

    dump_p = subparsers.add_parser(
        "dump-config", help="dump default config to stdout that can be passed to -c/--config option"
    )
    dump_p.add_argument(
        "-o",
        "--output",
        help="Output to path instead of stdout",
        type=FileType("wt", encoding="utf-8"),
        default=sys.stdout,
    )

    args = parser.parse_args()

    if args.debug:
        logger.setLevel(logging.DEBUG)

    if args.command == "monitor" and args.mock and args.protocol == "console":
        parser.error("--mock generates binary frames, it cannot be combined with --protocol console")

    config = Config.model_validate(yaml.safe_load(args.config)) if args.config else Config()

    try:
        match args.command:
            case "parse":
                parse(args, config)
            case "infer":
                infer(args, config)
            case "monitor":
                monitor(args, config)
            case "dump-config":
                dump_config(args, config)
    except (ParseError, LayoutError) as err:
        logger.error("%s", err)
        sys.exit(1)


if __name__ == "__main__":
    main()
