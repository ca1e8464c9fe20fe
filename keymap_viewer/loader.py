"""Module that loads a keymap file into a KeyboardModel, dispatching to the right front end."""

import json
import logging
from pathlib import Path
from typing import Literal

from keymap_viewer.config import Config
from keymap_viewer.keyboard import KeyboardModel
from keymap_viewer.layout import infer_layout
from keymap_viewer.parse import KeymapFrontEnd, KeymapIR, SourceKeymapParser, StructuredKeymapParser

logger = logging.getLogger(__name__)

KeymapFormat = Literal["structured", "source"]

STRUCTURED_SUFFIXES = (".json", ".yaml", ".yml")
SOURCE_SUFFIXES = (".c", ".h", ".cc", ".cpp")


def detect_format(text: str, path: Path | None = None) -> KeymapFormat:
    """Guess the keymap format from the file suffix if there is one, otherwise from the content."""
    if path is not None:
        if path.suffix.lower() in STRUCTURED_SUFFIXES:
            return "structured"
        if path.suffix.lower() in SOURCE_SUFFIXES:
            return "source"

    if text.lstrip().startswith(("{", "[")):
        try:
            json.loads(text)
            return "structured"
        except json.JSONDecodeError:
            pass
    return "source"


def get_front_end(fmt: KeymapFormat, config: Config) -> KeymapFrontEnd:
    """Front end instance for the given keymap format."""
    match fmt:
        case "structured":
            return StructuredKeymapParser(config.parse_config)
        case "source":
            return SourceKeymapParser(config.parse_config)
    raise ValueError(f'Unknown keymap format "{fmt}", use "structured" or "source"')


def build_model(ir: KeymapIR, grid: tuple[int, int] | None = None, config: Config | None = None) -> KeyboardModel:
    """Infer the physical grid for a parsed keymap and combine them into a KeyboardModel."""
    config = config if config is not None else Config()
    rows, cols = infer_layout(
        ir.key_count, ir.hint, ir.name or ir.layout, grid=grid, config=config.layout_config
    )
    layer_names = ir.layer_names or [
        config.parse_config.default_layer_name.format(index=ind) for ind in range(len(ir.layers))
    ]
    return KeyboardModel(
        name=ir.name,
        layout=ir.layout,
        rows=rows,
        cols=cols,
        layers=tuple(tuple(layer) for layer in ir.layers),
        layer_names=tuple(layer_names),
    )


def load_keymap(
    source: bytes | str | Path,
    *,
    grid: tuple[int, int] | None = None,
    fmt: KeymapFormat | None = None,
    config: Config | None = None,
) -> KeyboardModel:
    """
    Load a keymap from a path, raw bytes or text and return its KeyboardModel.
    Raises ParseError or LayoutError subclasses describing what went wrong; errors reading a path propagate.
    """
    config = config if config is not None else Config()
    path = None
    if isinstance(source, Path):
        path = source
        source = path.read_bytes()
    text = source.decode("utf-8-sig", errors="replace") if isinstance(source, bytes) else source

    fmt = fmt if fmt is not None else detect_format(text, path)
    logger.debug("loading keymap %s as %s", path if path is not None else "<buffer>", fmt)
    ir = get_front_end(fmt, config).parse(text)
    return build_model(ir, grid, config)
