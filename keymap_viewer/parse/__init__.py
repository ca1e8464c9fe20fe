"""Submodule containing keymap parsing functionality, for structured keymap documents and keymap.c sources."""

from .parse import (
    KeymapFrontEnd,
    KeymapIR,
    LayersNotFoundError,
    MalformedKeymapError,
    ParseError,
    UnbalancedBracketError,
)
from .source import SourceKeymapParser
from .structured import StructuredKeymapParser

__all__ = [
    "KeymapFrontEnd",
    "KeymapIR",
    "LayersNotFoundError",
    "MalformedKeymapError",
    "ParseError",
    "UnbalancedBracketError",
    "SourceKeymapParser",
    "StructuredKeymapParser",
]
