"""
Module containing the common intermediate representation that keymap front ends produce,
the parse error types and helpers shared by the front ends.
Do not use the front ends directly, use `keymap_viewer.loader.load_keymap` instead.
"""

import re
from typing import Protocol

from pydantic import BaseModel, field_validator, model_validator

_whitespace_re = re.compile(r"\s+")
_grid_in_name_re = re.compile(r"(\d+)x(\d+)", re.IGNORECASE)


class ParseError(Exception):
    """Error type for exceptions that happen during keymap parsing."""


class MalformedKeymapError(ParseError):
    """The keymap has an invalid shape, e.g. layers of different lengths."""

    def __init__(self, message: str, layer_index: int | None = None):
        super().__init__(message)
        self.layer_index = layer_index


class LayersNotFoundError(ParseError):
    """No layer construct could be located in the keymap source."""


class UnbalancedBracketError(ParseError):
    """Brackets or parentheses in the keymap source do not balance."""

    def __init__(self, message: str, offset: int):
        super().__init__(f"{message} at byte offset {offset}")
        self.offset = offset


def normalize_token(token: str) -> str:
    """Strip a keycode token and drop insignificant whitespace, keeping whitespace inside quotes."""
    token = token.strip()
    if "'" in token or '"' in token:
        return token
    return _whitespace_re.sub("", token)


def grid_from_layout_name(layout: str | None) -> tuple[int, int] | None:
    """Extract a declared `rows x cols` grid from a layout name like `LAYOUT_ortho_4x12`."""
    if layout is None or not (m := _grid_in_name_re.search(layout)):
        return None
    return int(m.group(1)), int(m.group(2))


def check_layer_lengths(layers: list[list[str]]) -> None:
    """Raise MalformedKeymapError naming the first layer whose length differs from the first layer."""
    if not layers:
        raise MalformedKeymapError("Keymap does not contain any layers")
    expected = len(layers[0])
    for ind, layer in enumerate(layers):
        if len(layer) != expected:
            raise MalformedKeymapError(
                f"Number of keys on layer {ind} ({len(layer)}) does not match layer 0 ({expected})", layer_index=ind
            )


class KeymapIR(BaseModel):
    """Front-end agnostic representation of a parsed keymap: ordered layers of keycode tokens plus metadata."""

    name: str | None = None
    layout: str | None = None
    layers: list[list[str]]
    layer_names: list[str] | None = None
    declared_rows: int | None = None
    declared_cols: int | None = None

    @field_validator("layers")
    @classmethod
    def normalize_layers(cls, val: list[list[str]]) -> list[list[str]]:
        """Normalize every token so that formatting differences between front ends disappear."""
        return [[normalize_token(token) for token in layer] for layer in val]

    @model_validator(mode="after")
    def check_dimensions(self):
        """Validate that there is at least one layer, all layers have the same length, and names match."""
        assert self.layers, "No layers found"
        if len(set(len(layer) for layer in self.layers)) != 1:
            counts = {ind: len(layer) for ind, layer in enumerate(self.layers)}
            raise AssertionError(f"Number of keys differ between layers. Key counts found: {counts}")
        assert self.layer_names is None or len(self.layer_names) == len(self.layers), (
            f"Length of layer name list ({len(self.layer_names or [])}) "
            f"does not match the number of layers ({len(self.layers)})"
        )
        return self

    @property
    def key_count(self) -> int:
        """Number of key positions on each layer."""
        return len(self.layers[0])

    @property
    def hint(self) -> tuple[int, int] | None:
        """Declared rows x cols grid, if the document provided one."""
        if self.declared_rows is None or self.declared_cols is None:
            return None
        return self.declared_rows, self.declared_cols


class KeymapFrontEnd(Protocol):  # pylint: disable=too-few-public-methods
    """Capability shared by the keymap front ends: turn document text into a KeymapIR."""

    def parse(self, text: str) -> KeymapIR:
        """Parse keymap text, raising a ParseError subclass on failure."""
