"""
Module with the keyboard model handed to renderers: the layers of a keymap
paired with the physical rows x columns grid they are laid out on.
"""

from pydantic import BaseModel, model_validator

from keymap_viewer.keycodes import KeyDefinition, lookup


class KeyboardModel(BaseModel, frozen=True):
    """Immutable combination of keymap layers, their names and the grid the keys are arranged in."""

    name: str | None = None
    layout: str | None = None
    rows: int
    cols: int
    layers: tuple[tuple[str, ...], ...]
    layer_names: tuple[str, ...]

    @model_validator(mode="after")
    def check_dimensions(self):
        """Validate that the grid holds exactly the keys on every layer and there is a name for each layer."""
        assert self.rows > 0 and self.cols > 0, f"Grid dimensions must be positive, got {self.rows}x{self.cols}"
        assert self.layers, "No layers found"
        for ind, layer in enumerate(self.layers):
            assert len(layer) == self.rows * self.cols, (
                f"Number of keys on layer {ind} ({len(layer)}) does not match the "
                f"{self.rows}x{self.cols} grid ({self.rows * self.cols})"
            )
        assert len(self.layer_names) == len(
            self.layers
        ), f"Got {len(self.layer_names)} layer names for {len(self.layers)} layers"
        return self

    @property
    def key_count(self) -> int:
        """Number of keys on each layer."""
        return self.rows * self.cols

    def index_for(self, row: int, col: int) -> int | None:
        """Key index for a grid position, or None if the position is outside of the grid."""
        if 0 <= row < self.rows and 0 <= col < self.cols:
            return row * self.cols + col
        return None

    def position_of(self, index: int) -> tuple[int, int]:
        """Grid position (row, col) of a key index."""
        if not 0 <= index < self.key_count:
            raise IndexError(f"Key index {index} is outside of the {self.rows}x{self.cols} grid")
        return divmod(index, self.cols)

    def token_at(self, layer: int, row: int, col: int) -> str | None:
        """Raw keycode token at a grid position of a layer, None for positions outside of the keymap."""
        if (index := self.index_for(row, col)) is None or not 0 <= layer < len(self.layers):
            return None
        return self.layers[layer][index]

    def definition_at(self, layer: int, row: int, col: int) -> KeyDefinition | None:
        """Display definition for the key at a grid position of a layer."""
        if (token := self.token_at(layer, row, col)) is None:
            return None
        return lookup(token)

    def legend_grid(self, layer: int) -> list[list[str]]:
        """Display labels of a layer, as a list of rows."""
        labels = [lookup(token).display_label for token in self.layers[layer]]
        return [labels[i : i + self.cols] for i in range(0, len(labels), self.cols)]

    def dump(self) -> dict:
        """Returns a dict-valued dump of the model, with layers keyed by name and split into rows."""
        dump: dict = {k: v for k, v in (("keyboard", self.name), ("layout", self.layout)) if v is not None}
        dump |= {"rows": self.rows, "cols": self.cols}
        dump["layers"] = {
            name: [list(layer[i : i + self.cols]) for i in range(0, len(layer), self.cols)]
            for name, layer in zip(self.layer_names, self.layers)
        }
        return dump
