"""
Module containing the inference of a physical rows x columns grid for a keymap,
given only its number of keys and optional hints: an explicit grid, a grid declared
in the keymap document or the name of a known keyboard.
"""

import logging
from functools import cache
from math import isqrt
from pathlib import Path

import yaml

from keymap_viewer.config import LayoutConfig

logger = logging.getLogger(__name__)

KNOWN_KEYBOARDS_PATH = Path(__file__).parent / "resources" / "known_keyboards.yaml"


class LayoutError(Exception):
    """Error type for failures to determine a physical grid for a keymap."""


class IndeterminateLayoutError(LayoutError):
    """No acceptable rows x columns grid could be found for the key count."""

    def __init__(self, key_count: int):
        super().__init__(
            f"Cannot infer a physical grid for {key_count} keys, please specify rows and columns explicitly"
        )
        self.key_count = key_count


class LayoutMismatchError(LayoutError):
    """An explicitly requested grid does not hold the number of keys in the keymap."""

    def __init__(self, grid: tuple[int, int], key_count: int):
        super().__init__(
            f"Requested grid {grid[0]}x{grid[1]} holds {grid[0] * grid[1]} keys but the keymap has {key_count} keys"
        )
        self.grid = grid
        self.key_count = key_count


@cache
def _get_known_keyboards() -> dict[str, tuple[int, int]]:
    with open(KNOWN_KEYBOARDS_PATH, "rb") as f:
        return {name.lower(): (rows, cols) for name, (rows, cols) in yaml.safe_load(f).items()}


def known_grid(name: str) -> tuple[int, int] | None:
    """Look up the grid of a known keyboard or layout macro name, also matching prefix entries ending with "/"."""
    known = _get_known_keyboards()
    name = name.strip().lower()
    if (grid := known.get(name)) is not None:
        return grid

    for prefix, grid in known.items():
        if prefix.endswith("/") and name.startswith(prefix):
            return grid

    return None


def divisor_pairs(key_count: int) -> list[tuple[int, int]]:
    """All (rows, cols) pairs with rows <= cols that multiply to `key_count`, with rows in decreasing order."""
    if key_count <= 0:
        return []
    return [(rows, key_count // rows) for rows in range(isqrt(key_count), 0, -1) if key_count % rows == 0]


def infer_layout(
    key_count: int,
    hint: tuple[int, int] | None = None,
    name: str | None = None,
    *,
    grid: tuple[int, int] | None = None,
    config: LayoutConfig | None = None,
) -> tuple[int, int]:
    """
    Infer a (rows, cols) grid for `key_count` keys. In order of precedence:
    - `grid` is an explicit request by the caller and must hold exactly `key_count` keys,
    - `hint` is a grid declared by the keymap document and is used only if it fits,
    - `name` is looked up in the table of known keyboards and used if the grid fits,
    - otherwise the divisor pair closest to square whose columns/rows ratio is within the
      configured aspect range is picked,
    - failing that, the divisor pair closest to square with columns/rows up to `fallback_max_aspect`.

    Raises LayoutMismatchError for a misfitting `grid` and IndeterminateLayoutError if nothing fits.
    """
    cfg = config if config is not None else LayoutConfig()

    if grid is not None:
        if grid[0] * grid[1] != key_count or min(grid) <= 0:
            raise LayoutMismatchError(grid, key_count)
        return grid

    if hint is not None:
        if hint[0] * hint[1] == key_count and min(hint) > 0:
            logger.debug("using declared grid %dx%d", *hint)
            return hint
        logger.warning(
            "ignoring declared grid %dx%d since it does not match the number of keys (%d)", *hint, key_count
        )

    if name is not None and cfg.use_known_keyboards:
        if (known := known_grid(name)) is not None and known[0] * known[1] == key_count:
            logger.debug('using known grid %dx%d for "%s"', *known, name)
            return known

    for rows, cols in divisor_pairs(key_count):
        if cfg.min_aspect <= cols / rows <= cfg.max_aspect:
            logger.debug("inferred grid %dx%d for %d keys", rows, cols, key_count)
            return rows, cols

    for rows, cols in divisor_pairs(key_count):
        if cols / rows <= cfg.fallback_max_aspect:
            logger.debug("inferred near-square grid %dx%d for %d keys", rows, cols, key_count)
            return rows, cols

    raise IndeterminateLayoutError(key_count)
