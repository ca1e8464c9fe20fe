"""Module containing the front end for structured keymap documents, like QMK Configurator exports."""

import json
import logging
from typing import Any

import yaml
from pydantic import BaseModel, ValidationError

from keymap_viewer.config import ParseConfig
from keymap_viewer.parse.parse import (
    KeymapIR,
    MalformedKeymapError,
    check_layer_lengths,
    grid_from_layout_name,
)

logger = logging.getLogger(__name__)


class StructuredKeymap(BaseModel, coerce_numbers_to_str=True, extra="ignore"):
    """Schema of a structured keymap document. Other QMK fields like `version` or `author` are ignored."""

    keyboard: str | None = None
    layout: str | None = None
    layers: list[list[str]]
    layer_names: list[str] | None = None
    rows: int | None = None
    cols: int | None = None


class StructuredKeymapParser:
    """Parser for JSON (or YAML) keymap documents, like Configurator exports or `qmk c2json` outputs."""

    def __init__(self, config: ParseConfig | None = None):
        self.cfg = config if config is not None else ParseConfig()

    def _load(self, text: str) -> Any:
        try:
            return json.loads(text)
        except json.JSONDecodeError as json_err:
            if not self.cfg.allow_yaml:
                raise MalformedKeymapError(f"Keymap document is not valid JSON: {json_err}") from json_err
            logger.debug("keymap document is not JSON (%s), trying YAML", json_err)
            try:
                return yaml.safe_load(text)
            except yaml.YAMLError as yaml_err:
                raise MalformedKeymapError(f"Keymap document is neither JSON nor YAML: {yaml_err}") from yaml_err

    def parse(self, text: str) -> KeymapIR:
        """Parse the document text into a KeymapIR, validating that all layers have the same length."""
        raw = self._load(text)
        if not isinstance(raw, dict):
            raise MalformedKeymapError(f"Keymap document must be a mapping, got {type(raw).__name__}")
        if "layers" not in raw:
            raise MalformedKeymapError('Keymap document needs to specify layers via the "layers" field')

        try:
            doc = StructuredKeymap.model_validate(raw)
        except ValidationError as err:
            raise MalformedKeymapError(f"Invalid keymap document: {err}") from err

        check_layer_lengths(doc.layers)

        layer_names = doc.layer_names
        if layer_names is not None and len(layer_names) != len(doc.layers):
            logger.warning(
                "ignoring layer_names, its length (%d) does not match the number of layers (%d)",
                len(layer_names),
                len(doc.layers),
            )
            layer_names = None
        if layer_names is None:
            layer_names = [self.cfg.default_layer_name.format(index=ind) for ind in range(len(doc.layers))]

        rows, cols = doc.rows, doc.cols
        if (rows is None or cols is None) and (from_name := grid_from_layout_name(doc.layout)) is not None:
            rows, cols = from_name
        logger.debug(
            "parsed structured keymap for keyboard %s, layout %s: %d layers, declared grid %sx%s",
            doc.keyboard,
            doc.layout,
            len(doc.layers),
            rows,
            cols,
        )

        return KeymapIR(
            name=doc.keyboard,
            layout=doc.layout,
            layers=doc.layers,
            layer_names=layer_names,
            declared_rows=rows,
            declared_cols=cols,
        )
