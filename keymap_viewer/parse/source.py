"""
Module containing the front end for keymap.c style sources. The source is never compiled or preprocessed,
only scanned: comments and preprocessor lines are blanked out, then layer constructs are located with
depth-tracked bracket matching, so that nested macro calls inside a key position stay a single token.
"""

import logging
import re
from typing import Iterator

import pyparsing as pp

from keymap_viewer.config import ParseConfig
from keymap_viewer.parse.parse import (
    KeymapIR,
    LayersNotFoundError,
    UnbalancedBracketError,
    check_layer_lengths,
    grid_from_layout_name,
)

logger = logging.getLogger(__name__)

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {")": "(", "]": "[", "}": "{"}


def _blank(text: str) -> str:
    """Replace everything but line breaks with spaces, so that offsets into the text are preserved."""
    return re.sub(r"[^\r\n]", " ", text)


_comment = pp.cpp_style_comment.copy().ignore(pp.quoted_string)
_comment.set_parse_action(lambda toks: _blank(toks[0]))


def _iter_code(text: str, start: int = 0, end: int | None = None) -> Iterator[tuple[int, str]]:
    """Yield `(index, char)` for characters in `text[start:end]` that are not inside string or char literals."""
    end = len(text) if end is None else end
    ind = start
    while ind < end:
        char = text[ind]
        if char in "\"'":
            ind += 1
            while ind < end and text[ind] not in (char, "\n"):
                ind += 2 if text[ind] == "\\" else 1
        else:
            yield ind, char
        ind += 1


def _split_top_level(text: str, flatten_braces: bool = False) -> list[str]:
    """
    Split `text` at commas that are not nested in any brackets and return the stripped, non-empty items.
    With `flatten_braces`, curly braces outside of parentheses delimit items instead of nesting them,
    which flattens row sub-arrays into a single list.
    """
    items, depth, item_start = [], 0, 0
    for ind, char in _iter_code(text):
        if flatten_braces and depth == 0 and char in "{}":
            items.append(text[item_start:ind])
            item_start = ind + 1
        elif char in _OPENERS:
            depth += 1
        elif char in _CLOSERS:
            depth -= 1
        elif char == "," and depth == 0:
            items.append(text[item_start:ind])
            item_start = ind + 1
    items.append(text[item_start:])
    return [stripped for item in items if (stripped := item.strip())]


class SourceKeymapParser:
    """Tolerant parser for keymap.c sources, using layout macro invocations or a bracketed keymaps array."""

    _designator_re = re.compile(r"\[\s*([^\[\]]+?)\s*\]\s*=\s*$")
    _element_re = re.compile(r"\[\s*([^\[\]]+?)\s*\]\s*=\s*(.*)", re.DOTALL)
    _array_decl_re = re.compile(r"(\w+)\s*(?:\[[^\[\]]*\]\s*){2,}=\s*\{")

    def __init__(self, config: ParseConfig | None = None):
        self.cfg = config if config is not None else ParseConfig()
        self._macro_re = re.compile(r"(?<!\w)(" + self.cfg.layout_macro_pattern + r")\s*\(")

    @staticmethod
    def strip_comments(text: str) -> str:
        """Blank out line and block comments, leaving string and char literals untouched."""
        return _comment.transform_string(text)

    @staticmethod
    def strip_preprocessor(text: str) -> str:
        """Blank out preprocessor directive lines, including their backslash continuation lines."""
        out = []
        continued = False
        for line in text.splitlines(keepends=True):
            if continued or line.lstrip().startswith("#"):
                continued = line.rstrip("\r\n").endswith("\\")
                out.append(_blank(line))
            else:
                out.append(line)
        return "".join(out)

    @staticmethod
    def check_balance(cleaned: str, original: str) -> None:
        """Raise UnbalancedBracketError with the UTF-8 byte offset of the first bracket that does not balance."""
        stack: list[tuple[str, int]] = []
        for ind, char in _iter_code(cleaned):
            if char in _OPENERS:
                stack.append((char, ind))
            elif char in _CLOSERS:
                if not stack or stack[-1][0] != _CLOSERS[char]:
                    raise UnbalancedBracketError(f'Unexpected "{char}"', len(original[:ind].encode("utf-8")))
                stack.pop()
        if stack:
            char, ind = stack[-1]
            raise UnbalancedBracketError(f'Unclosed "{char}"', len(original[:ind].encode("utf-8")))

    @staticmethod
    def _find_close(text: str, open_ind: int) -> int:
        depth = 0
        for ind, char in _iter_code(text, open_ind):
            if char in _OPENERS:
                depth += 1
            elif char in _CLOSERS:
                depth -= 1
                if depth == 0:
                    return ind
        raise AssertionError("brackets were checked to be balanced")

    def _layer_name(self, designator: str | None, index: int) -> str:
        if designator is None or designator.isdigit():
            return self.cfg.default_layer_name.format(index=index)
        return designator

    def _from_layout_macros(self, cleaned: str) -> tuple[list[list[str]], list[str | None], str | None]:
        layers: list[list[str]] = []
        designators: list[str | None] = []
        layout = None
        pos = 0
        while m := self._macro_re.search(cleaned, pos):
            open_ind = m.end() - 1
            close_ind = self._find_close(cleaned, open_ind)
            pos = close_ind + 1
            tokens = _split_top_level(cleaned[open_ind + 1 : close_ind])
            if not tokens:
                continue
            if layout is None:
                layout = m.group(1)
            layers.append(tokens)
            designator = self._designator_re.search(cleaned[max(0, m.start() - 128) : m.start()])
            designators.append(designator.group(1) if designator else None)
        logger.debug("found %d layout macro invocations", len(layers))
        return layers, designators, layout

    def _from_array_initializer(self, cleaned: str) -> tuple[list[list[str]], list[str | None]]:
        decls = list(self._array_decl_re.finditer(cleaned))
        if not decls:
            return [], []
        decl = next((m for m in decls if m.group(1) == "keymaps"), decls[0])
        logger.debug('using array initializer of "%s" for layers', decl.group(1))

        open_ind = decl.end() - 1
        close_ind = self._find_close(cleaned, open_ind)
        layers: list[list[str]] = []
        designators: list[str | None] = []
        for element in _split_top_level(cleaned[open_ind + 1 : close_ind]):
            designator = None
            if m := self._element_re.fullmatch(element):
                designator, element = m.group(1), m.group(2).strip()
            if not (element.startswith("{") and element.endswith("}")):
                logger.debug("skipping non-array element in keymaps initializer: %s", element)
                continue
            if tokens := _split_top_level(element[1:-1], flatten_braces=True):
                layers.append(tokens)
                designators.append(designator)
        return layers, designators

    def parse(self, text: str) -> KeymapIR:
        """Scan keymap source text for layer constructs and return them as a KeymapIR."""
        cleaned = self.strip_preprocessor(self.strip_comments(text))
        self.check_balance(cleaned, text)

        layers, designators, layout = self._from_layout_macros(cleaned)
        if not layers:
            layers, designators = self._from_array_initializer(cleaned)
        if not layers:
            raise LayersNotFoundError(
                "No layout macro invocations (e.g. LAYOUT(...)) or keymaps array initializer found in keymap source"
            )
        check_layer_lengths(layers)

        hint = grid_from_layout_name(layout)
        return KeymapIR(
            layout=layout,
            layers=layers,
            layer_names=[self._layer_name(designator, ind) for ind, designator in enumerate(designators)],
            declared_rows=hint[0] if hint else None,
            declared_cols=hint[1] if hint else None,
        )
