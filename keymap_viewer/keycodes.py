"""
Module containing the keycode registry, which maps QMK-style keycode tokens as they appear in keymaps
to display definitions: a legend, an optional secondary (hold) legend and a key category.

The registry is a static mapping built once at import time. Lookups never fail: tokens that are not
recognized are returned as `CUSTOM` definitions whose legend is the raw token.
"""

import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache


class KeyCategory(Enum):
    """Closed set of key categories, used by renderers to pick key styling."""

    ALPHA = "alpha"  # letters, digits, punctuation, navigation and editing keys
    MODIFIER = "modifier"  # modifiers, mod-taps, one-shot mods and modifier-wrapped keys
    LAYER_ACTION = "layer_action"  # momentary/toggle/one-shot/tap layer keys
    MEDIA = "media"  # consumer, system, lighting and mouse keys
    CUSTOM = "custom"  # anything not in the registry, e.g. user-defined keycodes


@dataclass(frozen=True, slots=True)
class KeyDefinition:
    """Display definition of a keycode token."""

    display_label: str
    category: KeyCategory
    hold_label: str = ""
    transparent: bool = False


_TRANSPARENT = ("TRNS", "TRANSPARENT", "_______", "NO", "XXXXXXX")

_ALPHA_LABELS: dict[str, str] = {
    **{chr(c): chr(c).lower() for c in range(ord("A"), ord("Z") + 1)},
    **{str(d): str(d) for d in range(10)},
    **{f"F{n}": f"F{n}" for n in range(1, 25)},
    # punctuation
    "MINUS": "-",
    "MINS": "-",
    "EQUAL": "=",
    "EQL": "=",
    "LEFT_BRACKET": "[",
    "LBRC": "[",
    "RIGHT_BRACKET": "]",
    "RBRC": "]",
    "BACKSLASH": "\\",
    "BSLS": "\\",
    "NONUS_HASH": "#",
    "NUHS": "#",
    "SEMICOLON": ";",
    "SCLN": ";",
    "QUOTE": "'",
    "QUOT": "'",
    "GRAVE": "`",
    "GRV": "`",
    "COMMA": ",",
    "COMM": ",",
    "DOT": ".",
    "SLASH": "/",
    "SLSH": "/",
    "TILDE": "~",
    "TILD": "~",
    "EXCLAIM": "!",
    "EXLM": "!",
    "AT": "@",
    "HASH": "#",
    "DOLLAR": "$",
    "DLR": "$",
    "PERCENT": "%",
    "PERC": "%",
    "CIRCUMFLEX": "^",
    "CIRC": "^",
    "AMPERSAND": "&",
    "AMPR": "&",
    "ASTERISK": "*",
    "ASTR": "*",
    "LEFT_PAREN": "(",
    "LPRN": "(",
    "RIGHT_PAREN": ")",
    "RPRN": ")",
    "UNDERSCORE": "_",
    "UNDS": "_",
    "PLUS": "+",
    "LEFT_CURLY_BRACE": "{",
    "LCBR": "{",
    "RIGHT_CURLY_BRACE": "}",
    "RCBR": "}",
    "PIPE": "|",
    "COLON": ":",
    "COLN": ":",
    "DOUBLE_QUOTE": '"',
    "DQUO": '"',
    "DQT": '"',
    "LEFT_ANGLE_BRACKET": "<",
    "LABK": "<",
    "LT": "<",
    "RIGHT_ANGLE_BRACKET": ">",
    "RABK": ">",
    "GT": ">",
    "QUESTION": "?",
    "QUES": "?",
    # navigation and editing
    "ENTER": "Enter",
    "ENT": "Enter",
    "ESCAPE": "Esc",
    "ESC": "Esc",
    "BACKSPACE": "Bksp",
    "BSPC": "Bksp",
    "TAB": "Tab",
    "SPACE": "Space",
    "SPC": "Space",
    "DELETE": "Del",
    "DEL": "Del",
    "INSERT": "Ins",
    "INS": "Ins",
    "LEFT": "Left",
    "RIGHT": "Right",
    "RGHT": "Right",
    "UP": "Up",
    "DOWN": "Down",
    "HOME": "Home",
    "END": "End",
    "PAGE_UP": "PgUp",
    "PGUP": "PgUp",
    "PG_U": "PgUp",
    "PAGE_DOWN": "PgDn",
    "PGDN": "PgDn",
    "PG_D": "PgDn",
    "PRINT_SCREEN": "PrtSc",
    "PSCR": "PrtSc",
    "APPLICATION": "Menu",
    "APP": "Menu",
    "NAV_LCK": "NAV",
    "SW_GRV": "`",
    "SW_TAB": "Tab",
    "UNDO": "↺",
    "REDO": "↻",
    "AGAIN": "↻",
    "COPY": "⎘",
    "CUT": "✂",
    "PSTE": "📋",
    "PASTE": "📋",
    "SAVE": "💾",
    "LAQT": "«",
    "RAQT": "»",
    "SUP2": "²",
    # keypad
    **{f"KP_{d}": str(d) for d in range(10)},
    "KP_DOT": ".",
    "KP_POINT": ".",
    "KP_PERIOD": ".",
    "PDOT": ".",
    "KP_COMMA": ",",
    "PCMM": ",",
    "KP_PLUS": "+",
    "PPLS": "+",
    "KP_MINUS": "-",
    "KP_SUBTRACT": "-",
    "PMNS": "-",
    "KP_ASTERISK": "*",
    "KP_MULTIPLY": "*",
    "PAST": "*",
    "KP_SLASH": "/",
    "KP_DIVIDE": "/",
    "PSLS": "/",
    "KP_ENTER": "Enter",
    "PENT": "Enter",
    "KP_EQUAL": "=",
    "KP_EQUAL_AS400": "=",
    "PEQL": "=",
    "NUM_LOCK": "Num",
    "NUMLOCK": "Num",
    "NUM": "Num",
    "LOCKING_NUM": "Num",
}

# French accent keycodes, both with the KF_ prefix and bare as they appear in some keymaps
_FRENCH_LABELS: dict[str, str] = {
    "EGRV": "è",
    "EACU": "é",
    "ECRC": "ê",
    "AGRV": "à",
    "UGRV": "ù",
    "UCRC": "û",
    "ICRC": "î",
    "ACRC": "â",
    "OCRC": "ô",
    "CCED": "ç",
    "DIAE": "¨",
    "AE": "æ",
    "OE": "œ",
    "LDQT": "“",
    "RDQT": "”",
    "MDOT": "·",
    "BDOT": "•",
    "DEG": "°",
    "EURO": "€",
    "IQES": "¿",
    "LARW": "Left",
    "RARW": "Right",
    "MICR": "μ",
    "PSMS": "±",
    "CROS": "×",
}

_MODIFIER_LABELS: dict[str, str] = {
    "LSFT": "Shift",
    "RSFT": "Shift",
    "SFT": "Shift",
    "SHIFT": "Shift",
    "LEFT_SHIFT": "Shift",
    "RIGHT_SHIFT": "Shift",
    "LCTL": "Ctrl",
    "RCTL": "Ctrl",
    "CTL": "Ctrl",
    "CTRL": "Ctrl",
    "LCTRL": "Ctrl",
    "RCTRL": "Ctrl",
    "LEFT_CTRL": "Ctrl",
    "RIGHT_CTRL": "Ctrl",
    "LALT": "Alt",
    "RALT": "Alt",
    "ALT": "Alt",
    "LOPT": "Alt",
    "ROPT": "Alt",
    "LEFT_ALT": "Alt",
    "RIGHT_ALT": "Alt",
    "ALGR": "AltGr",
    "LGUI": "gui",
    "RGUI": "gui",
    "GUI": "gui",
    "CMD": "gui",
    "WIN": "gui",
    "LCMD": "gui",
    "RCMD": "gui",
    "LWIN": "gui",
    "RWIN": "gui",
    "LEFT_GUI": "gui",
    "RIGHT_GUI": "gui",
    "CAPS": "Caps",
    "CAPSLOCK": "Caps",
    "CAPS_LOCK": "Caps",
    "CW_TOGG": "Caps",
    "MEH": "Meh",
    "HYPR": "Hyper",
    "ALL": "Hyper",
}

_ONE_SHOT_LABELS: dict[str, str] = {
    "OS_LSFT": "Shift",
    "OS_RSFT": "Shift",
    "OS_LCTL": "Ctrl",
    "OS_RCTL": "Ctrl",
    "OS_LALT": "Alt",
    "OS_RALT": "Alt",
    "OS_LGUI": "gui",
    "OS_RGUI": "gui",
}

_MEDIA_LABELS: dict[str, str] = {
    "AUDIO_MUTE": "Mute",
    "MUTE": "Mute",
    "AUDIO_VOL_UP": "Vol+",
    "VOLU": "Vol+",
    "AUDIO_VOL_DOWN": "Vol-",
    "VOLD": "Vol-",
    "MEDIA_PLAY_PAUSE": "Play",
    "MPLY": "Play",
    "MEDIA_NEXT_TRACK": "Next",
    "MNXT": "Next",
    "MEDIA_PREV_TRACK": "Prev",
    "MPRV": "Prev",
    "MEDIA_STOP": "Stop",
    "MSTP": "Stop",
    "BRIGHTNESS_UP": "Bri+",
    "BRIU": "Bri+",
    "BRIGHTNESS_DOWN": "Bri-",
    "BRID": "Bri-",
    "MS_UP": "Mouse Up",
    "MS_U": "Mouse Up",
    "MS_DOWN": "Mouse Down",
    "MS_D": "Mouse Down",
    "MS_LEFT": "Mouse Left",
    "MS_L": "Mouse Left",
    "MS_RIGHT": "Mouse Right",
    "MS_R": "Mouse Right",
    "MS_BTN1": "Click 1",
    "BTN1": "Click 1",
    "MS_BTN2": "Click 2",
    "BTN2": "Click 2",
    "MS_BTN3": "Click 3",
    "BTN3": "Click 3",
    "MS_WH_UP": "Wheel Up",
    "WH_U": "Wheel Up",
    "MS_WH_DOWN": "Wheel Down",
    "WH_D": "Wheel Down",
    "RGB_TOG": "RGB",
    "UG_TOGG": "RGB",
    "RGB_MOD": "RGB Mode",
    "UG_NEXT": "RGB Mode",
    "RGB_HUI": "Hue+",
    "RGB_HUD": "Hue-",
    "RGB_SAI": "Sat+",
    "RGB_SAD": "Sat-",
    "RGB_VAI": "Bri+",
    "RGB_VAD": "Bri-",
    "BL_TOGG": "BL",
    "BL_UP": "BL+",
    "BL_DOWN": "BL-",
    "QK_BOOT": "Boot",
    "RESET": "Boot",
    "QK_RBT": "Reboot",
    "EE_CLR": "Clear EEPROM",
    "SYSTEM_SLEEP": "Sleep",
    "SLEP": "Sleep",
    "PWR": "Power",
}

# modifier function names that wrap a keycode, e.g. LCTL(KC_C) or HYPR(KC_F1)
_MODIFIER_FN_LABELS: dict[str, list[str]] = {
    "LCTL": ["Ctrl"],
    "C": ["Ctrl"],
    "LSFT": ["Shift"],
    "S": ["Shift"],
    "LALT": ["Alt"],
    "A": ["Alt"],
    "LOPT": ["Alt"],
    "LGUI": ["gui"],
    "G": ["gui"],
    "LCMD": ["gui"],
    "LWIN": ["gui"],
    "RCTL": ["Ctrl"],
    "RSFT": ["Shift"],
    "RALT": ["Alt"],
    "ROPT": ["Alt"],
    "ALGR": ["AltGr"],
    "RGUI": ["gui"],
    "RCMD": ["gui"],
    "RWIN": ["gui"],
    "LSG": ["Shift", "gui"],
    "SGUI": ["Shift", "gui"],
    "SCMD": ["Shift", "gui"],
    "SWIN": ["Shift", "gui"],
    "LAG": ["Alt", "gui"],
    "RSG": ["Shift", "gui"],
    "RAG": ["Alt", "gui"],
    "LCA": ["Ctrl", "Alt"],
    "LSA": ["Shift", "Alt"],
    "RSA": ["Shift", "Alt"],
    "SAGR": ["Shift", "AltGr"],
    "RCS": ["Ctrl", "Shift"],
    "LCAG": ["Ctrl", "Alt", "gui"],
    "MEH": ["Meh"],
    "HYPR": ["Hyper"],
}

_LAYER_NAMES: dict[str, str] = {
    "DEF": "Base",
    "BASE": "Base",
    "DEF2": "Base 2",
    "SPC": "Space",
    "SYM": "Symbols",
    "SYM_SFT": "Symbols Shift",
    "NAV": "Nav",
    "NAV_ALT": "Nav Alt",
    "NAV_GUI": "Nav gui",
    "NAV_CTL": "Nav Ctrl",
    "NUM": "Num",
    "MOS": "Mouse",
}

STICKY_LABEL = "sticky"
TOGGLE_LABEL = "toggle"
TAP_TOGGLE_LABEL = "tap-toggle"
MOMENTARY_LABEL = "MO"

_mo_re = re.compile(r"MO\(([^(),]+)\)", re.IGNORECASE)
_tog_re = re.compile(r"(TG|TO|DF)\(([^(),]+)\)", re.IGNORECASE)
_tt_re = re.compile(r"TT\(([^(),]+)\)", re.IGNORECASE)
_osl_re = re.compile(r"OSL\(([^(),]+)\)", re.IGNORECASE)
_lt_re = re.compile(r"LT\(([^(),]+),(.+)\)", re.IGNORECASE)
_mtl_re = re.compile(r"MT\(([^,]+),(.+)\)", re.IGNORECASE)
_mts_re = re.compile(r"([A-Z_]+)_T\((.+)\)", re.IGNORECASE)
_osm_re = re.compile(r"OSM\((.+)\)", re.IGNORECASE)
_modifier_fn_re = re.compile(
    "(" + "|".join(re.escape(mod) for mod in _MODIFIER_FN_LABELS) + r")\((.+)\)", re.IGNORECASE
)
_keypad_digit_re = re.compile(r"P(\d)")


def _build_registry() -> dict[str, KeyDefinition]:
    registry: dict[str, KeyDefinition] = {}
    for name, label in (_ALPHA_LABELS | _FRENCH_LABELS | {f"KF_{k}": v for k, v in _FRENCH_LABELS.items()}).items():
        registry[name] = KeyDefinition(label, KeyCategory.ALPHA)
    for name, label in _MODIFIER_LABELS.items():
        registry[name] = KeyDefinition(label, KeyCategory.MODIFIER)
    for name, label in _ONE_SHOT_LABELS.items():
        registry[name] = KeyDefinition(label, KeyCategory.MODIFIER, hold_label=STICKY_LABEL)
    for name, label in _MEDIA_LABELS.items():
        registry[name] = KeyDefinition(label, KeyCategory.MEDIA)
    for name in _TRANSPARENT:
        registry[name] = KeyDefinition("", KeyCategory.ALPHA, transparent=True)
    return registry


_REGISTRY = _build_registry()


def canonical_name(token: str) -> str:
    """Normalize a keycode token to the canonical uppercase form used as registry key."""
    name = token.strip().replace(" ", "").upper()
    name = name.removeprefix("KC_")
    if name.startswith("KP") and (rest := name[2:].lstrip("_")):
        return f"KP_{rest}"
    if m := _keypad_digit_re.fullmatch(name):
        return f"KP_{m.group(1)}"
    return name


def layer_display_name(token: str) -> str:
    """Friendly display name for a layer argument of a layer keycode, e.g. `_NAV` -> `Nav`."""
    stripped = token.strip().lstrip("_")
    return _LAYER_NAMES.get(stripped.upper(), stripped)


def modifier_label(token: str) -> str:
    """Display form of a modifier argument, e.g. `MOD_LSFT` -> `Shift`, `MOD_LCTL|MOD_LALT` -> `Ctrl+Alt`."""
    parts = []
    for part in token.split("|"):
        name = part.strip().upper().removeprefix("MOD_MASK_").removeprefix("MOD_").removeprefix("KC_")
        if name in _MODIFIER_LABELS:
            parts.append(_MODIFIER_LABELS[name])
        else:
            parts.append(lookup(part).display_label)
    return "+".join(parts)


def _strip_modifier_fns(token: str, mods: list[str]) -> tuple[str, list[str]]:
    if not (m := _modifier_fn_re.fullmatch(token)):
        return token, mods
    return _strip_modifier_fns(m.group(2), mods + _MODIFIER_FN_LABELS[m.group(1).upper()])


@lru_cache(maxsize=4096)
def lookup(token: str) -> KeyDefinition:  # pylint: disable=too-many-return-statements
    """
    Return the display definition for a keycode token. Lookups are case-insensitive and never fail,
    unknown tokens result in a `CUSTOM` definition labelled with the raw token.
    """
    raw = token.strip()
    compact = re.sub(r"\s+", "", raw)

    if (found := _REGISTRY.get(canonical_name(compact))) is not None:
        return found

    if m := _mo_re.fullmatch(compact):
        return KeyDefinition(layer_display_name(m.group(1)), KeyCategory.LAYER_ACTION, hold_label=MOMENTARY_LABEL)
    if m := _tog_re.fullmatch(compact):
        return KeyDefinition(layer_display_name(m.group(2)), KeyCategory.LAYER_ACTION, hold_label=TOGGLE_LABEL)
    if m := _tt_re.fullmatch(compact):
        return KeyDefinition(layer_display_name(m.group(1)), KeyCategory.LAYER_ACTION, hold_label=TAP_TOGGLE_LABEL)
    if m := _osl_re.fullmatch(compact):
        return KeyDefinition(layer_display_name(m.group(1)), KeyCategory.LAYER_ACTION, hold_label=STICKY_LABEL)
    if m := _lt_re.fullmatch(compact):
        tap = lookup(m.group(2))
        return KeyDefinition(tap.display_label, KeyCategory.LAYER_ACTION, hold_label=layer_display_name(m.group(1)))
    if m := _osm_re.fullmatch(compact):
        return KeyDefinition(modifier_label(m.group(1)), KeyCategory.MODIFIER, hold_label=STICKY_LABEL)
    if m := _mtl_re.fullmatch(compact):
        tap = lookup(m.group(2))
        return KeyDefinition(tap.display_label, KeyCategory.MODIFIER, hold_label=modifier_label(m.group(1)))
    if m := _mts_re.fullmatch(compact):
        tap = lookup(m.group(2))
        return KeyDefinition(tap.display_label, KeyCategory.MODIFIER, hold_label=modifier_label(m.group(1)))

    key, mods = _strip_modifier_fns(compact, [])
    if mods:
        return KeyDefinition("+".join(mods + [lookup(key).display_label]), KeyCategory.MODIFIER)

    return KeyDefinition(raw, KeyCategory.CUSTOM)
