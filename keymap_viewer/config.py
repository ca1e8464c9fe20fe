"""
Module containing configuration related to keymap parsing, physical grid inference
and device telemetry decoding.
"""

from pydantic_settings import BaseSettings


class ParseConfig(BaseSettings, env_prefix="KEYMAP_VIEWER_", extra="ignore"):
    """Configuration settings related to parsing keymap documents and keymap.c sources."""

    # regex for the layout-building macro names in keymap.c sources, matched as a whole identifier
    # e.g. LAYOUT, LAYOUT_ortho_4x12, LAYOUT_planck_grid, LAYOUT_split_3x6_3
    layout_macro_pattern: str = r"LAYOUT\w*"

    # try YAML if a structured keymap document is not valid JSON
    allow_yaml: bool = True

    # name given to layers that do not have a (non-numeric) designator in the source
    default_layer_name: str = "L{index}"


class LayoutConfig(BaseSettings, env_prefix="KEYMAP_VIEWER_", extra="ignore"):
    """Configuration settings related to inferring a physical rows x columns grid from a key count."""

    # accepted range for columns / rows when searching divisor pairs of the key count,
    # real keyboards are between two and three and a half times as wide as they are tall
    min_aspect: float = 2.0
    max_aspect: float = 3.5

    # if no divisor pair is within that range, take the one closest to square with columns / rows at most this
    fallback_max_aspect: float = 2.5

    # consult the bundled table of known keyboards and layout macros before searching divisors
    use_known_keyboards: bool = True


class TelemetryConfig(BaseSettings, env_prefix="KEYMAP_VIEWER_", extra="ignore"):
    """Configuration settings related to reading and decoding device telemetry."""

    # number of bytes requested from the device per read
    read_size: int = 64

    # read timeout in seconds, for sources that take one; bounds how long stopping the reader takes
    read_timeout: float = 0.1

    # discard a partial console line once it grows past this many characters
    max_line_length: int = 256

    # also accept single-line "L:<layer> B:<hex bits>" console reports from older firmware
    accept_compact_reports: bool = False


class Config(BaseSettings, env_prefix="KEYMAP_VIEWER_"):
    """All configuration settings used for this module."""

    parse_config: ParseConfig = ParseConfig()
    layout_config: LayoutConfig = LayoutConfig()
    telemetry_config: TelemetryConfig = TelemetryConfig()
