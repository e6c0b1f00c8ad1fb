#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Border Picker core: colors, settings persistence and the `borders` call.

Settings live in ~/.config/border_picker.json:

  {
    "active_color": "0xAARRGGBB",
    "inactive_color": "0xAARRGGBB",
    "border_width": 6.0
  }

Applying runs:

  borders active_color=0xAARRGGBB inactive_color=0xAARRGGBB width=N.N

Nothing here imports GTK; the window lives in border_picker_gui.
"""

import json
import logging
import math
import os
import re
import subprocess
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Tuple

logger = logging.getLogger("border_picker.core")


# ----------------------------
# Configuration
# ----------------------------

CONFIG_SUBDIR = ".config"
CONFIG_FILENAME = "border_picker.json"
CONFIG_DIR_MODE = 0o755
CONFIG_FILE_MODE = 0o644

BORDERS_EXECUTABLE = "borders"

WIDTH_MIN = 0.0
WIDTH_MAX = 20.0
WIDTH_STEP = 0.1

HEX_PREFIX = "0x"
HEX_TOKEN_LEN = 10


# ----------------------------
# Errors
# ----------------------------

class BorderPickerError(Exception):
    """Base class for everything the core raises."""


class SettingsPathError(BorderPickerError):
    pass


class SettingsIOError(BorderPickerError):
    pass


class ParseError(BorderPickerError, ValueError):
    pass


class ColorParseError(ParseError):
    pass


class SettingsParseError(ParseError):
    pass


class ColorFormatError(BorderPickerError, ValueError):
    pass


class BordersToolError(BorderPickerError):
    pass


# ----------------------------
# Colors
# ----------------------------

def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


@dataclass(frozen=True)
class Color:
    a: int
    r: int
    g: int
    b: int

    def __post_init__(self):
        for name in ("a", "r", "g", "b"):
            v = getattr(self, name)
            if not isinstance(v, int) or not 0 <= v <= 0xFF:
                raise ValueError(f"channel {name} out of range: {v!r}")

    @classmethod
    def from_rgba(cls, r: float, g: float, b: float, a: float = 1.0) -> "Color":
        """Build from 0.0-1.0 floats (Gdk.RGBA style)."""
        def to8(x: float) -> int:
            return int(round(clamp(x, 0.0, 1.0) * 255))
        return cls(a=to8(a), r=to8(r), g=to8(g), b=to8(b))

    def to_rgba(self) -> Tuple[float, float, float, float]:
        return self.r / 255.0, self.g / 255.0, self.b / 255.0, self.a / 255.0


HEX_DIGITS_RE = re.compile(r"[0-9a-fA-F]{8}")

def encode_color(c: Color) -> str:
    return "0x{:02x}{:02x}{:02x}{:02x}".format(c.a, c.r, c.g, c.b)

def decode_color(s: str) -> Color:
    """
    Parse a "0xAARRGGBB" token.

    Raises ColorFormatError on a wrong length or missing prefix and
    ColorParseError when the 8 digits are not hexadecimal.
    """
    if not isinstance(s, str) or len(s) != HEX_TOKEN_LEN or not s.startswith(HEX_PREFIX):
        raise ColorFormatError(f"invalid color format: {s!r} (expected 0xAARRGGBB)")
    digits = s[len(HEX_PREFIX):]
    # int(x, 16) would also take "+", "_" and spaces
    if not HEX_DIGITS_RE.fullmatch(digits):
        raise ColorParseError(f"invalid hex digits in color: {s!r}")
    val = int(digits, 16)
    return Color(
        a=(val >> 24) & 0xFF,
        r=(val >> 16) & 0xFF,
        g=(val >> 8) & 0xFF,
        b=val & 0xFF,
    )


DEFAULT_ACTIVE_COLOR = Color(a=0xFF, r=0xE2, g=0xE2, b=0xE3)
DEFAULT_INACTIVE_COLOR = Color(a=0xFF, r=0x41, g=0x45, b=0x50)
DEFAULT_BORDER_WIDTH = 6.0


# ----------------------------
# Settings records
# ----------------------------

@dataclass(frozen=True)
class Settings:
    active_color: Color
    inactive_color: Color
    border_width: float

    def to_stored(self) -> "StoredSettings":
        return StoredSettings(
            active_color=encode_color(self.active_color),
            inactive_color=encode_color(self.inactive_color),
            border_width=float(self.border_width),
        )


@dataclass(frozen=True)
class StoredSettings:
    """What is actually on disk: colors still as hex tokens."""
    active_color: str
    inactive_color: str
    border_width: float

    def to_json_dict(self) -> dict:
        return {
            "active_color": self.active_color,
            "inactive_color": self.inactive_color,
            "border_width": self.border_width,
        }

    @classmethod
    def from_json_dict(cls, data) -> "StoredSettings":
        if not isinstance(data, dict):
            raise SettingsParseError(f"expected a JSON object, got {type(data).__name__}")

        def text_field(key: str) -> str:
            v = data.get(key)
            if v is None:
                return ""
            if not isinstance(v, str):
                raise SettingsParseError(f"{key}: expected string, got {type(v).__name__}")
            return v

        width = data.get("border_width")
        if width is None:
            width = 0.0
        elif isinstance(width, bool) or not isinstance(width, (int, float)):
            raise SettingsParseError(f"border_width: expected number, got {type(width).__name__}")
        try:
            width = float(width)
        except OverflowError as e:
            raise SettingsParseError(f"border_width out of range: {e}") from e
        if not math.isfinite(width):
            raise SettingsParseError(f"border_width must be finite, got {width}")

        return cls(
            active_color=text_field("active_color"),
            inactive_color=text_field("inactive_color"),
            border_width=width,
        )


DEFAULT_SETTINGS = Settings(
    active_color=DEFAULT_ACTIVE_COLOR,
    inactive_color=DEFAULT_INACTIVE_COLOR,
    border_width=DEFAULT_BORDER_WIDTH,
)


# ----------------------------
# Settings persistence
# ----------------------------

def get_real_home() -> Path:
    if os.geteuid() == 0 and os.environ.get("SUDO_USER"):
        try:
            import pwd
            return Path(pwd.getpwnam(os.environ["SUDO_USER"]).pw_dir)
        except KeyError:
            logger.debug("SUDO_USER %s has no passwd entry", os.environ["SUDO_USER"])
    try:
        return Path.home()
    except (RuntimeError, KeyError) as e:
        raise SettingsPathError(f"cannot determine home directory: {e}") from e

def settings_path() -> Path:
    return get_real_home() / CONFIG_SUBDIR / CONFIG_FILENAME

def reject_json_constant(name: str):
    raise SettingsParseError(f"non-finite number {name} is not allowed")

def load_settings(path: Optional[Path] = None) -> StoredSettings:
    p = Path(path) if path is not None else settings_path()
    try:
        raw = p.read_bytes()
    except OSError as e:
        raise SettingsIOError(f"cannot read {p}: {e}") from e
    # ValueError also covers the int digit limit and NaN/Infinity
    try:
        data = json.loads(raw.decode("utf-8"), parse_constant=reject_json_constant)
    except (ValueError, RecursionError) as e:
        raise SettingsParseError(f"{p} is not valid JSON: {e}") from e
    return StoredSettings.from_json_dict(data)

def save_settings(record: StoredSettings, path: Optional[Path] = None) -> Path:
    p = Path(path) if path is not None else settings_path()
    try:
        text = json.dumps(record.to_json_dict(), indent=2, allow_nan=False) + "\n"
    except ValueError as e:
        raise SettingsParseError(f"cannot serialize settings: {e}") from e
    tmp = p.with_name(p.name + ".tmp")
    try:
        p.parent.mkdir(mode=CONFIG_DIR_MODE, parents=True, exist_ok=True)
        tmp.write_text(text, encoding="utf-8")
        tmp.chmod(CONFIG_FILE_MODE)
        tmp.replace(p)
    except OSError as e:
        try:
            tmp.unlink()
        except OSError:
            logger.debug("no temporary file to clean up at %s", tmp)
        raise SettingsIOError(f"cannot write {p}: {e}") from e
    return p

def resolve_settings(record: StoredSettings, defaults: Settings = DEFAULT_SETTINGS) -> Settings:
    """Decode both colors, falling back per field."""
    try:
        active = decode_color(record.active_color)
    except (ColorFormatError, ColorParseError) as e:
        logger.warning("Error parsing active_color, using default: %s", e)
        active = defaults.active_color
    try:
        inactive = decode_color(record.inactive_color)
    except (ColorFormatError, ColorParseError) as e:
        logger.warning("Error parsing inactive_color, using default: %s", e)
        inactive = defaults.inactive_color
    return Settings(active_color=active, inactive_color=inactive, border_width=record.border_width)

def load_with_defaults(defaults: Settings = DEFAULT_SETTINGS, path: Optional[Path] = None) -> Settings:
    try:
        record = load_settings(path)
    except BorderPickerError as e:
        logger.warning("Could not load config, using defaults: %s", e)
        return defaults
    return resolve_settings(record, defaults)


# ----------------------------
# Applying (borders)
# ----------------------------

def clamp_width(width: float) -> float:
    return clamp(float(width), WIDTH_MIN, WIDTH_MAX)

def format_width(width: float) -> str:
    return f"{float(width):.1f}"

def borders_args(active: Color, inactive: Color, width: float) -> list:
    return [
        f"active_color={encode_color(active)}",
        f"inactive_color={encode_color(inactive)}",
        f"width={format_width(width)}",
    ]

def apply_borders(active: Color, inactive: Color, width: float,
                  executable: str = BORDERS_EXECUTABLE) -> None:
    args = [executable] + borders_args(active, inactive, width)
    try:
        subprocess.run(args, stdin=subprocess.DEVNULL, stdout=subprocess.DEVNULL,
                       stderr=subprocess.DEVNULL, check=True)
    except (OSError, subprocess.CalledProcessError) as e:
        raise BordersToolError(f"{executable} failed: {e}") from e
    logger.info("Updated borders with %s", " ".join(args[1:]))

def apply_saved(path: Optional[Path] = None, executable: str = BORDERS_EXECUTABLE) -> int:
    """Re-apply whatever is on disk (or the defaults). Returns an exit code."""
    s = load_with_defaults(path=path)
    try:
        apply_borders(s.active_color, s.inactive_color, s.border_width, executable)
    except BordersToolError as e:
        logger.error("Error updating borders: %s", e)
        return 1
    return 0


# ----------------------------
# Controller
# ----------------------------

class SettingsController:
    """
    Owns the live Settings. Every change goes through commit(), which runs
    borders and then saves, logging (never raising) failures.
    """

    def __init__(self, settings: Settings, path: Optional[Path] = None,
                 executable: str = BORDERS_EXECUTABLE):
        self.settings = settings
        self.path = path
        self.executable = executable
        self.last_error: Optional[BorderPickerError] = None

    @classmethod
    def from_disk(cls, path: Optional[Path] = None, executable: str = BORDERS_EXECUTABLE,
                  defaults: Settings = DEFAULT_SETTINGS) -> "SettingsController":
        return cls(load_with_defaults(defaults, path), path=path, executable=executable)

    def set_active_color(self, c: Color) -> None:
        self.settings = replace(self.settings, active_color=c)

    def set_inactive_color(self, c: Color) -> None:
        self.settings = replace(self.settings, inactive_color=c)

    def set_border_width(self, width: float) -> None:
        self.settings = replace(self.settings, border_width=float(width))

    def commit(self) -> bool:
        """Apply then save. Returns True when both steps succeeded."""
        s = self.settings
        self.last_error = None
        try:
            apply_borders(s.active_color, s.inactive_color, s.border_width, self.executable)
        except BordersToolError as e:
            logger.error("Error updating borders: %s", e)
            self.last_error = e
        try:
            save_settings(s.to_stored(), self.path)
        except BorderPickerError as e:
            logger.error("Error saving config: %s", e)
            self.last_error = self.last_error or e
        return self.last_error is None
