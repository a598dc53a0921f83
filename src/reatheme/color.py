"""Color value model.

A color is a closed two-shape value: RGB or RGBA, each channel an integer in
[0, 255]. Colors are printed into theme text as a packed integer with red in
the least significant byte, which is the layout REAPER reads.

Functions registered into the script sandbox:
    color(n, channels=None)   unpack a packed integer
    rgb(r, g, b)              3-channel constructor
    rgba(r, g, b, a)          4-channel constructor
    blend(mode, fraction)     encode a blend mode/fraction pair
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from reatheme.errors import (
    ChannelCountError,
    ChannelRangeError,
    FractionRangeError,
    TypeMismatchError,
    UnknownBlendModeError,
)

MAX_RGB = 0xFFFFFF
MAX_RGBA = 0xFFFFFFFF

# Subtracted from an RGB value to mark a togglable color (e.g. col_main_bg)
NEGATIVE_OFFSET = 0x1000000

# Blend values are 18 bits: a flag bit, 9 bits of fraction (x / 256) and the
# mode code in the low byte.
BLEND_FLAG = 0x20000
BLEND_MODES: dict[str, int] = {
    "normal": 0,
    "add": 1,
    "dodge": 2,
    "multiply": 3,
    "overlay": 4,
    "hsv": 254,
}


class ColorKind(Enum):
    RGB = "rgb"
    RGBA = "rgba"


def _channel(value: object, name: str) -> int:
    """Validate a single channel value and return it as int."""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ChannelRangeError(
            f"channel `{name}` must be an integer in [0, 255], got {value!r}"
        )
    if not 0 <= value <= 255:
        raise ChannelRangeError(f"channel `{name}` = {value} is outside [0, 255]")
    return value


@dataclass(frozen=True)
class Color:
    """An RGB or RGBA color.

    `a` is None exactly when `kind` is RGB. Build colors with `rgb()`,
    `rgba()` or `color()` rather than calling the constructor directly.
    """

    kind: ColorKind
    r: int
    g: int
    b: int
    a: int | None = None

    def __post_init__(self):
        for name in ("r", "g", "b"):
            object.__setattr__(self, name, _channel(getattr(self, name), name))
        if self.kind is ColorKind.RGB:
            if self.a is not None:
                raise TypeMismatchError("RGB color cannot carry an alpha channel")
        elif self.kind is ColorKind.RGBA:
            object.__setattr__(self, "a", _channel(self.a, "a"))
        else:
            raise TypeMismatchError(f"unknown color kind {self.kind!r}")

    @property
    def channels(self) -> tuple[int, ...]:
        if self.kind is ColorKind.RGB:
            return (self.r, self.g, self.b)
        return (self.r, self.g, self.b, self.a)  # type: ignore[return-value]

    @property
    def value(self) -> int:
        """Packed serialisation, least significant byte first."""
        packed = self.r + (self.g << 8) + (self.b << 16)
        if self.kind is ColorKind.RGBA:
            packed += self.a << 24  # type: ignore[operator]
        return packed

    def arr(self) -> str:
        """Channels as a space separated string, e.g. "11 22 33"."""
        return " ".join(str(c) for c in self.channels)

    def hex(self) -> str:
        width = 6 if self.kind is ColorKind.RGB else 8
        return f"{self.value:0{width}X}"

    def with_alpha(self, alpha: int) -> "Color":
        """Return an RGBA copy with the given alpha (promotes RGB)."""
        return Color(ColorKind.RGBA, self.r, self.g, self.b, alpha)

    def negative(self) -> int:
        """Packed value minus 0x1000000, for togglable theme colors."""
        if self.kind is not ColorKind.RGB:
            raise TypeMismatchError("cannot apply negative() to an RGBA color")
        return self.value - NEGATIVE_OFFSET

    def to_rgb(self) -> "Color":
        """Drop the alpha channel."""
        if self.kind is not ColorKind.RGBA:
            raise TypeMismatchError("cannot apply to_rgb() to an RGB color")
        return Color(ColorKind.RGB, self.r, self.g, self.b)

    def _combine(self, other: object, sign: int) -> "Color":
        if not isinstance(other, Color):
            return NotImplemented
        if other.kind is not self.kind:
            raise TypeMismatchError(
                "cannot perform arithmetic on colors with different channels"
            )
        channels = [x + sign * y for x, y in zip(self.channels, other.channels)]
        if any(not 0 <= c <= 255 for c in channels):
            word = "overflow past 255" if sign > 0 else "underflow below 0"
            raise ChannelRangeError(f"color arithmetic caused a channel to {word}")
        return Color(self.kind, *channels)

    def __add__(self, other: object) -> "Color":
        return self._combine(other, 1)

    def __sub__(self, other: object) -> "Color":
        return self._combine(other, -1)

    def __str__(self) -> str:
        return str(self.value)


def rgb(r: int, g: int, b: int) -> Color:
    return Color(ColorKind.RGB, r, g, b)


def rgba(r: int, g: int, b: int, a: int) -> Color:
    return Color(ColorKind.RGBA, r, g, b, a)


def color(value: int, channels: int | None = None) -> Color:
    """Unpack a packed integer into a color.

    Args:
        value: Packed value, red in the least significant byte.
        channels: 3 or 4. When omitted, 3 unless the value needs 4.

    Returns:
        The unpacked Color.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ChannelRangeError(f"packed color must be an integer, got {value!r}")
    if value < 0:
        raise ChannelRangeError(f"packed color {value} is negative")
    if channels is None:
        channels = 3 if value <= MAX_RGB else 4

    if channels == 3:
        if value > MAX_RGB:
            raise ChannelRangeError(f"value `{value}` does not fit within 3 channels")
        return rgb(value & 0xFF, (value >> 8) & 0xFF, (value >> 16) & 0xFF)
    if channels == 4:
        if value > MAX_RGBA:
            raise ChannelRangeError(f"value `{value}` does not fit within 4 channels")
        return rgba(
            value & 0xFF,
            (value >> 8) & 0xFF,
            (value >> 16) & 0xFF,
            (value >> 24) & 0xFF,
        )
    raise ChannelCountError(f"invalid channel count `{channels}`")


def blend(mode: str, fraction: float) -> int:
    """Encode a blend mode and opacity fraction into one theme value.

    The fraction is stored as the nearest x / 256.

    Raises:
        FractionRangeError: fraction outside [0.0, 1.0].
        UnknownBlendModeError: mode not in BLEND_MODES.
    """
    if isinstance(fraction, bool) or not isinstance(fraction, (int, float)):
        raise FractionRangeError(f"frac `{fraction!r}` must be a number")
    if not 0.0 <= fraction <= 1.0:
        raise FractionRangeError(
            f"frac `{fraction}` must be a value between 0.0 and 1.0"
        )
    if mode not in BLEND_MODES:
        names = ", ".join(f'"{name}"' for name in BLEND_MODES)
        raise UnknownBlendModeError(f"mode `{mode}` must be one of: {names}")

    steps = math.floor(fraction * 256 + 0.5)
    return BLEND_FLAG + (steps << 8) + BLEND_MODES[mode]
