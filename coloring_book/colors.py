"""RGBA colours, tolerance matching and the picker palette."""

from __future__ import annotations

from typing import Iterable, Iterator, List, NamedTuple, Sequence

import numpy as np

from .config import COLOR_HISTORY_SIZE


class Color(NamedTuple):
    red: int
    green: int
    blue: int
    alpha: int = 255

    @classmethod
    def coerce(cls, value: Sequence[int]) -> "Color":
        """Build a colour from any 3- or 4-item sequence (tuple, ndarray row)."""
        if isinstance(value, Color):
            return value
        channels = [int(c) for c in value]
        if len(channels) not in (3, 4):
            raise ValueError(f"Expected 3 or 4 channels, got {len(channels)}")
        for channel in channels:
            if not 0 <= channel <= 255:
                raise ValueError(f"Channel value out of range: {channel}")
        return cls(*channels)

    @classmethod
    def from_hex(cls, text: str) -> "Color":
        """Parse ``RRGGBB`` or ``AARRGGBB`` (leading '#' optional)."""
        digits = text.lstrip("#")
        if len(digits) == 6:
            return cls(int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))
        if len(digits) == 8:
            return cls(
                int(digits[2:4], 16),
                int(digits[4:6], 16),
                int(digits[6:8], 16),
                int(digits[0:2], 16),
            )
        raise ValueError(f"Not a hex colour: {text!r}")

    @classmethod
    def from_argb(cls, value: int) -> "Color":
        value &= 0xFFFFFFFF
        return cls((value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF, (value >> 24) & 0xFF)

    def to_argb(self) -> int:
        return (self.alpha << 24) | (self.red << 16) | (self.green << 8) | self.blue

    def to_hex(self) -> str:
        if self.alpha == 255:
            return f"#{self.red:02x}{self.green:02x}{self.blue:02x}"
        return f"#{self.alpha:02x}{self.red:02x}{self.green:02x}{self.blue:02x}"


WHITE = Color(255, 255, 255)
BLACK = Color(0, 0, 0)
RED = Color(255, 0, 0)
GREEN = Color(0, 255, 0)
BLUE = Color(0, 0, 255)
TRANSPARENT = Color(0, 0, 0, 0)


# ---------------------------------------------------------------------------
# Tolerance matching
# ---------------------------------------------------------------------------

def similar(a: Sequence[int], b: Sequence[int], tolerance: int) -> bool:
    """True when every channel of ``a`` and ``b`` differs by at most ``tolerance``.

    All four channels (including alpha) take part; ``tolerance == 0`` is
    exact equality.
    """
    if tolerance < 0:
        raise ValueError("tolerance must be >= 0")
    return all(abs(int(x) - int(y)) <= tolerance for x, y in zip(a, b))


def similar_mask(pixels: np.ndarray, color: Sequence[int], tolerance: int) -> np.ndarray:
    """Vectorised :func:`similar` over an ``H x W x 4`` array.

    Returns an ``H x W`` boolean mask.
    """
    if tolerance < 0:
        raise ValueError("tolerance must be >= 0")
    reference = np.asarray(tuple(color), dtype=np.int16)
    diff = np.abs(pixels.astype(np.int16) - reference)
    return np.all(diff <= tolerance, axis=-1)


# ---------------------------------------------------------------------------
# Picker palette
# ---------------------------------------------------------------------------

PALETTE_BASE_COLORS = [
    RED, GREEN, BLUE,
    Color(255, 255, 0), Color(0, 255, 255), Color(255, 0, 255),
    Color.from_hex("FFA500"), Color.from_hex("800080"),
    Color.from_hex("00FFFF"), Color.from_hex("FFC0CB"),
    Color.from_hex("008000"), Color.from_hex("800000"),
    Color.from_hex("000080"), Color.from_hex("808000"),
]

PALETTE_STEPS = 10


def _channel(value: float) -> int:
    return int(value * 255.0 + 0.5)


def generate_palette(base_colors: Iterable[Color] = PALETTE_BASE_COLORS,
                     steps: int = PALETTE_STEPS) -> List[Color]:
    """Tints toward white and shades toward black for every base colour.

    For each base colour and each step ``i`` in ``1..steps`` a tint and a
    shade are emitted in that order, so the palette has
    ``2 * steps * len(base_colors)`` entries.
    """
    palette: List[Color] = []
    for base in base_colors:
        r, g, b = base.red / 255.0, base.green / 255.0, base.blue / 255.0
        for i in range(1, steps + 1):
            t = i / steps
            palette.append(Color(
                _channel(r + (1 - r) * t),
                _channel(g + (1 - g) * t),
                _channel(b + (1 - b) * t),
            ))
            palette.append(Color(
                _channel(r * (1 - t)),
                _channel(g * (1 - t)),
                _channel(b * (1 - t)),
            ))
    return palette


class ColorHistory:
    """Most recently selected distinct colours, newest first."""

    def __init__(self, capacity: int = COLOR_HISTORY_SIZE):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._colors: List[Color] = []

    def push(self, color: Sequence[int]) -> None:
        color = Color.coerce(color)
        if color in self._colors:
            self._colors.remove(color)
        self._colors.insert(0, color)
        del self._colors[self.capacity:]

    def clear(self) -> None:
        self._colors.clear()

    @property
    def colors(self) -> List[Color]:
        return list(self._colors)

    def __len__(self) -> int:
        return len(self._colors)

    def __iter__(self) -> Iterator[Color]:
        return iter(list(self._colors))
