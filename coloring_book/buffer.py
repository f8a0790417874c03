"""Fixed-size RGBA pixel grid shared by every editing component."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

import numpy as np
from PIL import Image

from .colors import WHITE, Color


class InvalidBufferError(ValueError):
    """Pixel data that cannot form a usable buffer (e.g. zero width/height)."""


def _as_rgba(pixels, copy: bool) -> np.ndarray:
    arr = np.asarray(pixels)
    if arr.ndim == 2:
        arr = np.repeat(arr[:, :, None], 3, axis=2)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise InvalidBufferError(f"Unsupported pixel array shape: {arr.shape}")
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise InvalidBufferError(f"Buffer has no pixels: {arr.shape[1]}x{arr.shape[0]}")

    if arr.dtype != np.uint8:
        if not (np.issubdtype(arr.dtype, np.integer) or np.issubdtype(arr.dtype, np.floating)):
            raise InvalidBufferError(f"Unsupported pixel dtype: {arr.dtype}")
        arr = np.clip(arr, 0, 255).astype(np.uint8)
        copy = False  # already a new array

    if arr.shape[2] == 3:
        alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
        return np.ascontiguousarray(np.concatenate([arr, alpha], axis=2))

    if copy:
        return arr.copy()
    return np.ascontiguousarray(arr)


class PixelBuffer:
    """``H x W`` RGBA samples (``uint8``), row-major.

    Out-of-range addressing through :meth:`get_pixel` / :meth:`set_pixel`
    never touches memory outside the grid: reads raise ``IndexError`` and
    writes are ignored.  The engines operate on :attr:`pixels` directly.
    """

    __hash__ = None  # mutable

    def __init__(self, pixels, copy: bool = False):
        self._pixels = _as_rgba(pixels, copy)

    # ------------------------------------------------------------------
    # construction
    # ------------------------------------------------------------------

    @classmethod
    def blank(cls, width: int, height: int, color: Sequence[int] = WHITE) -> "PixelBuffer":
        if width <= 0 or height <= 0:
            raise InvalidBufferError(f"Buffer has no pixels: {width}x{height}")
        pixels = np.empty((height, width, 4), dtype=np.uint8)
        pixels[:, :] = tuple(Color.coerce(color))
        return cls(pixels)

    @classmethod
    def from_image(cls, image: Image.Image) -> "PixelBuffer":
        """Wrap a decoded PIL image (any mode) as an RGBA buffer."""
        if image.width == 0 or image.height == 0:
            raise InvalidBufferError(f"Image has no pixels: {image.width}x{image.height}")
        return cls(np.array(image.convert("RGBA")))

    def to_image(self) -> Image.Image:
        return Image.fromarray(self._pixels.copy(), mode="RGBA")

    # ------------------------------------------------------------------
    # geometry
    # ------------------------------------------------------------------

    @property
    def pixels(self) -> np.ndarray:
        return self._pixels

    @property
    def width(self) -> int:
        return int(self._pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self._pixels.shape[0])

    @property
    def shape(self) -> Tuple[int, int]:
        """``(width, height)``"""
        return self.width, self.height

    @property
    def size(self) -> int:
        return self.width * self.height

    @property
    def writeable(self) -> bool:
        return bool(self._pixels.flags.writeable)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def clamp(self, x: float, y: float) -> Tuple[int, int]:
        """Nearest valid coordinate; what callers do before fill/brush."""
        cx = min(max(int(x), 0), self.width - 1)
        cy = min(max(int(y), 0), self.height - 1)
        return cx, cy

    # ------------------------------------------------------------------
    # pixel access
    # ------------------------------------------------------------------

    def get_pixel(self, x: int, y: int) -> Color:
        if not self.in_bounds(x, y):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} buffer")
        return Color(*(int(c) for c in self._pixels[y, x]))

    def set_pixel(self, x: int, y: int, color: Sequence[int]) -> bool:
        if not self.in_bounds(x, y):
            return False
        self._pixels[y, x] = tuple(Color.coerce(color))
        return True

    def count_colors(self) -> int:
        flat = self._pixels.reshape(-1, 4).view(np.uint32).ravel()
        return int(np.unique(flat).size)

    # ------------------------------------------------------------------
    # ownership
    # ------------------------------------------------------------------

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self._pixels, copy=True)

    def freeze(self) -> "PixelBuffer":
        """Make this buffer's storage read-only in place."""
        self._pixels.flags.writeable = False
        return self

    def read_only(self) -> "PixelBuffer":
        """Non-writeable view of the same storage; sees later edits."""
        view = self._pixels.view()
        view.flags.writeable = False
        return PixelBuffer(view)

    def frozen_copy(self) -> "PixelBuffer":
        """Independent read-only copy, safe to hand to a renderer."""
        return self.copy().freeze()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self._pixels.shape == other._pixels.shape and bool(
            np.array_equal(self._pixels, other._pixels)
        )

    def __repr__(self) -> str:
        flag = "" if self.writeable else ", read-only"
        return f"PixelBuffer({self.width}x{self.height}{flag})"


def ensure_buffer(value, name: Optional[str] = None) -> PixelBuffer:
    """Accept a :class:`PixelBuffer`, PIL image or array at the core boundary."""
    if isinstance(value, PixelBuffer):
        return value
    if isinstance(value, Image.Image):
        return PixelBuffer.from_image(value)
    if value is None:
        raise InvalidBufferError(f"{name or 'buffer'} is None")
    return PixelBuffer(value)
