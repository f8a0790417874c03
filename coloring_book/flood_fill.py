"""Tolerance-based flood fill over a :class:`PixelBuffer`."""

from __future__ import annotations

import logging
from collections import deque
from typing import Sequence

import numpy as np

from .buffer import PixelBuffer
from .colors import Color, similar, similar_mask
from .config import DEFAULT_FILL_TOLERANCE

logger = logging.getLogger(__name__)


def _check_seed(buffer: PixelBuffer, x: int, y: int) -> None:
    if not buffer.in_bounds(x, y):
        raise ValueError(
            f"Seed ({x}, {y}) outside {buffer.width}x{buffer.height} buffer; clamp before filling"
        )


def fill_region(
    buffer: PixelBuffer,
    x: int,
    y: int,
    new_color: Sequence[int],
    tolerance: int = DEFAULT_FILL_TOLERANCE,
) -> np.ndarray:
    """Mask of the pixels a fill at ``(x, y)`` would recolour.

    Breadth-first over 4-connected neighbours.  A pixel joins the region
    when it is similar to the seed's original colour; the comparison is
    always against that original colour, never against ``new_color``.
    Returns an all-False ``H x W`` mask when the seed already matches
    ``new_color`` within ``tolerance``.
    """
    _check_seed(buffer, x, y)
    width, height = buffer.width, buffer.height
    target = buffer.get_pixel(x, y)
    new_color = Color.coerce(new_color)

    if similar(target, new_color, tolerance):
        return np.zeros((height, width), dtype=bool)

    # plain Python containers are much faster than ndarray item access here
    candidates = similar_mask(buffer.pixels, target, tolerance).ravel().tolist()
    filled = bytearray(width * height)

    start = y * width + x
    filled[start] = 1
    queue = deque([start])

    while queue:
        idx = queue.popleft()
        px = idx % width

        if px > 0:
            n = idx - 1
            if candidates[n] and not filled[n]:
                filled[n] = 1
                queue.append(n)
        if px < width - 1:
            n = idx + 1
            if candidates[n] and not filled[n]:
                filled[n] = 1
                queue.append(n)
        if idx >= width:
            n = idx - width
            if candidates[n] and not filled[n]:
                filled[n] = 1
                queue.append(n)
        n = idx + width
        if n < width * height and candidates[n] and not filled[n]:
            filled[n] = 1
            queue.append(n)

    return np.frombuffer(bytes(filled), dtype=np.uint8).reshape(height, width).astype(bool)


def flood_fill(
    buffer: PixelBuffer,
    x: int,
    y: int,
    new_color: Sequence[int],
    tolerance: int = DEFAULT_FILL_TOLERANCE,
) -> PixelBuffer:
    """Recolour the region around ``(x, y)`` in place and return the buffer.

    Pixels outside the region are left untouched.  Filling with a colour the
    seed already has (within tolerance) is a no-op.
    """
    new_color = Color.coerce(new_color)
    region = fill_region(buffer, x, y, new_color, tolerance)
    count = int(np.count_nonzero(region))
    if count:
        buffer.pixels[region] = tuple(new_color)
    logger.debug(
        "Flood fill at (%d, %d) tol=%d -> %s: %d pixels",
        x, y, tolerance, new_color.to_hex(), count,
    )
    return buffer
