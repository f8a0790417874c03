"""Round brush: stamps filled disks and joins them into strokes."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional, Sequence, Tuple

import cv2
import numpy as np

from .buffer import PixelBuffer
from .colors import Color
from .config import DEFAULT_BRUSH_RADIUS

logger = logging.getLogger(__name__)

Point = Tuple[int, int]


def _check_radius(radius: int) -> int:
    radius = int(radius)
    if radius < 1:
        raise ValueError("radius must be >= 1")
    return radius


def _paint(
    buffer: PixelBuffer,
    color: Color,
    antialias: bool,
    draw: Callable[[np.ndarray, object, int], None],
) -> PixelBuffer:
    """Run a cv2 drawing call onto the buffer.

    Hard-edged shapes are drawn straight into the pixels.  Anti-aliased
    shapes are drawn as an 8-bit coverage mask and alpha-blended, so the
    soft rim mixes with whatever is underneath.
    """
    pixels = buffer.pixels
    if not antialias:
        draw(pixels, tuple(int(c) for c in color), cv2.LINE_8)
        return buffer

    coverage = np.zeros(pixels.shape[:2], dtype=np.uint8)
    draw(coverage, 255, cv2.LINE_AA)
    touched = coverage > 0
    if not touched.any():
        return buffer
    weight = (coverage[touched].astype(np.float32) / 255.0)[:, None]
    source = pixels[touched].astype(np.float32)
    target = np.asarray(color, dtype=np.float32)[None, :]
    pixels[touched] = np.clip(source * (1.0 - weight) + target * weight + 0.5, 0, 255).astype(np.uint8)
    return buffer


def stamp(
    buffer: PixelBuffer,
    x: int,
    y: int,
    color: Sequence[int],
    radius: int = DEFAULT_BRUSH_RADIUS,
    antialias: bool = False,
) -> PixelBuffer:
    """Draw a filled disk centred on ``(x, y)``; parts outside the buffer are clipped."""
    radius = _check_radius(radius)
    color = Color.coerce(color)
    center = (int(round(x)), int(round(y)))

    def draw(target, value, line_type):
        cv2.circle(target, center, radius, value, thickness=-1, lineType=line_type)

    return _paint(buffer, color, antialias, draw)


def segment(
    buffer: PixelBuffer,
    start: Point,
    end: Point,
    color: Sequence[int],
    radius: int = DEFAULT_BRUSH_RADIUS,
    antialias: bool = False,
) -> PixelBuffer:
    """Disk at ``end`` joined to ``start`` by a line as wide as the brush."""
    radius = _check_radius(radius)
    color = Color.coerce(color)
    p0 = (int(round(start[0])), int(round(start[1])))
    p1 = (int(round(end[0])), int(round(end[1])))

    def draw(target, value, line_type):
        cv2.line(target, p0, p1, value, thickness=2 * radius + 1, lineType=line_type)
        cv2.circle(target, p1, radius, value, thickness=-1, lineType=line_type)

    return _paint(buffer, color, antialias, draw)


def stroke(
    buffer: PixelBuffer,
    points: Iterable[Point],
    color: Sequence[int],
    radius: int = DEFAULT_BRUSH_RADIUS,
    antialias: bool = False,
) -> PixelBuffer:
    """Apply a drag in arrival order; each dab sees the previous ones."""
    previous: Optional[Point] = None
    count = 0
    for point in points:
        if previous is None:
            stamp(buffer, point[0], point[1], color, radius, antialias)
        else:
            segment(buffer, previous, point, color, radius, antialias)
        previous = point
        count += 1
    logger.debug("Brush stroke: %d points, radius %d", count, radius)
    return buffer
