"""Photo to line art conversion.

Pipeline (``to_line_art``):

1. skip inputs that already look like a coloring page
2. area-downscale anything larger than ``max_dimension``
3. RGBA -> luminance
4. bilateral filter (edge-preserving smoothing, ``detail_preservation``)
5. Gaussian blur (kernel ``2 * blur_amount - 1``)
6. Canny with ``edge_threshold`` / ``2.5 * edge_threshold``
7. dilate edges to ``edge_thickness``
8. invert and binarise at ``BINARY_CUTOFF`` -> black lines on white

Processing errors never reach the caller; the input buffer is returned
instead.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

import cv2
import numpy as np

from .buffer import PixelBuffer, ensure_buffer
from .classify import classify_line_art, line_art_heuristic
from .config import (
    BILATERAL_DIAMETER,
    BINARY_CUTOFF,
    MAX_DIMENSION,
    SIMPLE_CANNY_HIGH,
    SIMPLE_CANNY_LOW,
    ClassificationPolicy,
    LineArtParams,
)

logger = logging.getLogger(__name__)


def downscale(pixels: np.ndarray, max_dimension: int = MAX_DIMENSION) -> np.ndarray:
    """Shrink with area averaging so neither side exceeds ``max_dimension``."""
    h, w = pixels.shape[:2]
    longest = max(h, w)
    if max_dimension <= 0 or longest <= max_dimension:
        return pixels
    scale = max_dimension / float(longest)
    size = (max(1, int(round(w * scale))), max(1, int(round(h * scale))))
    logger.debug("Downscaling %dx%d -> %dx%d", w, h, size[0], size[1])
    return cv2.resize(pixels, size, interpolation=cv2.INTER_AREA)


def thicken(edges: np.ndarray, thickness: int) -> np.ndarray:
    if thickness <= 1:
        return edges
    kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (thickness, thickness))
    return cv2.dilate(edges, kernel)


def binarize(gray: np.ndarray, cutoff: int = BINARY_CUTOFF) -> PixelBuffer:
    """Pure black/white RGBA from a single-channel image."""
    _, binary = cv2.threshold(gray, cutoff, 255, cv2.THRESH_BINARY)
    return PixelBuffer(cv2.cvtColor(binary, cv2.COLOR_GRAY2RGBA))


def _edge_pipeline(buffer: PixelBuffer, params: LineArtParams, max_dimension: int) -> PixelBuffer:
    rgba = downscale(buffer.pixels, max_dimension)
    gray = cv2.cvtColor(rgba, cv2.COLOR_RGBA2GRAY)
    sigma = float(params.detail_preservation)
    smoothed = cv2.bilateralFilter(gray, BILATERAL_DIAMETER, sigma, sigma)
    k = params.kernel_size
    blurred = cv2.GaussianBlur(smoothed, (k, k), 0)
    edges = cv2.Canny(blurred, params.edge_threshold, params.upper_threshold)
    edges = thicken(edges, params.edge_thickness)
    return binarize(cv2.bitwise_not(edges))


def to_line_art(
    buffer: PixelBuffer,
    params: Optional[LineArtParams] = None,
    policy: Optional[ClassificationPolicy] = None,
    max_dimension: int = MAX_DIMENSION,
    check: bool = True,
) -> PixelBuffer:
    """Convert a photo into black outlines on white.

    Args:
        buffer: Source image.  Not modified.
        params: Edge detection knobs; clamped to their documented ranges.
        policy: Thresholds for the "already line art" guard.
        max_dimension: Longest side after downscaling.
        check: Run the line art guard first.  The adjustment preview turns
               this off because the user asked for processing explicitly.

    Returns:
        A new buffer, or ``buffer`` itself when it is already line art or
        processing failed.

    Raises:
        InvalidBufferError: ``buffer`` is not usable pixel data.
        ValueError: ``policy`` names an unregistered line art heuristic.
    """
    buffer = ensure_buffer(buffer)
    params = (params or LineArtParams()).validated()
    if check:
        # a bad heuristic name is a configuration error, not a processing one
        line_art_heuristic(policy)
    try:
        if check:
            verdict = classify_line_art(buffer, policy)
            if verdict.matched:
                logger.info(
                    "Input already line art (%s=%.2f); leaving unchanged",
                    verdict.heuristic, verdict.statistic,
                )
                return buffer
        result = _edge_pipeline(buffer, params, max_dimension)
    except Exception:  # pylint: disable=broad-except
        logger.warning("Line art conversion failed; keeping original image", exc_info=True)
        return buffer
    logger.debug("Line art: %s with %s", result, params)
    return result


def simple_line_art(buffer: PixelBuffer, max_dimension: int = MAX_DIMENSION) -> PixelBuffer:
    """Knob-free variant: 3x3 blur and Canny 50/150."""
    buffer = ensure_buffer(buffer)
    try:
        rgba = downscale(buffer.pixels, max_dimension)
        gray = cv2.cvtColor(rgba, cv2.COLOR_RGBA2GRAY)
        edges = cv2.Canny(cv2.GaussianBlur(gray, (3, 3), 0), SIMPLE_CANNY_LOW, SIMPLE_CANNY_HIGH)
        return binarize(cv2.bitwise_not(edges))
    except Exception:  # pylint: disable=broad-except
        logger.warning("Simple line art failed; keeping original image", exc_info=True)
        return buffer


def contrast_line_art(buffer: PixelBuffer, contrast: float = 2.0, brightness: float = -128.0) -> PixelBuffer:
    """Desaturate and push contrast; keeps shading instead of extracting edges."""
    buffer = ensure_buffer(buffer)
    try:
        gray = cv2.cvtColor(buffer.pixels, cv2.COLOR_RGBA2GRAY).astype(np.float32)
        boosted = np.clip(gray * contrast + brightness, 0, 255).astype(np.uint8)
        out = cv2.cvtColor(boosted, cv2.COLOR_GRAY2RGBA)
        out[:, :, 3] = buffer.pixels[:, :, 3]
        return PixelBuffer(out)
    except Exception:  # pylint: disable=broad-except
        logger.warning("Contrast conversion failed; keeping original image", exc_info=True)
        return buffer


class LinePreview:
    """Live preview for the adjustment screen.

    Every parameter change recomputes the whole pipeline from the source.
    """

    def __init__(
        self,
        source: PixelBuffer,
        params: Optional[LineArtParams] = None,
        max_dimension: int = MAX_DIMENSION,
    ):
        self.source = source.copy()
        self.params = (params or LineArtParams()).validated()
        self.max_dimension = max_dimension
        self.result: Optional[PixelBuffer] = None

    def render(self) -> PixelBuffer:
        self.result = to_line_art(
            self.source, self.params, max_dimension=self.max_dimension, check=False
        )
        return self.result

    def update(self, **changes) -> PixelBuffer:
        self.params = replace(self.params, **changes).validated()
        return self.render()
