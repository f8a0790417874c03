"""Cheap image classification heuristics used to route preprocessing.

Each heuristic is a pure function over a (downsampled) RGBA array that
returns whether it matched together with the statistic it measured, so
thresholds can be tuned without touching pipeline control flow.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

import cv2
import numpy as np

from .buffer import PixelBuffer
from .colors import WHITE, similar_mask
from .config import ClassificationPolicy

logger = logging.getLogger(__name__)


class PipelineKind(str, Enum):
    NONE = "none"                  # already a coloring page
    LINE_ART = "line_art"
    SEGMENTATION = "segmentation"


@dataclass(frozen=True)
class Classification:
    matched: bool
    statistic: float
    heuristic: str

    def __bool__(self) -> bool:
        return self.matched


def downsample(pixels: np.ndarray, sample_size: int) -> np.ndarray:
    """Nearest-neighbour shrink so the longest side is at most ``sample_size``.

    Nearest-neighbour keeps the sampled colours exact, which the distinct
    colour count depends on.
    """
    h, w = pixels.shape[:2]
    longest = max(h, w)
    if sample_size <= 0 or longest <= sample_size:
        return pixels
    scale = sample_size / float(longest)
    size = (max(1, int(round(w * scale))), max(1, int(round(h * scale))))
    return cv2.resize(pixels, size, interpolation=cv2.INTER_NEAREST)


def mean_saturation(pixels: np.ndarray) -> float:
    """Mean HSV saturation on OpenCV's 0-255 scale."""
    rgb = np.ascontiguousarray(pixels[:, :, :3])
    hsv = cv2.cvtColor(rgb, cv2.COLOR_RGB2HSV)
    return float(hsv[:, :, 1].mean())


def unique_color_check(pixels: np.ndarray, policy: ClassificationPolicy) -> Classification:
    flat = np.ascontiguousarray(pixels).reshape(-1, 4).view(np.uint32).ravel()
    count = int(np.unique(flat).size)
    return Classification(count <= policy.max_line_art_colors, float(count), "unique_colors")


def white_fraction_check(pixels: np.ndarray, policy: ClassificationPolicy) -> Classification:
    # same tolerance rule as flood fill: every channel within reach of white
    near_white = similar_mask(pixels, WHITE, 255 - policy.white_cutoff)
    fraction = float(near_white.mean())
    matched = (
        fraction >= policy.min_white_fraction
        and mean_saturation(pixels) < policy.grayscale_saturation
    )
    return Classification(matched, fraction, "white_fraction")


def saturation_check(pixels: np.ndarray, policy: ClassificationPolicy) -> Classification:
    saturation = mean_saturation(pixels)
    return Classification(saturation < policy.grayscale_saturation, saturation, "saturation")


LINE_ART_HEURISTICS: Dict[str, Callable[[np.ndarray, ClassificationPolicy], Classification]] = {
    "unique_colors": unique_color_check,
    "white_fraction": white_fraction_check,
}


def line_art_heuristic(
    policy: Optional[ClassificationPolicy] = None,
) -> Callable[[np.ndarray, ClassificationPolicy], Classification]:
    """Look up the check named by ``policy``; raises ``ValueError`` if unknown."""
    policy = policy or ClassificationPolicy()
    try:
        return LINE_ART_HEURISTICS[policy.line_art_heuristic]
    except KeyError:
        raise ValueError(f"Unknown line art heuristic: {policy.line_art_heuristic}") from None


def classify_line_art(buffer: PixelBuffer, policy: Optional[ClassificationPolicy] = None) -> Classification:
    """Is ``buffer`` already a black/white coloring page?"""
    policy = policy or ClassificationPolicy()
    heuristic = line_art_heuristic(policy)
    result = heuristic(downsample(buffer.pixels, policy.sample_size), policy)
    logger.debug("Line art check %s: %.3f -> %s", result.heuristic, result.statistic, result.matched)
    return result


def classify_grayscale(buffer: PixelBuffer, policy: Optional[ClassificationPolicy] = None) -> Classification:
    """Is ``buffer`` near-grayscale (nothing for k-means to separate)?"""
    policy = policy or ClassificationPolicy()
    result = saturation_check(downsample(buffer.pixels, policy.sample_size), policy)
    logger.debug("Grayscale check: saturation %.1f -> %s", result.statistic, result.matched)
    return result


def is_line_art(buffer: PixelBuffer, policy: Optional[ClassificationPolicy] = None) -> bool:
    return classify_line_art(buffer, policy).matched


def is_grayscale(buffer: PixelBuffer, policy: Optional[ClassificationPolicy] = None) -> bool:
    return classify_grayscale(buffer, policy).matched


def choose_pipeline(buffer: PixelBuffer, policy: Optional[ClassificationPolicy] = None) -> PipelineKind:
    """Line art stays as is, grayscale photos get edges, colour photos get clusters."""
    if is_line_art(buffer, policy):
        return PipelineKind.NONE
    if is_grayscale(buffer, policy):
        return PipelineKind.LINE_ART
    return PipelineKind.SEGMENTATION
