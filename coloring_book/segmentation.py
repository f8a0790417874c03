"""Flatten colourful photos into a handful of fillable colour regions."""

from __future__ import annotations

import logging
from typing import Optional

import cv2
import numpy as np
from sklearn.cluster import KMeans

from .buffer import PixelBuffer, ensure_buffer
from .classify import classify_grayscale
from .config import (
    DEFAULT_CLUSTER_COUNT,
    KMEANS_EPSILON,
    KMEANS_MAX_ITER,
    KMEANS_SAMPLE_LIMIT,
    ClassificationPolicy,
)

logger = logging.getLogger(__name__)


def _pack_rgb(rgb: np.ndarray) -> np.ndarray:
    rgb = rgb.astype(np.uint32)
    return (rgb[:, 0] << 16) | (rgb[:, 1] << 8) | rgb[:, 2]


def _cluster(
    buffer: PixelBuffer,
    k: int,
    max_iterations: int,
    epsilon: float,
    random_state: Optional[int],
    sample_limit: int,
) -> PixelBuffer:
    h, w = buffer.height, buffer.width
    rgb = buffer.pixels[:, :, :3].reshape(-1, 3)

    distinct = int(np.unique(_pack_rgb(rgb)).size)
    if distinct <= k:
        logger.info("Image has %d colours (<= k=%d); already flat", distinct, k)
        return buffer

    rng = np.random.RandomState(random_state)
    if rgb.shape[0] > sample_limit:
        samples = rgb[rng.choice(rgb.shape[0], sample_limit, replace=False)]
    else:
        samples = rgb
    samples = samples.astype(np.float32)

    n_clusters = min(k, int(np.unique(_pack_rgb(samples.astype(np.uint8))).size))

    # sklearn scales ``tol`` by the mean feature variance and compares it
    # with the summed squared centre shift
    variance = float(samples.var(axis=0).mean())
    tol = (epsilon ** 2) / variance if variance > 0 else 1e-4

    kmeans = KMeans(
        n_clusters=n_clusters,
        init="k-means++",
        n_init=1,
        max_iter=max_iterations,
        tol=tol,
        random_state=random_state,
    ).fit(samples)

    labels = kmeans.predict(rgb.astype(np.float32))
    centers = np.clip(np.rint(kmeans.cluster_centers_), 0, 255).astype(np.uint8)

    out = buffer.pixels.copy()
    out[:, :, :3] = centers[labels].reshape(h, w, 3)
    logger.info(
        "Segmented %dx%d image: %d colours -> %d clusters (%d iterations)",
        w, h, distinct, n_clusters, kmeans.n_iter_,
    )
    return PixelBuffer(out)


def segment_by_color(
    buffer: PixelBuffer,
    k: int = DEFAULT_CLUSTER_COUNT,
    policy: Optional[ClassificationPolicy] = None,
    max_iterations: int = KMEANS_MAX_ITER,
    epsilon: float = KMEANS_EPSILON,
    random_state: Optional[int] = 0,
    sample_limit: int = KMEANS_SAMPLE_LIMIT,
) -> PixelBuffer:
    """Replace every pixel with the centre of its k-means colour cluster.

    Near-grayscale input (mean saturation under the policy threshold) is
    returned unchanged, as is input that already has ``k`` colours or
    fewer.  Alpha is carried over untouched.  Clustering failures fall back
    to the input buffer.
    """
    buffer = ensure_buffer(buffer)
    if k < 1:
        raise ValueError("k must be >= 1")
    try:
        verdict = classify_grayscale(buffer, policy)
        if verdict.matched:
            logger.info(
                "Mean saturation %.1f below threshold; skipping segmentation", verdict.statistic
            )
            return buffer
        return _cluster(buffer, k, max_iterations, epsilon, random_state, sample_limit)
    except Exception:  # pylint: disable=broad-except
        logger.warning("Colour segmentation failed; keeping original image", exc_info=True)
        return buffer


def count_regions(buffer: PixelBuffer) -> int:
    """Number of 4-connected regions of identical colour.

    Meant for flat images (segmentation or line art output); the cost grows
    with the number of distinct colours.
    """
    flat = np.ascontiguousarray(buffer.pixels).reshape(-1, 4).view(np.uint32).reshape(
        buffer.height, buffer.width
    )
    total = 0
    for value in np.unique(flat):
        mask = (flat == value).astype(np.uint8)
        num_labels, _ = cv2.connectedComponents(mask, connectivity=4)
        total += num_labels - 1
    return total
