"""Route a freshly loaded image to the right preprocessing pipeline."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from .buffer import PixelBuffer, ensure_buffer
from .classify import PipelineKind, choose_pipeline
from .config import SessionConfig
from .lineart import to_line_art
from .segmentation import segment_by_color

logger = logging.getLogger(__name__)


def prepare_for_coloring(
    buffer: PixelBuffer,
    config: Optional[SessionConfig] = None,
) -> Tuple[PixelBuffer, PipelineKind]:
    """Turn a decoded image into a colorable buffer.

    In ``auto`` mode the classification policy decides: coloring pages are
    kept, grayscale photos become line art, colourful photos are flattened
    with k-means.  The other modes force one pipeline.

    Returns:
        ``(buffer, kind)``; ``buffer`` may be the input object itself.
    """
    buffer = ensure_buffer(buffer)
    config = config or SessionConfig()

    if config.pipeline == "auto":
        kind = choose_pipeline(buffer, config.policy)
    else:
        kind = PipelineKind(config.pipeline)
    logger.info("Preparing %s with pipeline '%s'", buffer, kind.value)

    if kind is PipelineKind.LINE_ART:
        # auto mode already knows this is not line art
        result = to_line_art(
            buffer,
            config.line_art,
            config.policy,
            max_dimension=config.max_dimension,
            check=config.pipeline != "auto",
        )
    elif kind is PipelineKind.SEGMENTATION:
        result = segment_by_color(buffer, config.cluster_count, config.policy)
    else:
        result = buffer
    return result, kind
