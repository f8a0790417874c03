"""Public interface for the coloring book raster editing core."""

from __future__ import annotations

from .brush import stamp, stroke
from .buffer import InvalidBufferError, PixelBuffer
from .classify import Classification, PipelineKind, choose_pipeline, classify_grayscale, classify_line_art
from .colors import Color, ColorHistory, generate_palette, similar
from .config import ClassificationPolicy, LineArtParams, SessionConfig
from .flood_fill import fill_region, flood_fill
from .lineart import LinePreview, to_line_art
from .preprocess import prepare_for_coloring
from .segmentation import count_regions, segment_by_color
from .session import DrawingMode, EditSession, History, Snapshot
from .worker import SessionWorker

__version__ = "0.1.0"

__all__ = [
    "Classification",
    "ClassificationPolicy",
    "Color",
    "ColorHistory",
    "DrawingMode",
    "EditSession",
    "History",
    "InvalidBufferError",
    "LineArtParams",
    "LinePreview",
    "PipelineKind",
    "PixelBuffer",
    "SessionConfig",
    "SessionWorker",
    "Snapshot",
    "choose_pipeline",
    "classify_grayscale",
    "classify_line_art",
    "count_regions",
    "fill_region",
    "flood_fill",
    "generate_palette",
    "prepare_for_coloring",
    "segment_by_color",
    "similar",
    "stamp",
    "stroke",
    "to_line_art",
]
