"""Editing core configuration: defaults, knob ranges, classification policy."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from typing import Optional, Tuple


# ---------------------------------------------------------------------------
# Fill / brush defaults
# ---------------------------------------------------------------------------
DEFAULT_FILL_TOLERANCE = 30
DEFAULT_BRUSH_RADIUS = 15

# Undo entries kept above the initial snapshot.  Each entry is a full copy
# of the buffer, so a 1024x1024 image costs 4 MiB per step.
HISTORY_LIMIT = 50

# "Recent" colours shown next to the palette
COLOR_HISTORY_SIZE = 8


# ---------------------------------------------------------------------------
# Line art pipeline
# ---------------------------------------------------------------------------
# Photos larger than this on either side are area-downsampled first.
MAX_DIMENSION = 1024

# Neighbourhood diameter of the bilateral filter
BILATERAL_DIAMETER = 9

# Canny upper threshold = lower * ratio
CANNY_RATIO = 2.5

# Tuned constants for the simple (no knobs) variant
SIMPLE_CANNY_LOW = 50
SIMPLE_CANNY_HIGH = 150

# Anything at or below this after inversion becomes black
BINARY_CUTOFF = 240

EDGE_THRESHOLD_RANGE: Tuple[float, float] = (10.0, 80.0)
EDGE_THICKNESS_RANGE: Tuple[int, int] = (1, 5)
BLUR_AMOUNT_RANGE: Tuple[int, int] = (1, 7)
DETAIL_PRESERVATION_RANGE: Tuple[float, float] = (50.0, 150.0)


# ---------------------------------------------------------------------------
# Segmentation
# ---------------------------------------------------------------------------
DEFAULT_CLUSTER_COUNT = 16
KMEANS_MAX_ITER = 10
KMEANS_EPSILON = 1.0
# k-means is fitted on at most this many pixels, then every pixel is
# assigned to its nearest centre.
KMEANS_SAMPLE_LIMIT = 20000


PIPELINE_MODES = ("auto", "line_art", "segmentation", "none")

# Registered "already a coloring page" checks, see classify.LINE_ART_HEURISTICS
LINE_ART_HEURISTIC_NAMES = ("unique_colors", "white_fraction")


def _clamp(value, bounds):
    low, high = bounds
    return max(low, min(high, value))


@dataclass(frozen=True)
class LineArtParams:
    """The four knobs of the photo-to-line-art adjustment screen."""

    edge_threshold: float = 30.0       # Canny lower threshold ("detail level")
    edge_thickness: int = 2            # dilation kernel size in pixels
    blur_amount: int = 3               # Gaussian kernel = 2 * blur_amount - 1
    detail_preservation: float = 75.0  # bilateral sigma (colour and space)

    @property
    def upper_threshold(self) -> float:
        return self.edge_threshold * CANNY_RATIO

    @property
    def kernel_size(self) -> int:
        return max(1, 2 * int(self.blur_amount) - 1)

    def validated(self) -> "LineArtParams":
        """Return a copy with every knob clamped to its documented range."""
        return LineArtParams(
            edge_threshold=float(_clamp(self.edge_threshold, EDGE_THRESHOLD_RANGE)),
            edge_thickness=int(_clamp(int(self.edge_thickness), EDGE_THICKNESS_RANGE)),
            blur_amount=int(_clamp(int(self.blur_amount), BLUR_AMOUNT_RANGE)),
            detail_preservation=float(
                _clamp(self.detail_preservation, DETAIL_PRESERVATION_RANGE)
            ),
        )

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "LineArtParams":
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})


@dataclass(frozen=True)
class ClassificationPolicy:
    """Thresholds for the "already a coloring page" / "grayscale" checks.

    The line art check is swappable: ``unique_colors`` counts distinct
    colours in a downsample, ``white_fraction`` looks for a mostly white,
    unsaturated page.
    """

    line_art_heuristic: str = "unique_colors"
    max_line_art_colors: int = 2
    min_white_fraction: float = 0.6
    white_cutoff: int = 240
    grayscale_saturation: float = 15.0   # mean HSV saturation, 0-255 scale
    sample_size: int = 128               # longest side of the downsample

    def __post_init__(self):
        if self.line_art_heuristic not in LINE_ART_HEURISTIC_NAMES:
            raise ValueError(f"Unknown line art heuristic: {self.line_art_heuristic}")
        if not 0 <= self.white_cutoff <= 255:
            raise ValueError("white_cutoff must be in 0..255")

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "ClassificationPolicy":
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})


@dataclass
class SessionConfig:
    """Runtime knobs for an edit session."""

    # --- Fill ---
    fill_tolerance: int = DEFAULT_FILL_TOLERANCE

    # --- Brush ---
    brush_radius: int = DEFAULT_BRUSH_RADIUS
    brush_antialias: bool = False

    # --- Preprocessing ---
    pipeline: str = "auto"   # one of PIPELINE_MODES
    cluster_count: int = DEFAULT_CLUSTER_COUNT
    max_dimension: int = MAX_DIMENSION
    line_art: LineArtParams = field(default_factory=LineArtParams)
    policy: ClassificationPolicy = field(default_factory=ClassificationPolicy)

    # --- History ---
    history_limit: Optional[int] = HISTORY_LIMIT
    color_history_size: int = COLOR_HISTORY_SIZE

    def __post_init__(self):
        if self.pipeline not in PIPELINE_MODES:
            raise ValueError(f"Unsupported pipeline mode: {self.pipeline}")
        if self.fill_tolerance < 0:
            raise ValueError("fill_tolerance must be >= 0")
        if self.brush_radius < 1:
            raise ValueError("brush_radius must be >= 1")
        if self.history_limit is not None and self.history_limit < 1:
            raise ValueError("history_limit must be >= 1 or None")

    def with_line_art(self, **changes) -> "SessionConfig":
        return replace(self, line_art=replace(self.line_art, **changes).validated())

    def to_dict(self) -> dict:
        d = {}
        for k, v in self.__dict__.items():
            if isinstance(v, (LineArtParams, ClassificationPolicy)):
                d[k] = v.to_dict()
            else:
                d[k] = v
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "SessionConfig":
        d = dict(d)
        if isinstance(d.get("line_art"), dict):
            d["line_art"] = LineArtParams.from_dict(d["line_art"])
        if isinstance(d.get("policy"), dict):
            d["policy"] = ClassificationPolicy.from_dict(d["policy"])
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})
