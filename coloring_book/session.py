"""Edit session: the active buffer, selected colour and undo/redo history.

History discipline
------------------
The undo stack always starts with the ``"Initial"`` snapshot of the loaded
image.  Every mutating action first pushes the buffer as it was *before*
the action, labelled with the action's name, and clears the redo stack.

``undo`` pops that entry, moves the current buffer onto the redo stack
under the same label and makes the popped buffer active again.  ``redo``
does the mirror image.  The initial snapshot is never popped, so
``can_undo`` is ``len(undo) > 1`` and ``can_redo`` is ``len(redo) > 0``.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .brush import segment, stamp
from .buffer import InvalidBufferError, PixelBuffer, ensure_buffer
from .classify import PipelineKind
from .colors import RED, Color, ColorHistory
from .config import SessionConfig
from .flood_fill import flood_fill
from .preprocess import prepare_for_coloring

logger = logging.getLogger(__name__)

LABEL_INITIAL = "Initial"
LABEL_FILL = "Fill"
LABEL_BRUSH = "Brush Stroke"


class DrawingMode(str, Enum):
    FILL = "fill"
    BRUSH = "brush"


@dataclass(frozen=True, eq=False)
class Snapshot:
    """Immutable copy of a buffer plus what it was saved for."""

    label: str
    pixels: np.ndarray
    created_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def capture(cls, label: str, buffer: PixelBuffer) -> "Snapshot":
        pixels = buffer.pixels.copy()
        pixels.flags.writeable = False
        return cls(label=label, pixels=pixels)

    def to_buffer(self) -> PixelBuffer:
        return PixelBuffer(self.pixels, copy=True)


class History:
    """Undo and redo stacks of :class:`Snapshot` objects.

    ``limit`` bounds the number of undo entries above the initial snapshot;
    the oldest such entry is dropped first.

    The base entry is never popped: it marks the bottom of the stack and
    keeps its pixels only as a record of the loaded image.  Undo restores
    the state stored in the entry above it, so once trimming starts the
    loaded image itself is no longer reachable, and the base still costs
    one buffer copy per session.
    """

    def __init__(self, limit: Optional[int] = None):
        self.limit = limit
        self._undo: List[Snapshot] = []
        self._redo: List[Snapshot] = []

    def reset(self, initial: Snapshot) -> None:
        self._undo = [initial]
        self._redo = []

    def clear(self) -> None:
        self._undo = []
        self._redo = []

    def record(self, snapshot: Snapshot) -> None:
        self._undo.append(snapshot)
        self._redo = []
        if self.limit is not None:
            while len(self._undo) - 1 > self.limit:
                del self._undo[1]

    def step_back(self, current: PixelBuffer) -> Optional[Snapshot]:
        if not self.can_undo:
            return None
        entry = self._undo.pop()
        self._redo.append(Snapshot.capture(entry.label, current))
        return entry

    def step_forward(self, current: PixelBuffer) -> Optional[Snapshot]:
        if not self.can_redo:
            return None
        entry = self._redo.pop()
        self._undo.append(Snapshot.capture(entry.label, current))
        return entry

    @property
    def can_undo(self) -> bool:
        return len(self._undo) > 1

    @property
    def can_redo(self) -> bool:
        return len(self._redo) > 0

    @property
    def undo_labels(self) -> List[str]:
        return [s.label for s in self._undo]

    @property
    def redo_labels(self) -> List[str]:
        return [s.label for s in self._redo]

    def __len__(self) -> int:
        return len(self._undo)


class EditSession:
    """Single owner of the image being coloured.

    Every public method takes the session lock, so calls from different
    threads are applied one after another.  ``load_image`` runs its
    preprocessing before taking the lock and only holds it to commit, so
    readers are not stalled by a slow pipeline.  Operations on an empty session
    (no image loaded) do nothing and return ``False``.
    """

    def __init__(self, config: Optional[SessionConfig] = None):
        self.config = config or SessionConfig()
        self._lock = threading.RLock()
        self._buffer: Optional[PixelBuffer] = None
        self._history = History(limit=self.config.history_limit)
        self._session_id = 0
        self._stroke_open = False
        self._last_brush_point: Optional[Tuple[int, int]] = None
        self.last_pipeline: Optional[PipelineKind] = None
        self.selected_color: Color = RED
        self.color_history = ColorHistory(self.config.color_history_size)
        self.drawing_mode = DrawingMode.FILL

    # ------------------------------------------------------------------
    # state
    # ------------------------------------------------------------------

    @property
    def is_loaded(self) -> bool:
        return self._buffer is not None

    @property
    def session_id(self) -> int:
        """Changes only when a new image is loaded."""
        return self._session_id

    @property
    def can_undo(self) -> bool:
        with self._lock:
            return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        with self._lock:
            return self._history.can_redo

    @property
    def history_labels(self) -> List[str]:
        with self._lock:
            return self._history.undo_labels

    @property
    def redo_labels(self) -> List[str]:
        with self._lock:
            return self._history.redo_labels

    @property
    def buffer(self) -> Optional[PixelBuffer]:
        """Read-only copy of the active buffer, or ``None`` when empty.

        The copy is detached from the session, so later strokes never show
        up half-applied in something a renderer already holds.
        """
        with self._lock:
            if self._buffer is None:
                return None
            return self._buffer.frozen_copy()

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    def load_image(
        self,
        buffer,
        preprocess: Optional[bool] = None,
        adjust: Optional[Callable[[PixelBuffer], PixelBuffer]] = None,
    ) -> PixelBuffer:
        """Start a new session on ``buffer``.

        Args:
            buffer: Decoded image (``PixelBuffer``, PIL image or array).
            preprocess: Run the classification/preprocessing pipelines;
                        defaults to ``config.pipeline != "none"``.
            adjust: Optional hook applied to the prepared buffer before it
                    is committed (e.g. a user-tuned line art preview).

        Raises:
            InvalidBufferError: the input (or the adjusted result) is not a
                usable image.
        """
        source = ensure_buffer(buffer, "image")
        if preprocess is None:
            preprocess = self.config.pipeline != "none"

        # pipelines and the hook only read ``source``; readers keep going
        if preprocess:
            prepared, kind = prepare_for_coloring(source, self.config)
        else:
            prepared, kind = source, PipelineKind.NONE
        if adjust is not None:
            prepared = adjust(prepared)
            if not isinstance(prepared, PixelBuffer):
                raise InvalidBufferError("adjust hook must return a PixelBuffer")
        # never alias the caller's pixels
        prepared = prepared.copy()

        with self._lock:
            self._buffer = prepared
            self._history.reset(Snapshot.capture(LABEL_INITIAL, self._buffer))
            self._close_stroke()
            self._session_id += 1
            self.last_pipeline = kind
            logger.info(
                "Session %d: loaded %s via '%s'", self._session_id, self._buffer, kind.value
            )
            return self._buffer.frozen_copy()

    def clear_image(self) -> None:
        with self._lock:
            self._buffer = None
            self._history.clear()
            self._close_stroke()
            self.last_pipeline = None

    # ------------------------------------------------------------------
    # colour / mode
    # ------------------------------------------------------------------

    def select_color(self, color: Sequence[int]) -> Color:
        color = Color.coerce(color)
        with self._lock:
            self.selected_color = color
            self.color_history.push(color)
        return color

    def set_drawing_mode(self, mode) -> DrawingMode:
        with self._lock:
            self.drawing_mode = DrawingMode(mode)
            self._close_stroke()
            return self.drawing_mode

    # ------------------------------------------------------------------
    # editing
    # ------------------------------------------------------------------

    def fill(self, x: float, y: float) -> bool:
        with self._lock:
            if self._buffer is None:
                return False
            self._close_stroke()
            cx, cy = self._buffer.clamp(x, y)
            self._history.record(Snapshot.capture(LABEL_FILL, self._buffer))
            flood_fill(self._buffer, cx, cy, self.selected_color, self.config.fill_tolerance)
            return True

    def start_brush_stroke(self) -> bool:
        """Snapshot once for the whole drag that follows."""
        with self._lock:
            if self._buffer is None:
                return False
            self._history.record(Snapshot.capture(LABEL_BRUSH, self._buffer))
            self._stroke_open = True
            self._last_brush_point = None
            return True

    def brush_draw(self, x: float, y: float) -> bool:
        """Continue the current stroke at ``(x, y)``, opening one if needed."""
        with self._lock:
            if self._buffer is None:
                return False
            if not self._stroke_open:
                self.start_brush_stroke()
            point = (int(round(x)), int(round(y)))
            radius = self.config.brush_radius
            antialias = self.config.brush_antialias
            if self._last_brush_point is None:
                stamp(self._buffer, point[0], point[1], self.selected_color, radius, antialias)
            else:
                segment(self._buffer, self._last_brush_point, point, self.selected_color, radius, antialias)
            self._last_brush_point = point
            return True

    def end_brush_stroke(self) -> None:
        with self._lock:
            self._close_stroke()

    def tap(self, x: float, y: float) -> bool:
        """Single tap: fill in fill mode, a single dab in brush mode."""
        with self._lock:
            if self.drawing_mode is DrawingMode.FILL:
                return self.fill(x, y)
            if not self.start_brush_stroke():
                return False
            self.brush_draw(x, y)
            self._close_stroke()
            return True

    def drag(self, points: Iterable[Tuple[float, float]]) -> bool:
        """A complete drag gesture; only meaningful in brush mode."""
        with self._lock:
            if self.drawing_mode is not DrawingMode.BRUSH or self._buffer is None:
                return False
            self.start_brush_stroke()
            for x, y in points:
                self.brush_draw(x, y)
            self._close_stroke()
            return True

    def undo(self) -> bool:
        with self._lock:
            if self._buffer is None:
                return False
            self._close_stroke()
            entry = self._history.step_back(self._buffer)
            if entry is None:
                return False
            self._buffer = entry.to_buffer()
            logger.debug("Undo '%s'", entry.label)
            return True

    def redo(self) -> bool:
        with self._lock:
            if self._buffer is None:
                return False
            self._close_stroke()
            entry = self._history.step_forward(self._buffer)
            if entry is None:
                return False
            self._buffer = entry.to_buffer()
            logger.debug("Redo '%s'", entry.label)
            return True

    def _close_stroke(self) -> None:
        self._stroke_open = False
        self._last_brush_point = None
