"""Run session operations off the caller's thread, one at a time."""

from __future__ import annotations

import concurrent.futures
import logging
from typing import Callable, Iterable, Optional, Sequence, Tuple

from .buffer import PixelBuffer
from .session import EditSession

logger = logging.getLogger(__name__)

BufferCallback = Callable[[Optional[PixelBuffer]], None]


class SessionWorker:
    """Serialises every call against an :class:`EditSession`.

    A single worker thread executes submitted operations strictly in
    arrival order, so brush points are never reordered and a new
    ``load_image`` / ``clear_image`` only starts after the fill or pipeline
    run queued before it has committed.  Each call returns a
    ``concurrent.futures.Future``; when ``callback`` is given it receives a
    read-only copy of the resulting buffer after every operation.
    """

    def __init__(self, session: Optional[EditSession] = None, callback: Optional[BufferCallback] = None):
        self.session = session or EditSession()
        self.callback = callback
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="coloring-session"
        )

    def submit(self, fn: Callable, *args, **kwargs) -> concurrent.futures.Future:
        return self._executor.submit(self._run, fn, args, kwargs)

    def _run(self, fn: Callable, args: tuple, kwargs: dict):
        result = fn(*args, **kwargs)
        if self.callback is not None:
            try:
                self.callback(self.session.buffer)
            except Exception:  # pylint: disable=broad-except
                logger.exception("Buffer callback failed after %s", getattr(fn, "__name__", fn))
        return result

    # -- session operations -------------------------------------------------

    def load_image(self, buffer, **kwargs) -> concurrent.futures.Future:
        return self.submit(self.session.load_image, buffer, **kwargs)

    def clear_image(self) -> concurrent.futures.Future:
        return self.submit(self.session.clear_image)

    def select_color(self, color: Sequence[int]) -> concurrent.futures.Future:
        return self.submit(self.session.select_color, color)

    def fill(self, x: float, y: float) -> concurrent.futures.Future:
        return self.submit(self.session.fill, x, y)

    def start_brush_stroke(self) -> concurrent.futures.Future:
        return self.submit(self.session.start_brush_stroke)

    def brush_draw(self, x: float, y: float) -> concurrent.futures.Future:
        return self.submit(self.session.brush_draw, x, y)

    def end_brush_stroke(self) -> concurrent.futures.Future:
        return self.submit(self.session.end_brush_stroke)

    def drag(self, points: Iterable[Tuple[float, float]]) -> concurrent.futures.Future:
        return self.submit(self.session.drag, list(points))

    def undo(self) -> concurrent.futures.Future:
        return self.submit(self.session.undo)

    def redo(self) -> concurrent.futures.Future:
        return self.submit(self.session.redo)

    # -- lifecycle ------------------------------------------------------------

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "SessionWorker":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown(wait=True)
