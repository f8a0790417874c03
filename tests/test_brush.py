"""Brush stamping and stroke joining."""

from __future__ import annotations

import numpy as np
import pytest

from coloring_book.brush import segment, stamp, stroke
from coloring_book.buffer import PixelBuffer
from coloring_book.colors import BLACK, RED, WHITE


class TestStamp:
    def test_disk_is_filled_around_centre(self):
        buf = PixelBuffer.blank(40, 40, WHITE)
        stamp(buf, 20, 20, RED, radius=5)
        assert buf.get_pixel(20, 20) == RED
        assert buf.get_pixel(24, 20) == RED
        assert buf.get_pixel(20, 27) == WHITE, "Outside the radius must stay untouched"
        assert buf.get_pixel(0, 0) == WHITE

    def test_clipped_at_edges(self):
        buf = PixelBuffer.blank(10, 10, WHITE)
        stamp(buf, 0, 0, RED, radius=5)
        assert buf.get_pixel(0, 0) == RED
        assert buf.get_pixel(9, 9) == WHITE

    def test_fully_outside_is_a_no_op(self):
        buf = PixelBuffer.blank(10, 10, WHITE)
        before = buf.copy()
        stamp(buf, -100, -100, RED, radius=5)
        assert buf == before

    def test_invalid_radius(self):
        buf = PixelBuffer.blank(4, 4)
        with pytest.raises(ValueError):
            stamp(buf, 1, 1, RED, radius=0)

    def test_antialiased_rim_is_blended(self):
        buf = PixelBuffer.blank(40, 40, WHITE)
        stamp(buf, 20, 20, BLACK, radius=8, antialias=True)
        red_channel = buf.pixels[:, :, 0]
        assert buf.get_pixel(20, 20) == BLACK
        partial = (red_channel > 0) & (red_channel < 255)
        assert partial.any(), "Anti-aliased disk should have soft edge pixels"

    def test_hard_edge_has_only_two_colours(self):
        buf = PixelBuffer.blank(40, 40, WHITE)
        stamp(buf, 20, 20, BLACK, radius=8)
        assert buf.count_colors() == 2


class TestStroke:
    def test_fast_drag_leaves_no_gap(self):
        buf = PixelBuffer.blank(60, 20, WHITE)
        stroke(buf, [(5, 10), (55, 10)], RED, radius=2)
        row = buf.pixels[10, 5:56]
        assert np.all(row == RED), "Segment between points must be painted"

    def test_segment_ends_with_disk(self):
        buf = PixelBuffer.blank(30, 30, WHITE)
        segment(buf, (5, 5), (20, 20), RED, radius=3)
        assert buf.get_pixel(20, 22) == RED
        assert buf.get_pixel(5, 25) == WHITE

    def test_empty_stroke(self):
        buf = PixelBuffer.blank(5, 5, WHITE)
        before = buf.copy()
        stroke(buf, [], RED, radius=2)
        assert buf == before
