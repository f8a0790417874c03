"""Tests for the pixel buffer, colour matching and picker palette."""

from __future__ import annotations

import numpy as np
import pytest
from PIL import Image

from coloring_book.buffer import InvalidBufferError, PixelBuffer, ensure_buffer
from coloring_book.colors import (
    BLACK,
    RED,
    WHITE,
    Color,
    ColorHistory,
    generate_palette,
    similar,
    similar_mask,
)


# ---------------------------------------------------------------------------
# Tests: PixelBuffer
# ---------------------------------------------------------------------------


class TestPixelBuffer:
    def test_rgb_is_promoted_to_opaque_rgba(self):
        rgb = np.zeros((3, 5, 3), dtype=np.uint8)
        buf = PixelBuffer(rgb)
        assert buf.pixels.shape == (3, 5, 4)
        assert buf.width == 5 and buf.height == 3
        assert np.all(buf.pixels[:, :, 3] == 255)

    def test_grayscale_is_promoted(self):
        gray = np.full((2, 2), 128, dtype=np.uint8)
        buf = PixelBuffer(gray)
        assert buf.get_pixel(1, 1) == Color(128, 128, 128, 255)

    @pytest.mark.parametrize("shape", [(0, 4, 4), (4, 0, 4), (4, 4, 2), (4,)])
    def test_malformed_arrays_rejected(self, shape):
        with pytest.raises(InvalidBufferError):
            PixelBuffer(np.zeros(shape, dtype=np.uint8))

    def test_blank_rejects_zero_size(self):
        with pytest.raises(InvalidBufferError):
            PixelBuffer.blank(0, 10)

    def test_out_of_range_write_is_ignored(self):
        buf = PixelBuffer.blank(3, 3, WHITE)
        before = buf.copy()
        assert buf.set_pixel(3, 0, BLACK) is False
        assert buf.set_pixel(-1, 2, BLACK) is False
        assert buf == before

    def test_out_of_range_read_raises(self):
        buf = PixelBuffer.blank(3, 3)
        with pytest.raises(IndexError):
            buf.get_pixel(0, 3)

    def test_clamp(self):
        buf = PixelBuffer.blank(10, 4)
        assert buf.clamp(-3, 2) == (0, 2)
        assert buf.clamp(12.7, 9) == (9, 3)

    def test_pil_round_trip(self):
        img = Image.new("RGB", (6, 4), (10, 20, 30))
        buf = PixelBuffer.from_image(img)
        assert buf.get_pixel(5, 3) == Color(10, 20, 30, 255)
        out = buf.to_image()
        assert out.mode == "RGBA"
        assert out.size == (6, 4)

    def test_frozen_copy_is_detached_and_read_only(self):
        buf = PixelBuffer.blank(2, 2, WHITE)
        frozen = buf.frozen_copy()
        assert not frozen.writeable
        with pytest.raises(ValueError):
            frozen.pixels[0, 0] = (0, 0, 0, 255)
        buf.set_pixel(0, 0, BLACK)
        assert frozen.get_pixel(0, 0) == WHITE

    def test_read_only_view_tracks_edits(self):
        buf = PixelBuffer.blank(2, 2, WHITE)
        view = buf.read_only()
        assert not view.writeable
        assert buf.writeable, "Owner must stay writeable"
        with pytest.raises(ValueError):
            view.pixels[0, 0] = (0, 0, 0, 255)
        buf.set_pixel(1, 0, RED)
        assert view.get_pixel(1, 0) == RED, "View shares storage with the owner"

    def test_copy_does_not_alias(self):
        buf = PixelBuffer.blank(2, 2, WHITE)
        dup = buf.copy()
        dup.set_pixel(1, 1, RED)
        assert buf.get_pixel(1, 1) == WHITE
        assert buf != dup

    def test_count_colors(self):
        buf = PixelBuffer.blank(4, 4, WHITE)
        buf.set_pixel(0, 0, BLACK)
        buf.set_pixel(1, 0, RED)
        assert buf.count_colors() == 3

    def test_ensure_buffer_accepts_images_and_arrays(self):
        assert isinstance(ensure_buffer(Image.new("L", (2, 2))), PixelBuffer)
        assert isinstance(ensure_buffer(np.zeros((2, 2, 4), dtype=np.uint8)), PixelBuffer)
        with pytest.raises(InvalidBufferError):
            ensure_buffer(None)


# ---------------------------------------------------------------------------
# Tests: colour matching
# ---------------------------------------------------------------------------


class TestSimilar:
    def test_zero_tolerance_is_exact(self):
        assert similar(RED, RED, 0)
        assert not similar(RED, Color(254, 0, 0), 0)

    def test_every_channel_counts(self):
        assert similar((100, 100, 100, 255), (130, 70, 100, 225), 30)
        assert not similar((100, 100, 100, 255), (100, 100, 100, 224), 30)

    def test_negative_tolerance_rejected(self):
        with pytest.raises(ValueError):
            similar(RED, RED, -1)

    def test_mask_matches_scalar_version(self):
        pixels = np.array(
            [[[0, 0, 0, 255], [20, 0, 0, 255]], [[21, 0, 0, 255], [0, 0, 0, 0]]],
            dtype=np.uint8,
        )
        mask = similar_mask(pixels, (0, 0, 0, 255), 20)
        assert mask.tolist() == [[True, True], [False, False]]


class TestColor:
    def test_hex_parsing(self):
        assert Color.from_hex("#FFA500") == Color(255, 165, 0, 255)
        assert Color.from_hex("80FF0000") == Color(255, 0, 0, 128)
        with pytest.raises(ValueError):
            Color.from_hex("#123")

    def test_argb(self):
        assert Color.from_argb(0xFF00FF00) == Color(0, 255, 0, 255)
        assert Color(1, 2, 3, 4).to_argb() == 0x04010203

    def test_coerce_validates_range(self):
        with pytest.raises(ValueError):
            Color.coerce((256, 0, 0))
        assert Color.coerce(np.array([1, 2, 3], dtype=np.uint8)) == Color(1, 2, 3, 255)


# ---------------------------------------------------------------------------
# Tests: palette and recent colours
# ---------------------------------------------------------------------------


class TestPalette:
    def test_palette_size(self):
        assert len(generate_palette()) == 14 * 2 * 10

    def test_tints_and_shades_interleave(self):
        palette = generate_palette()
        assert palette[0] == Color(255, 26, 26), "first tint of red"
        assert palette[1] == Color(230, 0, 0), "first shade of red"
        assert palette[18] == WHITE, "last tint reaches white"
        assert palette[19] == BLACK, "last shade reaches black"


class TestColorHistory:
    def test_reselect_moves_to_front(self):
        history = ColorHistory(capacity=3)
        history.push(RED)
        history.push(BLACK)
        history.push(RED)
        assert history.colors == [RED, BLACK]

    def test_capacity(self):
        history = ColorHistory(capacity=2)
        for value in range(5):
            history.push((value, 0, 0))
        assert history.colors == [Color(4, 0, 0), Color(3, 0, 0)]
        assert len(history) == 2
