"""Tests for component finding, box merging, reading order and full runs.

All sheets are synthetic numpy RGBA arrays painted on a flat background.
"""

from __future__ import annotations

import itertools

import numpy as np
import pytest

from sprite_patcher.boxes import BoundingBox
from sprite_patcher.components import find_components
from sprite_patcher.config import DetectionConfig
from sprite_patcher.detector import NoBackgroundError, detect_sprites
from sprite_patcher.merge import merge_overlapping, merge_pass, overlaps
from sprite_patcher.ordering import order_boxes, row_index
from sprite_patcher.raster import BackgroundColor, Raster


MAGENTA = (255, 0, 255, 255)
INK = (10, 200, 30, 255)
BG = BackgroundColor(*MAGENTA)


# ---------------------------------------------------------------------------
# Synthetic sheet helpers
# ---------------------------------------------------------------------------


def _make_sheet(width: int, height: int, bg=MAGENTA) -> np.ndarray:
    return np.tile(np.array(bg, dtype=np.uint8), (height, width, 1))


def _paint(sheet: np.ndarray, x: int, y: int, w: int, h: int, color=INK) -> np.ndarray:
    sheet[y:y + h, x:x + w] = color
    return sheet


def _raster(sheet: np.ndarray) -> Raster:
    return Raster.from_array(sheet, name="test.png")


# ---------------------------------------------------------------------------
# Tests: component finding
# ---------------------------------------------------------------------------


class TestFindComponents:
    def test_all_background_is_empty(self):
        assert find_components(_raster(_make_sheet(16, 12)), BG) == []

    def test_single_pixel(self):
        sheet = _paint(_make_sheet(10, 10), 3, 4, 1, 1)
        assert find_components(_raster(sheet), BG) == [BoundingBox(3, 4, 1, 1)]

    def test_diagonal_pixels_are_connected(self):
        sheet = _make_sheet(8, 8)
        for i in range(3):
            _paint(sheet, 2 + i, 1 + i, 1, 1)
        assert find_components(_raster(sheet), BG) == [BoundingBox(2, 1, 3, 3)]

    def test_ring_yields_one_box(self):
        sheet = _paint(_make_sheet(20, 20), 4, 4, 9, 7)
        _paint(sheet, 6, 6, 5, 3, MAGENTA)
        assert find_components(_raster(sheet), BG) == [BoundingBox(4, 4, 9, 7)]

    def test_boxes_come_out_in_seed_order(self):
        """The component whose first pixel is higher up is emitted first."""
        sheet = _make_sheet(30, 20)
        _paint(sheet, 0, 8, 4, 4)    # left but lower
        _paint(sheet, 20, 2, 3, 10)  # right but starts higher
        boxes = find_components(_raster(sheet), BG)
        assert boxes == [BoundingBox(20, 2, 3, 10), BoundingBox(0, 8, 4, 4)]

    def test_background_match_uses_alpha(self):
        """A pixel differing only in alpha is foreground."""
        sheet = _make_sheet(6, 6)
        sheet[2, 2] = (255, 0, 255, 0)
        assert find_components(_raster(sheet), BG) == [BoundingBox(2, 2, 1, 1)]

    def test_rgb_input_treated_as_opaque(self):
        sheet = _paint(_make_sheet(6, 6), 1, 1, 2, 2)[:, :, :3]
        assert find_components(_raster(sheet), BackgroundColor(255, 0, 255)) == [
            BoundingBox(1, 1, 2, 2)
        ]

    def test_zero_sized_raster_is_empty(self):
        empty = Raster.from_array(np.zeros((0, 5, 4), dtype=np.uint8))
        assert find_components(empty, BG) == []

    def test_large_foreground_region_does_not_recurse(self):
        """A full-sheet component must not hit any call-depth limit."""
        sheet = _make_sheet(300, 300, bg=INK)
        boxes = find_components(_raster(sheet), BG)
        assert boxes == [BoundingBox(0, 0, 300, 300)]

    def test_partition_property(self):
        """Separated sprites each get their own box and no pixel is shared."""
        w, h = 40, 30
        sheet = _make_sheet(w, h)
        _paint(sheet, 2, 2, 2, 8)            # L shape: upright
        _paint(sheet, 2, 8, 7, 2)            # L shape: foot
        for i in range(7):                   # diagonal stroke
            _paint(sheet, 15 + i, 3 + i, 1, 1)
        _paint(sheet, 28, 2, 6, 6)           # solid block
        _paint(sheet, 3, 16, 10, 8)          # ring
        _paint(sheet, 5, 18, 6, 4, MAGENTA)
        _paint(sheet, 35, 25, 1, 1)          # lone pixel

        boxes = find_components(_raster(sheet), BG)
        assert sorted(boxes, key=lambda b: (b.x, b.y)) == [
            BoundingBox(2, 2, 7, 8),
            BoundingBox(3, 16, 10, 8),
            BoundingBox(15, 3, 7, 7),
            BoundingBox(28, 2, 6, 6),
            BoundingBox(35, 25, 1, 1),
        ]
        assert sum(b.area for b in boxes) <= w * h

        coverage = np.zeros((h, w), dtype=np.int32)
        for b in boxes:
            coverage[b.y:b.bottom, b.x:b.right] += 1
        foreground = np.any(sheet != np.array(MAGENTA, dtype=np.uint8), axis=2)
        assert np.all(coverage[foreground] == 1), "every sprite pixel should sit in exactly one box"

    def test_opencv_backend_matches_flood(self):
        rng = np.random.RandomState(7)
        sheet = _make_sheet(60, 40)
        sheet[rng.rand(40, 60) < 0.08] = INK
        _paint(sheet, 10, 10, 12, 6)
        raster = _raster(sheet)
        flood = find_components(raster, BG, backend="flood")
        cv = find_components(raster, BG, backend="opencv")
        assert cv == flood

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            find_components(_raster(_make_sheet(4, 4)), BG, backend="scanline")


# ---------------------------------------------------------------------------
# Tests: merging
# ---------------------------------------------------------------------------


class TestOverlaps:
    def test_gap_within_tolerance(self):
        a, b = BoundingBox(0, 0, 5, 5), BoundingBox(6, 0, 5, 5)
        assert overlaps(a, b, 2)

    def test_gap_beyond_zero_tolerance(self):
        a, b = BoundingBox(0, 0, 5, 5), BoundingBox(6, 0, 5, 5)
        assert not overlaps(a, b, 0)

    def test_touching_edges_zero_tolerance(self):
        assert not overlaps(BoundingBox(0, 0, 5, 5), BoundingBox(5, 0, 5, 5), 0)

    def test_vertical_separation(self):
        a, b = BoundingBox(0, 0, 5, 5), BoundingBox(0, 20, 5, 5)
        assert not overlaps(a, b, 2)
        assert overlaps(a, b, 8)

    def test_symmetric(self):
        boxes = [
            BoundingBox(0, 0, 5, 5),
            BoundingBox(6, 0, 5, 5),
            BoundingBox(3, 3, 1, 1),
            BoundingBox(12, 9, 4, 2),
            BoundingBox(0, 7, 20, 1),
        ]
        for a, b in itertools.product(boxes, repeat=2):
            for t in range(5):
                assert overlaps(a, b, t) == overlaps(b, a, t), (a, b, t)


class TestMerge:
    def test_close_boxes_merge(self):
        boxes = [BoundingBox(0, 0, 5, 5), BoundingBox(6, 0, 5, 5)]
        assert merge_overlapping(boxes, tolerance=2) == [BoundingBox(0, 0, 11, 5)]

    def test_zero_tolerance_keeps_them_apart(self):
        boxes = [BoundingBox(0, 0, 5, 5), BoundingBox(6, 0, 5, 5)]
        assert merge_overlapping(boxes, tolerance=0) == boxes

    def test_input_not_modified(self):
        boxes = [BoundingBox(0, 0, 5, 5), BoundingBox(6, 0, 5, 5)]
        merge_overlapping(boxes, tolerance=2)
        assert len(boxes) == 2

    def test_first_match_wins(self):
        """A box joins the first group it overlaps even if a later one is closer."""
        boxes = [BoundingBox(0, 0, 4, 4), BoundingBox(6, 0, 4, 4), BoundingBox(4, 0, 2, 4)]
        merged = merge_pass(boxes, tolerance=0)
        assert merged == [BoundingBox(0, 0, 4, 4), BoundingBox(6, 0, 4, 4), BoundingBox(4, 0, 2, 4)]
        # at tolerance 1 the last box touches both groups but only joins the first
        merged = merge_pass(boxes, tolerance=1)
        assert merged == [BoundingBox(0, 0, 6, 4), BoundingBox(6, 0, 4, 4)]

    def test_chain_needs_second_pass(self):
        a = BoundingBox(0, 0, 2, 2)
        b = BoundingBox(9, 0, 2, 2)
        c = BoundingBox(5, 0, 2, 2)
        assert merge_overlapping([a, b, c], tolerance=2, passes=1) == [
            BoundingBox(0, 0, 7, 2), b,
        ]
        assert merge_overlapping([a, b, c], tolerance=2) == [BoundingBox(0, 0, 11, 2)]

    def _three_pass_layout(self):
        return [
            BoundingBox(10, 10, 2, 2),
            BoundingBox(10, 4, 2, 2),
            BoundingBox(4, 4, 5, 5),
            BoundingBox(8, 8, 3, 3),
        ]

    def test_default_two_passes_is_not_a_fixpoint(self):
        merged = merge_overlapping(self._three_pass_layout(), tolerance=0)
        assert merged == [BoundingBox(4, 4, 8, 8), BoundingBox(10, 4, 2, 2)]

    def test_converge_reaches_fixpoint(self):
        merged = merge_overlapping(self._three_pass_layout(), tolerance=0, converge=True)
        assert merged == [BoundingBox(4, 4, 8, 8)]
        assert merge_overlapping(self._three_pass_layout(), tolerance=0, passes=3) == merged

    def test_converged_boxes_do_not_overlap(self):
        rng = np.random.RandomState(11)
        boxes = [
            BoundingBox(int(x), int(y), int(w), int(h))
            for x, y, w, h in zip(
                rng.randint(0, 200, 40), rng.randint(0, 200, 40),
                rng.randint(1, 12, 40), rng.randint(1, 12, 40),
            )
        ]
        merged = merge_overlapping(boxes, tolerance=2, converge=True)
        for a, b in itertools.combinations(merged, 2):
            assert not overlaps(a, b, 2), (a, b)
        assert merge_pass(merged, tolerance=2) == merged

    def test_rejects_bad_arguments(self):
        with pytest.raises(ValueError):
            merge_overlapping([], tolerance=-1)
        with pytest.raises(ValueError):
            merge_overlapping([], passes=0)


# ---------------------------------------------------------------------------
# Tests: reading order
# ---------------------------------------------------------------------------


class TestOrdering:
    def test_row_indices(self):
        boxes = [BoundingBox(0, 0, 5, 5), BoundingBox(0, 1, 5, 5), BoundingBox(0, 25, 5, 5)]
        assert [row_index(b, 0, 20) for b in boxes] == [0, 0, 1]

    def test_lower_row_sorts_last_regardless_of_x(self):
        a = BoundingBox(50, 0, 5, 5)
        b = BoundingBox(10, 1, 5, 5)
        c = BoundingBox(0, 25, 5, 5)
        assert order_boxes([c, a, b]) == [b, a, c]

    def test_rows_measured_from_topmost_box(self):
        a = BoundingBox(40, 30, 4, 4)
        b = BoundingBox(0, 45, 4, 4)
        assert order_boxes([a, b]) == [b, a]

    def test_center_x_breaks_ties_within_row(self):
        wide = BoundingBox(0, 0, 30, 4)     # center 15
        narrow = BoundingBox(10, 2, 2, 2)   # center 11
        assert order_boxes([wide, narrow]) == [narrow, wide]

    def test_stable_for_equal_keys(self):
        a = BoundingBox(0, 0, 4, 4)
        b = BoundingBox(0, 3, 4, 4)
        assert order_boxes([b, a]) == [b, a]

    def test_custom_row_height(self):
        a = BoundingBox(50, 0, 5, 5)
        c = BoundingBox(0, 25, 5, 5)
        assert order_boxes([a, c], row_height=40) == [c, a]

    def test_empty(self):
        assert order_boxes([]) == []


# ---------------------------------------------------------------------------
# Tests: full detection runs
# ---------------------------------------------------------------------------


class TestDetectSprites:
    def test_two_squares(self):
        sheet = _make_sheet(64, 32)
        _paint(sheet, 40, 2, 10, 10)
        _paint(sheet, 2, 2, 10, 10)
        boxes = detect_sprites(_raster(sheet), BG, DetectionConfig(tolerance=2))
        assert boxes == [BoundingBox(2, 2, 10, 10), BoundingBox(40, 2, 10, 10)]

    def test_detached_parts_merge_into_one_sprite(self):
        sheet = _make_sheet(32, 16)
        _paint(sheet, 2, 2, 4, 4)
        _paint(sheet, 8, 2, 4, 4)
        assert detect_sprites(_raster(sheet), BG) == [BoundingBox(2, 2, 10, 4)]
        assert detect_sprites(_raster(sheet), BG, DetectionConfig(tolerance=0)) == [
            BoundingBox(2, 2, 4, 4), BoundingBox(8, 2, 4, 4),
        ]

    def test_rows_then_columns(self):
        sheet = _make_sheet(80, 80)
        _paint(sheet, 50, 40, 6, 6)
        _paint(sheet, 5, 41, 6, 6)
        _paint(sheet, 60, 3, 6, 6)
        _paint(sheet, 20, 5, 6, 6)
        boxes = detect_sprites(_raster(sheet), BG)
        assert [(b.x, b.y) for b in boxes] == [(20, 5), (60, 3), (5, 41), (50, 40)]

    def test_missing_background(self):
        with pytest.raises(NoBackgroundError, match="no background selected"):
            detect_sprites(_raster(_make_sheet(4, 4)), None)

    def test_invalid_config(self):
        with pytest.raises(ValueError):
            detect_sprites(_raster(_make_sheet(4, 4)), BG, DetectionConfig(row_height=0))

    def test_all_background(self):
        assert detect_sprites(_raster(_make_sheet(10, 10)), BG) == []

    def test_opencv_backend(self):
        sheet = _make_sheet(64, 32)
        _paint(sheet, 2, 2, 10, 10)
        _paint(sheet, 40, 2, 10, 10)
        boxes = detect_sprites(_raster(sheet), BG, DetectionConfig(backend="opencv"))
        assert boxes == [BoundingBox(2, 2, 10, 10), BoundingBox(40, 2, 10, 10)]
