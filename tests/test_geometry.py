"""Tests for resizing and quadrilateral helpers."""

import itertools

import numpy as np
import pytest

from bounceback.geometry import (
    average_quadrilaterals,
    resize_close_to,
    resize_for_processing,
    resize_to_width,
    sort_square_points,
)
from bounceback.object_detection import ResizeStrategy
from models import Point2D

TL = Point2D(x=10, y=10)
TR = Point2D(x=100, y=12)
BR = Point2D(x=98, y=100)
BL = Point2D(x=12, y=95)
CANONICAL = [TL, TR, BR, BL]


class TestResize:

    def test_resize_to_width_keeps_aspect(self):
        image = np.zeros((480, 640, 3), dtype=np.uint8)
        resized = resize_to_width(image, 480)
        assert resized.shape == (360, 480, 3)

    def test_resize_to_width_floors_height(self):
        image = np.zeros((101, 200, 3), dtype=np.uint8)
        resized = resize_to_width(image, 100)
        assert resized.shape[:2] == (50, 100)

    def test_resize_to_width_same_width_is_identity(self):
        image = np.zeros((360, 480, 3), dtype=np.uint8)
        assert resize_to_width(image, 480) is image

    def test_resize_close_to_halves(self):
        image = np.zeros((1080, 1920, 3), dtype=np.uint8)
        resized = resize_close_to(image, 480)
        assert resized.shape[:2] == (270, 480)

    def test_resize_close_to_picks_nearest_power(self):
        image = np.zeros((720, 1280, 3), dtype=np.uint8)
        # 640 is 160 away from 480, 320 is 160 away too; the first wins
        resized = resize_close_to(image, 480)
        assert resized.shape[1] == 640

    def test_resize_close_to_never_upscales(self):
        image = np.zeros((120, 160, 3), dtype=np.uint8)
        assert resize_close_to(image, 480) is image

    def test_resize_for_processing_strategy(self):
        image = np.zeros((1080, 1920, 3), dtype=np.uint8)
        assert resize_for_processing(image, 600, ResizeStrategy.EXACT).shape[1] == 600
        assert resize_for_processing(image, 600, ResizeStrategy.POWER_OF_TWO).shape[1] == 480


class TestSortSquarePoints:

    @pytest.mark.parametrize("order", list(itertools.permutations(range(4))))
    def test_any_permutation_sorts_canonically(self, order):
        shuffled = [CANONICAL[i] for i in order]
        assert sort_square_points(shuffled) == CANONICAL

    def test_other_lengths_unchanged(self):
        three = [TL, BR, TR]
        assert sort_square_points(three) == three


class TestAverageQuadrilaterals:

    def test_identical_samples_are_idempotent(self):
        assert average_quadrilaterals([CANONICAL, CANONICAL]) == CANONICAL

    def test_componentwise_mean(self):
        shifted = [Point2D(x=p.x + 2, y=p.y - 4) for p in CANONICAL]
        mean = average_quadrilaterals([CANONICAL, shifted])
        for p, m in zip(CANONICAL, mean):
            assert m.x == pytest.approx(p.x + 1)
            assert m.y == pytest.approx(p.y - 2)

    def test_empty_raises(self):
        with pytest.raises(ValueError):
            average_quadrilaterals([])
