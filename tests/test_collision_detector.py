"""Tests for direction-reversal collision detection."""

import pytest

from bounceback.collision_detector import (
    COLLISION_DISPLAY_FRAMES,
    LOST_BALL_FRAMES,
    RADIUS_LATERAL_MULT,
    CollisionDetector,
)
from bounceback.object_detection import BallCandidate
from models import Point2D


def candidate(x, y=100.0, radius=5.0, found=True):
    p = Point2D(x=float(x), y=float(y))
    return BallCandidate(centroid=p, center=p, radius=radius, area=3.14 * radius ** 2, found=found)


def feed(detector, xs, radius=5.0):
    """Feed x positions (None for a missing ball) and return (frame index, point) collisions."""
    collisions = []
    for i, x in enumerate(xs):
        c = None if x is None else candidate(x, radius=radius)
        point = detector.update(c)
        if point is not None:
            collisions.append((i, point))
    return collisions


class TestReversal:

    def test_single_bounce(self):
        detector = CollisionDetector()

        collisions = feed(detector, [50, 40, 30, 20, 30, 40, 50], radius=5.0)

        assert len(collisions) == 1
        index, point = collisions[0]
        # Detected once the new direction is measured against the turning point
        assert index == 5
        assert point.x == pytest.approx(20 - 5.0 * RADIUS_LATERAL_MULT)
        assert point.x == pytest.approx(16.7)
        assert point.y == pytest.approx(100.0)

    def test_bounce_moving_right(self):
        detector = CollisionDetector()

        collisions = feed(detector, [10, 20, 30, 40, 30, 20], radius=10.0)

        assert len(collisions) == 1
        assert collisions[0][1].x == pytest.approx(40 + 10.0 * RADIUS_LATERAL_MULT)

    @pytest.mark.parametrize("xs", [
        list(range(10, 100, 10)),
        list(range(300, 100, -7)),
        [5, 6, 8, 11, 15, 20],
    ])
    def test_monotonic_never_fires(self, xs):
        detector = CollisionDetector()
        assert feed(detector, xs) == []

    def test_needs_history(self):
        detector = CollisionDetector()
        # Reversal inside the first frames cannot be evaluated
        assert feed(detector, [50, 40, 50, 60]) == []

    def test_zero_displacement_is_not_a_bounce(self):
        detector = CollisionDetector()
        assert feed(detector, [50, 40, 30, 20, 20, 20]) == []

    def test_not_found_candidate_is_missing(self):
        detector = CollisionDetector()
        feed(detector, [50, 40, 30])

        detector.update(candidate(20, found=False))

        assert len(detector.trajectory) == 3
        assert detector.lost_ball_for_frames == LOST_BALL_FRAMES

    def test_marker_countdown(self):
        detector = CollisionDetector()
        feed(detector, [50, 40, 30, 20, 30, 40])

        assert detector.collision.frames_remaining == COLLISION_DISPLAY_FRAMES
        visible = [detector.tick_marker() for _ in range(COLLISION_DISPLAY_FRAMES + 2)]
        assert visible.count(True) == COLLISION_DISPLAY_FRAMES
        assert visible[-1] is False


class TestRadiusCorrection:

    @pytest.mark.parametrize("radius", [0.0, 1.0, 5.0, 17.5])
    def test_direction(self, radius):
        detector = CollisionDetector()
        base = Point2D(x=100.0, y=50.0)

        right = detector.correct_for_radius(base, 3.0, radius)
        left = detector.correct_for_radius(base, -3.0, radius)

        assert right.x == pytest.approx(100.0 + radius * 0.66)
        assert left.x == pytest.approx(100.0 - radius * 0.66)
        assert right.y == left.y == 50.0


class TestLostBall:

    def test_short_gap_keeps_trajectory(self):
        detector = CollisionDetector()
        before = list(range(200, 100, -10))

        collisions = feed(detector, before + [None] * 5 + [115, 130])

        assert len(collisions) == 1
        assert collisions[0][0] == len(before) + 6
        assert collisions[0][1].x == pytest.approx(110 - 5.0 * RADIUS_LATERAL_MULT)
        assert len(detector.trajectory) == len(before) + 2

    def test_gap_countdown(self):
        detector = CollisionDetector()
        feed(detector, [50, 40, 30, 20])

        detector.update(None)
        assert detector.lost_ball_for_frames == LOST_BALL_FRAMES
        detector.update(None)
        assert detector.lost_ball_for_frames == LOST_BALL_FRAMES - 1
        assert len(detector.trajectory) == 4

    def test_long_gap_resets(self):
        detector = CollisionDetector()
        feed(detector, [50, 40, 30, 20])

        # One frame arms the countdown, then it runs down and the next frame resets
        feed(detector, [None] * (LOST_BALL_FRAMES + 2))

        assert len(detector.trajectory) == 0
        assert detector.lost_ball_for_frames == -1

    def test_reversal_across_long_gap_not_detected(self):
        detector = CollisionDetector()
        xs = [50, 40, 30, 20] + [None] * (LOST_BALL_FRAMES + 2) + [30, 40, 50]
        assert feed(detector, xs) == []

    def test_reset(self):
        detector = CollisionDetector()
        feed(detector, [50, 40, 30, 20, 30, 40])

        detector.reset()

        assert len(detector.trajectory) == 0
        assert detector.collision.position is None
        assert detector.lost_ball_for_frames == 0
        assert not detector.had_ball_previous_frame
