"""Tests for the trajectory ring buffer."""

import pytest

from bounceback.trajectory import DEFAULT_CAPACITY, TrajectoryBuffer
from models import Point2D


def points(xs):
    return [Point2D(x=float(x), y=0.0) for x in xs]


class TestTrajectoryBuffer:

    def test_empty_buffer(self):
        buffer = TrajectoryBuffer()
        assert len(buffer) == 0
        assert not buffer
        assert buffer.capacity == DEFAULT_CAPACITY
        with pytest.raises(IndexError):
            buffer.at(0)

    def test_at_indexes_from_newest(self):
        buffer = TrajectoryBuffer(capacity=10)
        for p in points(range(5)):
            buffer.insert(p)

        assert len(buffer) == 5
        assert buffer.at(0).x == 4
        for k in range(5):
            assert buffer.at(k).x == 4 - k

    def test_at_rejects_out_of_range(self):
        buffer = TrajectoryBuffer(capacity=10)
        for p in points(range(3)):
            buffer.insert(p)

        with pytest.raises(IndexError):
            buffer.at(3)
        with pytest.raises(IndexError):
            buffer.at(-1)

    def test_overflow_evicts_oldest(self):
        buffer = TrajectoryBuffer(capacity=4)
        for p in points(range(7)):
            buffer.insert(p)

        assert len(buffer) == 4
        assert [p.x for p in buffer.recent()] == [6, 5, 4, 3]

    def test_size_capped_at_capacity(self):
        buffer = TrajectoryBuffer(capacity=DEFAULT_CAPACITY)
        for p in points(range(DEFAULT_CAPACITY + 20)):
            buffer.insert(p)

        assert len(buffer) == DEFAULT_CAPACITY
        assert buffer.at(DEFAULT_CAPACITY - 1).x == 20

    def test_recent_limits_count(self):
        buffer = TrajectoryBuffer(capacity=10)
        for p in points(range(6)):
            buffer.insert(p)

        assert [p.x for p in buffer.recent(2)] == [5, 4]
        assert len(list(buffer.recent(50))) == 6

    def test_reset(self):
        buffer = TrajectoryBuffer(capacity=10)
        for p in points(range(6)):
            buffer.insert(p)

        buffer.reset()

        assert len(buffer) == 0
        buffer.insert(Point2D(x=1.0, y=2.0))
        assert buffer.at(0) == Point2D(x=1.0, y=2.0)

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            TrajectoryBuffer(capacity=0)
