"""Tests for surface calibration state and settings exchange."""

import pytest

from bounceback.errors import CalibrationFailedError, ErrorCode, NotInCalibrationModeError
from bounceback.object_detection import BallDetectionParameters
from calibration.calibration_manager import CalibrationManager
from models import CalibrationSettings, Point2D, SurfaceCalibration

SQUARE = [
    Point2D(x=10, y=10),
    Point2D(x=100, y=10),
    Point2D(x=100, y=100),
    Point2D(x=10, y=100),
]


@pytest.fixture
def manager():
    return CalibrationManager()


def calibrate(manager, *samples):
    manager.start()
    for sample in samples:
        manager.add_sample(sample)
    return manager.end()


class TestCalibrationBracket:

    def test_starts_uncalibrated(self, manager):
        assert not manager.is_calibrating
        assert not manager.is_calibrated()
        assert manager.get_surface_calibration() == SurfaceCalibration.invalid()

    def test_sample_outside_bracket(self, manager):
        with pytest.raises(NotInCalibrationModeError) as exc:
            manager.add_sample(SQUARE)
        assert exc.value.code == ErrorCode.NOT_IN_CALIBRATION_MODE
        assert manager.sample_count == 0

    def test_end_averages_and_sorts(self, manager):
        shifted = [Point2D(x=p.x + 2, y=p.y + 2) for p in SQUARE]

        result = calibrate(manager, list(reversed(SQUARE)), shifted)

        assert result.valid
        assert result.homography is not None
        assert [(p.x, p.y) for p in result.corners] == [
            (11, 11), (101, 11), (101, 101), (11, 101)
        ]
        assert not manager.is_calibrating
        assert manager.is_calibrated()

    def test_end_without_samples(self, manager):
        calibrate(manager, SQUARE)
        manager.start()

        with pytest.raises(CalibrationFailedError) as exc:
            manager.end()

        assert exc.value.code == ErrorCode.COULD_NOT_CALIBRATE
        assert not manager.is_calibrating
        assert not manager.is_calibrated()
        assert manager.get_corners() == []

    def test_start_discards_previous_calibration(self, manager):
        calibrate(manager, SQUARE)
        manager.start()

        assert manager.is_calibrating
        assert not manager.is_calibrated()

    def test_wrong_sample_size(self, manager):
        manager.start()
        with pytest.raises(ValueError):
            manager.add_sample(SQUARE[:3])


class TestCameraToSurface:

    def test_maps_corners(self, manager):
        calibrate(manager, SQUARE)

        bottom_right = manager.camera_to_surface(Point2D(x=100, y=100))

        assert bottom_right.x == pytest.approx(1.0, abs=1e-6)
        assert bottom_right.y == pytest.approx(0.0, abs=1e-6)

    def test_requires_calibration(self, manager):
        with pytest.raises(RuntimeError):
            manager.camera_to_surface(Point2D(x=1, y=1))


class TestSettingsExchange:

    def test_round_trip(self, manager):
        calibrate(manager, SQUARE)
        ball = BallDetectionParameters(hue_low=20, hue_high=40, radius_threshold=7)

        settings = manager.export_settings(ball)

        other = CalibrationManager()
        restored_ball = other.import_settings(settings)

        assert restored_ball == ball
        assert other.is_calibrated()
        assert other.get_corners() == manager.get_corners()
        point = Point2D(x=30, y=70)
        assert other.camera_to_surface(point) == manager.camera_to_surface(point)

    def test_round_trip_through_json(self, manager):
        calibrate(manager, SQUARE)
        settings = manager.export_settings(BallDetectionParameters())

        restored = CalibrationSettings.model_validate_json(settings.model_dump_json())
        other = CalibrationManager()
        other.import_settings(restored)

        assert other.get_surface_calibration().corners == settings.surface.corners

    def test_invalid_surface_clears_calibration(self, manager):
        calibrate(manager, SQUARE)

        manager.import_settings(CalibrationSettings())

        assert not manager.is_calibrated()

    def test_imported_ball_is_reordered(self, manager):
        settings = CalibrationSettings(ball=BallDetectionParameters(hue_low=50, hue_high=10))

        ball = manager.import_settings(settings)

        assert (ball.hue_low, ball.hue_high) == (10, 50)
