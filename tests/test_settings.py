"""Tests for detection models and run configuration files."""

import pytest
from pydantic import ValidationError

from bounceback import yaml
from bounceback.object_detection import (
    BallDetectionParameters,
    ConfigurationParameters,
    ContourParameters,
    ResizeStrategy,
)
from bounceback.settings import SessionConfig


class TestBallDetectionParameters:

    def test_defaults(self):
        ball = BallDetectionParameters()
        assert ball.get_hsv_lower() == (23, 30, 50)
        assert ball.get_hsv_upper() == (43, 255, 255)
        assert ball.radius_threshold == 4

    def test_values_are_clamped(self):
        ball = BallDetectionParameters(hue_low=-10, hue_high=400, saturation_low=-1, value_high=300)
        assert ball.get_hsv_lower() == (0, 0, 50)
        assert ball.get_hsv_upper() == (179, 255, 255)

    def test_inverted_ranges_are_swapped(self):
        ball = BallDetectionParameters.from_bounds((40, 200, 90), (20, 100, 180))
        assert ball.get_hsv_lower() == (20, 100, 90)
        assert ball.get_hsv_upper() == (40, 200, 180)

    def test_negative_radius_rejected(self):
        with pytest.raises(ValidationError):
            BallDetectionParameters(radius_threshold=-1)


class TestContourParameters:

    def test_epsilon_fraction(self):
        assert ContourParameters().epsilon_fraction == pytest.approx(0.006)

    def test_limits(self):
        with pytest.raises(ValidationError):
            ContourParameters(epsilon_multiplier=500)


class TestSessionConfig:

    def test_defaults(self):
        config = SessionConfig()
        assert config.tracking.trajectory_capacity == 100
        assert config.tracking.lost_ball_frames == 7
        assert config.calibration.warmup_frames == 20
        assert config.configuration.target_internal_width == 480
        assert config.configuration.resize_strategy == ResizeStrategy.EXACT

    def test_yaml_round_trip(self, tmp_path):
        config = SessionConfig(
            ball=BallDetectionParameters(hue_low=10, hue_high=20),
            configuration=ConfigurationParameters(resize_strategy=ResizeStrategy.POWER_OF_TWO),
            log_level="debug",
        )
        path = tmp_path / "session.yaml"

        config.save(path)
        loaded = SessionConfig.load(path)

        assert loaded == config
        assert loaded.log_level == "DEBUG"

    def test_json_file(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text('{"source": {"camera_index": 2}, "tracking": {"lost_ball_frames": 3}}')

        config = SessionConfig.load(path)

        assert config.source.camera_index == 2
        assert config.tracking.lost_ball_frames == 3
        assert config.tracking.min_history == 3

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert SessionConfig.load(path) == SessionConfig()

    def test_partial_yaml(self, tmp_path):
        path = tmp_path / "session.yml"
        path.write_text("configuration:\n  show_preview: false\nball:\n  radius_threshold: 9\n")

        config = SessionConfig.load(path)

        assert config.configuration.show_preview is False
        assert config.configuration.show_tuning_ui is True
        assert config.ball.radius_threshold == 9

    def test_bad_log_level(self):
        with pytest.raises(ValidationError):
            SessionConfig(log_level="LOUD")


class TestYamlHelpers:

    def test_loads_dumps(self):
        data = {"a": 1, "b": [1, 2]}
        assert yaml.loads(yaml.dumps(data)) == data
        assert yaml.loads(yaml.dumps(data, format='json'), format='json') == data

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            yaml.loads("a: 1", format='toml')
