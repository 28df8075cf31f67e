"""Tests for display helpers that do not need a screen."""

import pytest

from bounceback.display import TRACKBARS, HeadlessDisplay, TuningValues
from bounceback.object_detection import BallDetectionParameters, ContourParameters
from synthetic import blank_frame


def tuning(radius=7, **ball):
    return TuningValues(
        ball=BallDetectionParameters(radius_threshold=radius, **ball),
        contour=ContourParameters(circle_contour_limit=5, epsilon_multiplier=9, morph_iterations=3),
        show_collisions=False,
    )


def test_tuning_positions_round_trip():
    values = tuning(hue_low=12, hue_high=50)

    positions = values.to_positions()
    assert set(positions) == set(TRACKBARS)

    restored = TuningValues.from_positions(positions, values)
    assert restored == values


def test_positions_within_trackbar_limits():
    positions = tuning(radius=250).to_positions()

    for name, position in positions.items():
        assert 0 <= position <= TRACKBARS[name]


def test_large_radius_survives_other_trackbar_moves():
    current = tuning(radius=250)
    positions = current.to_positions()
    positions["LowH"] = 5

    values = TuningValues.from_positions(positions, current)

    assert values.ball.hue_low == 5
    assert values.ball.radius_threshold == 250


def test_radius_trackbar_move_replaces_large_radius():
    current = tuning(radius=250)
    positions = current.to_positions()
    positions["Radius"] = 40

    values = TuningValues.from_positions(positions, current)

    assert values.ball.radius_threshold == 40


def test_headless_display():
    display = HeadlessDisplay()
    display.show("window", blank_frame())
    display.close_all()

    assert display.poll() == -1
    assert display.read_tuning_panel() is None
    with pytest.raises(RuntimeError):
        display.poll_click("window")
