"""
Frame-driven calibration steps.

These helpers read frames, wait for user clicks and turn sampled colors into
detection ranges. They hold no state; the session decides when to call them
and what to do with the result.
"""

import time
from typing import Optional, Sequence, Tuple

import cv2
import numpy as np

from bounceback.display import Display
from bounceback.frame_source import FrameSource
from bounceback.logging import get_logger
from bounceback.object_detection import BallDetectionParameters
from bounceback.object_detection.config import CHANNEL_MAX, HUE_MAX

log = get_logger('calibration')

HSV = Tuple[int, int, int]

# Saturation and value ranges forced after a ball calibration
BALL_SATURATION_RANGE = (100, 255)
BALL_VALUE_RANGE = (30, 255)


def warm_up(source: FrameSource, frames: int = 20, display: Optional[Display] = None) -> None:
    """Read and discard frames so exposure and white balance settle.

    Raises:
        FrameReadError: If a frame cannot be read
    """
    for _ in range(frames):
        source.read()
        if display is not None:
            display.poll(1)


def pixel_hsv(frame: np.ndarray, point: Tuple[int, int]) -> HSV:
    """HSV triple of one BGR pixel. Coordinates are clamped into the frame."""
    h, w = frame.shape[:2]
    x = min(max(int(point[0]), 0), w - 1)
    y = min(max(int(point[1]), 0), h - 1)

    hsv = cv2.cvtColor(frame[y:y + 1, x:x + 1], cv2.COLOR_BGR2HSV)[0, 0]
    return (int(hsv[0]), int(hsv[1]), int(hsv[2]))


def wait_for_click_hsv(source: FrameSource, display: Display, window: str) -> Tuple[HSV, np.ndarray]:
    """Stream frames to `window` until the user clicks, then sample that pixel.

    Returns:
        HSV of the clicked pixel and the frame it was clicked on

    Raises:
        FrameReadError: If the source runs out before a click
    """
    log.info(f"Waiting for a click on '{window}'")
    while True:
        frame = source.read()
        display.show(window, frame)

        click = display.poll_click(window)
        if click is not None:
            hsv = pixel_hsv(frame, click)
            log.info(f"Sampled HSV {hsv} at {click}")
            return hsv, frame


def clamp_hsv(hsv: Sequence[int]) -> HSV:
    return (
        min(max(int(hsv[0]), 0), HUE_MAX),
        min(max(int(hsv[1]), 0), CHANNEL_MAX),
        min(max(int(hsv[2]), 0), CHANNEL_MAX),
    )


def range_around(hsv: Sequence[int], tolerances: Sequence[int]) -> Tuple[HSV, HSV]:
    """Lower and upper HSV bounds `tolerances` away from a sampled color.

    Bounds are clamped to the OpenCV HSV domain.
    """
    lower = [c - t for c, t in zip(hsv, tolerances)]
    upper = [c + t for c, t in zip(hsv, tolerances)]
    return clamp_hsv(lower), clamp_hsv(upper)


def derive_ball_parameters(
    dark_hsv: Sequence[int],
    light_hsv: Sequence[int],
    tolerances: Sequence[int],
    radius_threshold: int = 4,
) -> BallDetectionParameters:
    """Ball color range spanning a dark and a lit sample of the ball.

    Hue comes from the samples, widened by the hue tolerance. Saturation and
    value are replaced by fixed broad ranges since they vary too much with
    lighting to be sampled reliably.
    """
    h_tol, s_tol, v_tol = tolerances

    # Per channel, the dark click is not darker in every channel
    low = [min(d, l) for d, l in zip(dark_hsv, light_hsv)]
    high = [max(d, l) for d, l in zip(dark_hsv, light_hsv)]

    sampled = BallDetectionParameters.from_bounds(
        (low[0] - h_tol, low[1] - s_tol, low[2] - v_tol),
        (high[0] + h_tol, high[1] + s_tol, high[2] + v_tol),
        radius_threshold,
    )
    log.debug(f"Sampled ball range {sampled.get_hsv_lower()} - {sampled.get_hsv_upper()}")

    return BallDetectionParameters(
        hue_low=sampled.hue_low,
        hue_high=sampled.hue_high,
        saturation_low=BALL_SATURATION_RANGE[0],
        saturation_high=BALL_SATURATION_RANGE[1],
        value_low=BALL_VALUE_RANGE[0],
        value_high=BALL_VALUE_RANGE[1],
        radius_threshold=radius_threshold,
    )


def pause(seconds: float) -> None:
    if seconds > 0:
        time.sleep(seconds)
