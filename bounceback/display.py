"""
Preview windows, click capture and the trackbar tuning panel.

OpenCVDisplay drives HighGUI windows. HeadlessDisplay accepts the same calls
and draws nothing, for hosts running without a screen.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional, Set, Tuple

import cv2
import numpy as np

from bounceback.logging import get_logger
from bounceback.object_detection import BallDetectionParameters, ContourParameters

log = get_logger('display')

PREVIEW_WINDOW = "BounceBack"
MASK_WINDOW = "Ball mask"
CONTROL_WINDOW = "Control"
SURFACE_CLICK_WINDOW = "Click on the projection"
SURFACE_PREVIEW_WINDOW = "Surface"
SURFACE_MASK_WINDOW = "Surface mask"
BALL_DARK_WINDOW = "Click on dark version of the ball"
BALL_LIGHT_WINDOW = "Click on lit version of the ball"

# Trackbar name -> maximum position
TRACKBARS: Dict[str, int] = {
    "LowH": 179,
    "HighH": 179,
    "LowS": 255,
    "HighS": 255,
    "LowV": 255,
    "HighV": 255,
    "Radius": 100,
    "Contour Limit": 20,
    "Epsilon Multiplier": 200,
    "Collision": 1,
}


@dataclass
class TuningValues:
    """Detection settings as read back from the tuning panel."""
    ball: BallDetectionParameters
    contour: ContourParameters
    show_collisions: bool

    def to_positions(self) -> Dict[str, int]:
        return {
            "LowH": self.ball.hue_low,
            "HighH": self.ball.hue_high,
            "LowS": self.ball.saturation_low,
            "HighS": self.ball.saturation_high,
            "LowV": self.ball.value_low,
            "HighV": self.ball.value_high,
            "Radius": min(self.ball.radius_threshold, TRACKBARS["Radius"]),
            "Contour Limit": self.contour.circle_contour_limit,
            "Epsilon Multiplier": self.contour.epsilon_multiplier,
            "Collision": int(self.show_collisions),
        }

    @classmethod
    def from_positions(cls, positions: Dict[str, int], current: 'TuningValues') -> 'TuningValues':
        """Build from trackbar positions on top of the values last pushed to the panel.

        Contour fields the panel does not show are kept from `current`, and so
        is a radius beyond the trackbar range while the Radius trackbar stays
        where it was put.
        """
        radius = positions["Radius"]
        if radius == current.to_positions()["Radius"]:
            radius = current.ball.radius_threshold

        ball = BallDetectionParameters(
            hue_low=positions["LowH"],
            hue_high=positions["HighH"],
            saturation_low=positions["LowS"],
            saturation_high=positions["HighS"],
            value_low=positions["LowV"],
            value_high=positions["HighV"],
            radius_threshold=radius,
        )
        contour = ContourParameters(
            circle_contour_limit=positions["Contour Limit"],
            epsilon_multiplier=positions["Epsilon Multiplier"],
            morph_iterations=current.contour.morph_iterations,
        )
        return cls(ball=ball, contour=contour, show_collisions=bool(positions["Collision"]))


class Display(ABC):
    """Interface the session uses for all user-facing windows."""

    @abstractmethod
    def show(self, window: str, frame: np.ndarray) -> None:
        pass

    @abstractmethod
    def poll(self, delay_ms: int = 1) -> int:
        """Pump window events.

        Returns:
            Key code pressed during the wait, or -1
        """
        pass

    @abstractmethod
    def poll_click(self, window: str) -> Optional[Tuple[int, int]]:
        """Pump window events and return a pending click on `window`, if any.

        The click is in the pixel coordinates of the last frame shown there.
        """
        pass

    @abstractmethod
    def close_all(self) -> None:
        pass

    def open_tuning_panel(self, values: TuningValues) -> None:
        pass

    def sync_tuning_panel(self, values: TuningValues) -> None:
        pass

    def read_tuning_panel(self) -> Optional[TuningValues]:
        """Return the panel settings if the user moved a trackbar since the last call."""
        return None


class OpenCVDisplay(Display):
    """HighGUI backed display."""

    def __init__(self):
        self._windows: Set[str] = set()
        self._click_windows: Set[str] = set()
        self._clicks: Dict[str, Tuple[int, int]] = {}
        self._panel_positions: Optional[Dict[str, int]] = None
        self._panel_values: Optional[TuningValues] = None

    def show(self, window: str, frame: np.ndarray) -> None:
        cv2.imshow(window, frame)
        self._windows.add(window)

    def poll(self, delay_ms: int = 1) -> int:
        return cv2.waitKey(delay_ms)

    def poll_click(self, window: str) -> Optional[Tuple[int, int]]:
        if window not in self._click_windows and window in self._windows:
            cv2.setMouseCallback(window, self._on_mouse, window)
            self._click_windows.add(window)

        cv2.waitKey(10)
        return self._clicks.pop(window, None)

    def _on_mouse(self, event, x, y, flags, window):
        if event == cv2.EVENT_LBUTTONDOWN:
            log.debug(f"Click on '{window}' at ({x}, {y})")
            self._clicks[window] = (x, y)

    def close_all(self) -> None:
        if not self._windows:
            return
        cv2.destroyAllWindows()
        cv2.waitKey(1)
        self._windows.clear()
        self._click_windows.clear()
        self._clicks.clear()
        self._panel_positions = None
        self._panel_values = None

    def open_tuning_panel(self, values: TuningValues) -> None:
        cv2.namedWindow(CONTROL_WINDOW, cv2.WINDOW_FREERATIO)
        self._windows.add(CONTROL_WINDOW)

        positions = values.to_positions()
        for name, maximum in TRACKBARS.items():
            cv2.createTrackbar(name, CONTROL_WINDOW, positions[name], maximum, lambda _: None)

        self._panel_positions = positions
        self._panel_values = values
        log.debug("Tuning panel opened")

    def sync_tuning_panel(self, values: TuningValues) -> None:
        if self._panel_positions is None:
            return

        positions = values.to_positions()
        for name, position in positions.items():
            cv2.setTrackbarPos(name, CONTROL_WINDOW, position)

        self._panel_positions = positions
        self._panel_values = values

    def read_tuning_panel(self) -> Optional[TuningValues]:
        if self._panel_positions is None:
            return None

        positions = {name: cv2.getTrackbarPos(name, CONTROL_WINDOW) for name in TRACKBARS}
        if positions == self._panel_positions:
            return None

        self._panel_positions = positions
        values = TuningValues.from_positions(positions, self._panel_values)
        self._panel_values = values
        return values


class HeadlessDisplay(Display):
    """Display that draws nothing and never receives input."""

    def show(self, window: str, frame: np.ndarray) -> None:
        pass

    def poll(self, delay_ms: int = 1) -> int:
        return -1

    def poll_click(self, window: str) -> Optional[Tuple[int, int]]:
        raise RuntimeError(f"Cannot wait for a click on '{window}' without a display")

    def close_all(self) -> None:
        pass
