"""
Calibration Manager - surface calibration state and coordinate mapping.

Collects quadrilateral samples while a calibration bracket is open, turns
them into an averaged surface and its homography, and exchanges the result
with the host as a flat settings record.
"""

import numpy as np
from typing import List, Optional, Sequence

from bounceback.errors import CalibrationFailedError, NotInCalibrationModeError
from bounceback.geometry import average_quadrilaterals, sort_square_points
from bounceback.logging import get_logger
from bounceback.object_detection import BallDetectionParameters
from models import (
    CalibrationSettings,
    HomographyMatrix,
    Point2D,
    SurfaceCalibration,
)
from calibration.homography import (
    compute_homography,
    apply_homography_single
)

log = get_logger('calibration_manager')


class CalibrationManager:
    """
    Manages surface calibration data and the screen-to-surface transform.
    Not thread-safe on its own; the owning session serializes access.
    """

    def __init__(self):
        self.is_calibrating = False
        self._samples: List[List[Point2D]] = []
        self._corners: List[Point2D] = []
        self._homography: Optional[HomographyMatrix] = None
        self._H: Optional[np.ndarray] = None  # Cached numpy matrix

    @property
    def sample_count(self) -> int:
        return len(self._samples)

    def is_calibrated(self) -> bool:
        """Check if a usable homography exists."""
        return self._H is not None and len(self._corners) == 4

    def start(self) -> None:
        """Open a calibration bracket, discarding samples and any calibration."""
        self._samples.clear()
        self._clear_calibration()
        self.is_calibrating = True
        log.info("Surface calibration started")

    def add_sample(self, corners: Sequence[Point2D]) -> None:
        """
        Record one sampled quadrilateral.

        Args:
            corners: Four screen-space corners in any order

        Raises:
            NotInCalibrationModeError: If no calibration bracket is open
            ValueError: If the sample does not have 4 corners
        """
        if not self.is_calibrating:
            raise NotInCalibrationModeError("Surface calibration has not been started")
        if len(corners) != 4:
            raise ValueError(f"Expected 4 corners, got {len(corners)}")

        self._samples.append(sort_square_points(corners))
        log.debug(f"Calibration sample {len(self._samples)}: "
                  + ", ".join(f"({p.x:.1f}, {p.y:.1f})" for p in self._samples[-1]))

    def end(self) -> SurfaceCalibration:
        """
        Close the calibration bracket and compute the surface.

        Returns:
            Valid SurfaceCalibration with averaged, sorted corners

        Raises:
            CalibrationFailedError: If no samples were collected; calibration
                is left absent
        """
        self.is_calibrating = False

        if not self._samples:
            self._clear_calibration()
            raise CalibrationFailedError("No surface samples collected, could not calibrate")

        corners = sort_square_points(average_quadrilaterals(self._samples))
        try:
            self._set_corners(corners)
        except ValueError as e:
            self._clear_calibration()
            raise CalibrationFailedError(f"Could not calibrate: {e}")

        log.info(f"Surface calibrated from {len(self._samples)} samples")
        for name, p in zip(("Top-left", "Top-right", "Bottom-right", "Bottom-left"), corners):
            log.info(f"  {name}: ({p.x:.1f}, {p.y:.1f})")

        return self.get_surface_calibration()

    def camera_to_surface(self, camera_point: Point2D) -> Point2D:
        """
        Transform point from screen space to normalized surface space.

        Args:
            camera_point: Point in processing-resolution pixel coordinates

        Returns:
            Point in surface coordinates, the unit square inside the surface

        Raises:
            RuntimeError: If not calibrated
        """
        if not self.is_calibrated():
            raise RuntimeError("No surface calibration. Run surface calibration first.")
        return apply_homography_single(self._H, camera_point)

    def get_corners(self) -> List[Point2D]:
        """Averaged corners, empty when not calibrated."""
        return list(self._corners) if self.is_calibrated() else []

    def get_surface_calibration(self) -> SurfaceCalibration:
        """Current surface calibration, invalid when absent."""
        if not self.is_calibrated():
            return SurfaceCalibration.invalid()
        return SurfaceCalibration(
            corners=list(self._corners),
            valid=True,
            homography=self._homography,
        )

    def export_settings(self, ball: BallDetectionParameters) -> CalibrationSettings:
        """Bundle the surface calibration with ball parameters."""
        return CalibrationSettings(
            surface=self.get_surface_calibration(),
            ball=ball.model_copy(),
        )

    def import_settings(self, settings: CalibrationSettings) -> BallDetectionParameters:
        """
        Restore the surface part of a settings record.

        The homography is rebuilt from the stored corners; a stored matrix is
        never trusted as-is.

        Args:
            settings: Record previously obtained from export_settings()

        Returns:
            Ball parameters carried by the record, revalidated

        Raises:
            ValueError: If the record claims validity with unusable corners
        """
        self._samples.clear()

        surface = settings.surface
        if surface.valid and len(surface.corners) == 4:
            self._set_corners(list(surface.corners))
            log.info("Surface calibration restored from settings")
        else:
            self._clear_calibration()
            log.info("Settings carry no surface calibration")

        return BallDetectionParameters.model_validate(settings.ball.model_dump())

    def _set_corners(self, corners: List[Point2D]) -> None:
        homography = compute_homography(corners)
        self._corners = corners
        self._homography = homography
        self._H = homography.to_numpy()

    def _clear_calibration(self) -> None:
        self._corners = []
        self._homography = None
        self._H = None
