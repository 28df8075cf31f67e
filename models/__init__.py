"""
Data models shared across the ball tracking runtime and calibration.
"""

from .primitives import Point2D
from .calibration import HomographyMatrix, SurfaceCalibration, CalibrationSettings

__all__ = [
    "Point2D",
    "HomographyMatrix",
    "SurfaceCalibration",
    "CalibrationSettings",
]
