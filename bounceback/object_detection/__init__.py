"""
Object detection package for BounceBack.

Locates the ball during tracking and the surface quadrilateral during
calibration using HSV color segmentation.
"""

from .base import BallLocator, BallCandidate
from .color_blob import ColorBlobDetector
from .config import (
    BallDetectionParameters,
    ContourParameters,
    ConfigurationParameters,
    ResizeStrategy,
)

__all__ = [
    "BallLocator",
    "BallCandidate",
    "ColorBlobDetector",
    "BallDetectionParameters",
    "ContourParameters",
    "ConfigurationParameters",
    "ResizeStrategy",
]
