"""
Base classes for ball and surface localization.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple
import numpy as np

from models.primitives import Point2D
from .config import BallDetectionParameters, ContourParameters


@dataclass
class BallCandidate:
    """Best ball-like blob found in one frame.

    Attributes:
        centroid: First-moment center of the blob, the tracked position
        center: Center of the minimum enclosing circle
        radius: Radius of the minimum enclosing circle (px)
        area: Contour area (px^2)
        found: True when the radius exceeds the configured threshold
    """
    centroid: Point2D
    center: Point2D
    radius: float
    area: float
    found: bool


class BallLocator(ABC):
    """Abstract base class for color-range localization.

    Implementations turn one frame into a ball candidate during tracking,
    and into a surface quadrilateral during calibration.
    """

    @abstractmethod
    def locate_ball(
        self,
        frame: np.ndarray,
        ball: BallDetectionParameters,
        contour: ContourParameters,
    ) -> Optional[BallCandidate]:
        """Find the largest round blob inside the ball color range.

        Args:
            frame: BGR image, already scaled to the processing width
            ball: HSV range and radius threshold
            contour: Polygon approximation and morphology settings

        Returns:
            Best candidate, or None if no contour qualifies
        """
        pass

    @abstractmethod
    def locate_quadrilateral(
        self,
        frame: np.ndarray,
        lower: Tuple[int, int, int],
        upper: Tuple[int, int, int],
    ) -> Optional[List[Point2D]]:
        """Find the largest 4-sided region inside a color range.

        Args:
            frame: BGR image, already scaled to the processing width
            lower: Lower (h, s, v) bound
            upper: Upper (h, s, v) bound

        Returns:
            Corners sorted top-left, top-right, bottom-right, bottom-left,
            or None if no quadrilateral was found
        """
        pass

    @abstractmethod
    def get_debug_frame(self) -> Optional[np.ndarray]:
        """Get debug visualization frame.

        Returns:
            Frame with detection visualization overlays, or None
        """
        pass

    @abstractmethod
    def set_debug_mode(self, enabled: bool) -> None:
        """Enable/disable debug visualization.

        Args:
            enabled: Whether to generate debug frames
        """
        pass
