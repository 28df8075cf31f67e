"""
Primitive geometric types shared by detection and calibration.
"""

from typing import Tuple

from pydantic import BaseModel


class Point2D(BaseModel):
    """2D point in either screen (pixel) or normalized surface coordinates."""
    x: float
    y: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def to_pixel(self) -> Tuple[int, int]:
        """Integer pixel position for OpenCV drawing calls."""
        return (int(round(self.x)), int(round(self.y)))
