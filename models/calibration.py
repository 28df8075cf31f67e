"""
Calibration data models for the planar collision surface.

These models describe the calibrated surface quadrilateral, the homography
that maps it onto the unit square, and the flat settings record a host can
read back and restore later.
"""

from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
import numpy as np

from .primitives import Point2D
from bounceback.object_detection.config import BallDetectionParameters


class HomographyMatrix(BaseModel):
    """
    3x3 homography transformation matrix.
    Stored as nested lists so the record stays plain data.

    Used to transform collision points from screen space to surface space.
    """
    matrix: List[List[float]] = Field(..., min_length=3, max_length=3)

    @field_validator('matrix')
    @classmethod
    def validate_matrix_shape(cls, v):
        if len(v) != 3 or any(len(row) != 3 for row in v):
            raise ValueError("Matrix must be 3x3")
        return v

    def to_numpy(self) -> np.ndarray:
        """Convert to numpy array for OpenCV operations."""
        return np.array(self.matrix, dtype=np.float64)

    @classmethod
    def from_numpy(cls, arr: np.ndarray) -> 'HomographyMatrix':
        """Create from numpy array."""
        if arr.shape != (3, 3):
            raise ValueError(f"Expected 3x3 array, got {arr.shape}")
        return cls(matrix=arr.tolist())


class SurfaceCalibration(BaseModel):
    """
    Screen-space corners of the calibrated surface.

    Corners are ordered top-left, top-right, bottom-right, bottom-left.
    An invalid calibration carries no corners and no homography.
    """
    corners: List[Point2D] = Field(default_factory=list)
    valid: bool = False
    homography: Optional[HomographyMatrix] = None

    @field_validator('corners')
    @classmethod
    def validate_corner_count(cls, v):
        if len(v) not in (0, 4):
            raise ValueError(f"Surface calibration needs 4 corners, got {len(v)}")
        return v

    @classmethod
    def invalid(cls) -> 'SurfaceCalibration':
        return cls(corners=[], valid=False)


class CalibrationSettings(BaseModel):
    """
    Flat settings record exchanged with the host.

    Round-trips through get/set: restoring a record rebuilds the homography
    from the stored corners when the surface part is valid.
    """
    surface: SurfaceCalibration = Field(default_factory=SurfaceCalibration.invalid)
    ball: BallDetectionParameters = Field(default_factory=BallDetectionParameters)
