"""
Homography between the calibrated surface corners and the unit square.
"""

from typing import List, Sequence, Tuple

import cv2
import numpy as np

from models import HomographyMatrix, Point2D

# Unit square targets, matched to corners sorted TL, TR, BR, BL.
# Surface y grows upwards, so the top edge maps to y=1.
UNIT_SQUARE: List[Tuple[float, float]] = [
    (0.0, 1.0),
    (1.0, 1.0),
    (1.0, 0.0),
    (0.0, 0.0),
]


def compute_homography(
    corners: Sequence[Point2D],
    targets: Sequence[Tuple[float, float]] = UNIT_SQUARE,
) -> HomographyMatrix:
    """
    Compute the perspective transform from four screen corners to the targets.

    Args:
        corners: Screen-space corners, ordered to match `targets`
        targets: Destination points, the unit square by default

    Returns:
        HomographyMatrix mapping screen space to surface space

    Raises:
        ValueError: If there are not exactly 4 corners or they are degenerate
    """
    if len(corners) != 4 or len(targets) != 4:
        raise ValueError(f"Need exactly 4 corners, got {len(corners)}")

    src = np.array([p.as_tuple() for p in corners], dtype=np.float32)
    dst = np.array(targets, dtype=np.float32)

    try:
        H, _ = cv2.findHomography(src, dst)
    except cv2.error as e:
        raise ValueError(f"Homography could not be computed: {e}")

    if H is None or not np.all(np.isfinite(H)):
        raise ValueError("Degenerate corners, homography could not be computed")

    return HomographyMatrix.from_numpy(H)


def apply_homography_single(H: np.ndarray, point: Point2D) -> Point2D:
    """
    Transform a single point with a homography.

    Args:
        H: 3x3 homography as numpy array
        point: Screen-space point

    Returns:
        Transformed point
    """
    src = np.array([[point.as_tuple()]], dtype=np.float32)
    dst = cv2.perspectiveTransform(src, H)[0][0]
    return Point2D(x=float(dst[0]), y=float(dst[1]))
