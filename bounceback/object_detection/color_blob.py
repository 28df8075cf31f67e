"""
Color blob locator for the tracked ball and the calibration surface.
"""

import cv2
import numpy as np
from typing import List, Optional, Tuple

from .base import BallLocator, BallCandidate
from .config import BallDetectionParameters, ContourParameters
from bounceback import geometry
from models.primitives import Point2D

# approxPolyDP epsilon (px) used when looking for the surface quadrilateral
QUAD_APPROX_EPSILON = 3.0


class ColorBlobDetector(BallLocator):
    """Locates colored regions using HSV thresholding and contour analysis.

    Balls are told apart from noise by how many vertices their polygon
    approximation keeps: circles approximate to many-sided polygons,
    specks and rectangles to few.
    """

    def __init__(self, morph_iterations: int = 2):
        """Initialize color blob detector.

        Args:
            morph_iterations: Erode/dilate iterations for quadrilateral masks
        """
        self.morph_iterations = morph_iterations
        self.debug_mode = False
        self.debug_frame: Optional[np.ndarray] = None
        self.last_mask: Optional[np.ndarray] = None
        self.last_contours: List[np.ndarray] = []

    def build_mask(
        self,
        frame: np.ndarray,
        lower: Tuple[int, int, int],
        upper: Tuple[int, int, int],
        morph_iterations: int,
    ) -> np.ndarray:
        """Threshold a BGR frame to a binary mask of the given HSV range.

        Args:
            frame: BGR image
            lower: Lower (h, s, v) bound
            upper: Upper (h, s, v) bound
            morph_iterations: Erode then dilate iterations to drop speckle noise

        Returns:
            Binary mask
        """
        hsv = cv2.cvtColor(frame, cv2.COLOR_BGR2HSV)

        lower_bound = np.array(lower, dtype=np.uint8)
        upper_bound = np.array(upper, dtype=np.uint8)
        mask = cv2.inRange(hsv, lower_bound, upper_bound)

        if morph_iterations > 0:
            kernel = np.ones((3, 3), np.uint8)
            mask = cv2.erode(mask, kernel, iterations=morph_iterations)
            mask = cv2.dilate(mask, kernel, iterations=morph_iterations)

        return mask

    def locate_ball(
        self,
        frame: np.ndarray,
        ball: BallDetectionParameters,
        contour: ContourParameters,
    ) -> Optional[BallCandidate]:
        """Find the largest round blob in the ball color range.

        Args:
            frame: BGR image at processing resolution
            ball: HSV range and radius threshold
            contour: Vertex limit, epsilon multiplier and morphology settings

        Returns:
            Ball candidate, or None if no contour passes the vertex filter
        """
        mask = self.build_mask(
            frame, ball.get_hsv_lower(), ball.get_hsv_upper(), contour.morph_iterations
        )
        contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)

        approx_contours = []
        largest_area = 0.0
        largest = None

        for c in contours:
            epsilon = contour.epsilon_fraction * cv2.arcLength(c, True)
            approx = cv2.approxPolyDP(c, epsilon, True)
            approx_contours.append(approx)

            area = cv2.contourArea(c)
            if area > largest_area and len(approx) > contour.circle_contour_limit:
                largest_area = area
                largest = c

        self.last_mask = mask
        self.last_contours = approx_contours

        candidate = None
        if largest is not None:
            (cx, cy), radius = cv2.minEnclosingCircle(largest)
            moments = cv2.moments(largest)
            centroid = Point2D(
                x=moments['m10'] / moments['m00'],
                y=moments['m01'] / moments['m00'],
            )
            candidate = BallCandidate(
                centroid=centroid,
                center=Point2D(x=float(cx), y=float(cy)),
                radius=float(radius),
                area=float(largest_area),
                found=radius > ball.radius_threshold,
            )

        if self.debug_mode:
            self._create_debug_frame(frame, mask, approx_contours, candidate)

        return candidate

    def locate_quadrilateral(
        self,
        frame: np.ndarray,
        lower: Tuple[int, int, int],
        upper: Tuple[int, int, int],
    ) -> Optional[List[Point2D]]:
        """Find the largest 4-sided region in a color range.

        Args:
            frame: BGR image at processing resolution
            lower: Lower (h, s, v) bound
            upper: Upper (h, s, v) bound

        Returns:
            Corners in canonical order, or None if nothing approximates to 4 vertices
        """
        mask = self.build_mask(frame, lower, upper, self.morph_iterations)
        contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)

        largest_area = 0.0
        best = None

        for c in contours:
            approx = cv2.approxPolyDP(c, QUAD_APPROX_EPSILON, True)
            if len(approx) != 4:
                continue

            area = cv2.contourArea(approx)
            if area > largest_area:
                largest_area = area
                best = approx

        self.last_mask = mask

        if best is None:
            return None

        corners = [Point2D(x=float(x), y=float(y)) for x, y in best.reshape(-1, 2)]
        return geometry.sort_square_points(corners)

    def _create_debug_frame(
        self,
        original: np.ndarray,
        mask: np.ndarray,
        approx_contours: List[np.ndarray],
        candidate: Optional[BallCandidate],
    ) -> None:
        """Create debug visualization frame.

        Args:
            original: Frame the candidate was found in
            mask: Binary mask of the ball color range
            approx_contours: Polygon approximations of every contour
            candidate: Selected candidate, if any
        """
        debug = original.copy()
        cv2.drawContours(debug, approx_contours, -1, (0, 255, 0))

        if candidate is not None:
            color = (255, 255, 0) if candidate.found else (0, 165, 255)
            cv2.circle(debug, candidate.center.to_pixel(), int(candidate.radius), color, 2)
            cv2.circle(debug, candidate.centroid.to_pixel(), 3, (255, 0, 0), -1)
            cv2.putText(debug, f"r={candidate.radius:.1f}", candidate.center.to_pixel(),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.4, color, 1)

        mask_bgr = cv2.cvtColor(mask, cv2.COLOR_GRAY2BGR)
        self.debug_frame = np.hstack([debug, mask_bgr])

    def get_debug_frame(self) -> Optional[np.ndarray]:
        """Get debug visualization frame.

        Returns:
            Debug frame or None if debug mode disabled
        """
        return self.debug_frame

    def set_debug_mode(self, enabled: bool) -> None:
        """Enable/disable debug visualization.

        Args:
            enabled: Whether to generate debug frames
        """
        self.debug_mode = enabled
        if not enabled:
            self.debug_frame = None
