"""
Image scaling and quadrilateral helpers.
"""

import math
from typing import List, Sequence

import cv2
import numpy as np

from bounceback.object_detection.config import ResizeStrategy
from models.primitives import Point2D


def resize_to_width(image: np.ndarray, width: int) -> np.ndarray:
    """Scale an image to the given width, keeping the aspect ratio.

    Args:
        image: Image to scale
        width: Target width in pixels

    Returns:
        Scaled image (the input itself if it already has that width)
    """
    h, w = image.shape[:2]
    if w == width:
        return image

    ratio = width / float(w)
    height = int(math.floor(h * ratio))
    return cv2.resize(image, (width, height))


def resize_close_to(image: np.ndarray, width: int) -> np.ndarray:
    """Halve an image until its width is as close as possible to `width`.

    Only divides by powers of two, which keeps pixel blocks aligned. Never
    upscales.

    Args:
        image: Image to scale
        width: Preferred width in pixels

    Returns:
        Scaled image (the input itself if no halving gets closer)
    """
    h, w = image.shape[:2]

    power = 0
    best_distance = abs(w - width)
    while (w >> (power + 1)) > 0:
        distance = abs((w >> (power + 1)) - width)
        if distance >= best_distance:
            break
        best_distance = distance
        power += 1

    if power == 0:
        return image

    divisor = 2 ** power
    return cv2.resize(image, (w // divisor, h // divisor))


def sort_square_points(points: Sequence[Point2D]) -> List[Point2D]:
    """Sort quadrilateral corners into a canonical order.

    Order is top-left, top-right, bottom-right, bottom-left, regardless of
    the order the corners were detected or clicked in. Anything other than
    four points is returned unchanged.
    """
    if len(points) != 4:
        return list(points)

    # Rows first, x breaks ties so equal heights sort deterministically
    ordered = sorted(points, key=lambda p: (p.y, p.x))

    top = sorted(ordered[:2], key=lambda p: p.x)
    bottom = sorted(ordered[2:], key=lambda p: p.x, reverse=True)

    return top + bottom


def average_quadrilaterals(samples: Sequence[Sequence[Point2D]]) -> List[Point2D]:
    """Component-wise mean of several 4-point samples.

    Raises:
        ValueError: If there are no samples
    """
    if not samples:
        raise ValueError("Cannot average zero quadrilaterals")

    data = np.array([[p.as_tuple() for p in sample] for sample in samples], dtype=np.float64)
    mean = data.mean(axis=0)
    return [Point2D(x=float(x), y=float(y)) for x, y in mean]


def resize_for_processing(
    image: np.ndarray,
    width: int,
    strategy: ResizeStrategy = ResizeStrategy.EXACT,
) -> np.ndarray:
    """Scale a frame to the internal processing width with the given strategy."""
    if strategy == ResizeStrategy.POWER_OF_TWO:
        return resize_close_to(image, width)
    return resize_to_width(image, width)
