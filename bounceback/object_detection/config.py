"""
Configuration models for ball detection.
"""

from enum import Enum
from typing import Tuple
from pydantic import BaseModel, Field, field_validator, model_validator

HUE_MAX = 179
CHANNEL_MAX = 255


def _clamp(value: int, upper: int) -> int:
    return max(0, min(upper, int(value)))


class ResizeStrategy(str, Enum):
    """How frames are scaled down to the internal processing width."""
    EXACT = "exact"                 # Scale to exactly the target width
    POWER_OF_TWO = "power_of_two"   # Halve until closest to the target width


class BallDetectionParameters(BaseModel):
    """HSV range and minimum radius for the tracked ball.

    Defaults match a yellow tennis ball. Values outside the OpenCV HSV domain
    are clamped and inverted low/high pairs are swapped on construction.
    """

    hue_low: int = Field(default=23, ge=0, le=HUE_MAX, description="Minimum hue value (0-179)")
    hue_high: int = Field(default=43, ge=0, le=HUE_MAX, description="Maximum hue value (0-179)")
    saturation_low: int = Field(default=30, ge=0, le=CHANNEL_MAX, description="Minimum saturation (0-255)")
    saturation_high: int = Field(default=255, ge=0, le=CHANNEL_MAX, description="Maximum saturation (0-255)")
    value_low: int = Field(default=50, ge=0, le=CHANNEL_MAX, description="Minimum brightness value (0-255)")
    value_high: int = Field(default=255, ge=0, le=CHANNEL_MAX, description="Maximum brightness value (0-255)")

    radius_threshold: int = Field(
        default=4,
        ge=0,
        description="Enclosing circle radius (px) a blob must exceed to count as the ball"
    )

    @field_validator('hue_low', 'hue_high', mode='before')
    @classmethod
    def clamp_hue(cls, v):
        return _clamp(v, HUE_MAX)

    @field_validator('saturation_low', 'saturation_high', 'value_low', 'value_high', mode='before')
    @classmethod
    def clamp_channel(cls, v):
        return _clamp(v, CHANNEL_MAX)

    @model_validator(mode='after')
    def reorder_ranges(self) -> 'BallDetectionParameters':
        if self.hue_low > self.hue_high:
            self.hue_low, self.hue_high = self.hue_high, self.hue_low
        if self.saturation_low > self.saturation_high:
            self.saturation_low, self.saturation_high = self.saturation_high, self.saturation_low
        if self.value_low > self.value_high:
            self.value_low, self.value_high = self.value_high, self.value_low
        return self

    @classmethod
    def from_bounds(
        cls,
        lower: Tuple[int, int, int],
        upper: Tuple[int, int, int],
        radius_threshold: int = 4,
    ) -> 'BallDetectionParameters':
        """Build from (h, s, v) lower and upper triples."""
        return cls(
            hue_low=lower[0], saturation_low=lower[1], value_low=lower[2],
            hue_high=upper[0], saturation_high=upper[1], value_high=upper[2],
            radius_threshold=radius_threshold,
        )

    def get_hsv_lower(self) -> Tuple[int, int, int]:
        """Get lower HSV bound as tuple."""
        return (self.hue_low, self.saturation_low, self.value_low)

    def get_hsv_upper(self) -> Tuple[int, int, int]:
        """Get upper HSV bound as tuple."""
        return (self.hue_high, self.saturation_high, self.value_high)


class ContourParameters(BaseModel):
    """Contour filtering used to tell the ball apart from noise."""

    circle_contour_limit: int = Field(
        default=3,
        ge=0,
        le=20,
        description="Approximated polygons need more vertices than this to count as round"
    )
    epsilon_multiplier: int = Field(
        default=6,
        ge=0,
        le=200,
        description="approxPolyDP epsilon in thousandths of the contour perimeter"
    )
    morph_iterations: int = Field(default=2, ge=0, le=10, description="Erode/dilate iterations on the mask")

    @property
    def epsilon_fraction(self) -> float:
        return self.epsilon_multiplier / 1000.0


class ConfigurationParameters(BaseModel):
    """Display and behaviour flags for a tracking session."""

    show_collisions: bool = Field(default=True, description="Draw ball markers and the last collision point")
    using_video_file: bool = Field(default=False, description="Read from a video file instead of a camera")
    show_tuning_ui: bool = Field(default=True, description="Show the trackbar tuning panel while processing")
    show_preview: bool = Field(default=True, description="Show processed frames in preview windows")

    target_internal_width: int = Field(
        default=480,
        ge=16,
        description="Frames are scaled to this width before processing"
    )
    resize_strategy: ResizeStrategy = Field(default=ResizeStrategy.EXACT)
