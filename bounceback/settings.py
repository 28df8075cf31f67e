"""
Run configuration for a tracking session.

Groups the frame source, tracking constants, calibration timing and the
detection models into one record that can be loaded from YAML or JSON.
"""

from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator

from bounceback import yaml
from bounceback.collision_detector import (
    COLLISION_DISPLAY_FRAMES,
    COLLISION_PAST_STEPS,
    LOST_BALL_FRAMES,
    MIN_HISTORY_FOR_COLLISION,
    RADIUS_LATERAL_MULT,
)
from bounceback.object_detection import (
    BallDetectionParameters,
    ConfigurationParameters,
    ContourParameters,
)
from bounceback.trajectory import DEFAULT_CAPACITY

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class SourceConfig(BaseModel):
    """Where frames come from."""
    camera_index: int = Field(default=0, ge=0, description="Camera device index")
    video_path: Optional[str] = Field(default=None, description="Video file used when reading from file")
    read_retry_delay: float = Field(
        default=0.01,
        ge=0.0,
        description="Pause (s) after a failed frame read before the loop retries"
    )


class TrackingConfig(BaseModel):
    """Trajectory and collision detection constants."""
    trajectory_capacity: int = Field(default=DEFAULT_CAPACITY, ge=4)
    min_history: int = Field(default=MIN_HISTORY_FOR_COLLISION, ge=2)
    past_steps: int = Field(default=COLLISION_PAST_STEPS, ge=1)
    lost_ball_frames: int = Field(default=LOST_BALL_FRAMES, ge=0)
    collision_display_frames: int = Field(default=COLLISION_DISPLAY_FRAMES, ge=0)
    lateral_multiplier: float = Field(default=RADIUS_LATERAL_MULT, ge=0.0)


class CalibrationTiming(BaseModel):
    """Frame counts and pauses used by the calibration procedures."""
    warmup_frames: int = Field(default=20, ge=0, description="Frames discarded before sampling")
    settle_delay: float = Field(default=0.05, ge=0.0, description="Pause (s) before warm-up")
    preview_hold: float = Field(default=0.5, ge=0.0, description="Pause (s) after a sample with preview on")
    quick_hold: float = Field(default=0.05, ge=0.0, description="Pause (s) after a sample without preview")


class SessionConfig(BaseModel):
    """Complete run configuration for one session."""
    source: SourceConfig = Field(default_factory=SourceConfig)
    tracking: TrackingConfig = Field(default_factory=TrackingConfig)
    calibration: CalibrationTiming = Field(default_factory=CalibrationTiming)
    configuration: ConfigurationParameters = Field(default_factory=ConfigurationParameters)
    ball: BallDetectionParameters = Field(default_factory=BallDetectionParameters)
    contour: ContourParameters = Field(default_factory=ContourParameters)
    log_level: str = "INFO"

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level {v!r}")
        return level

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'SessionConfig':
        """Load from a YAML or JSON file. An empty file yields the defaults."""
        data = yaml.load(path)
        return cls.model_validate(data or {})

    def save(self, path: Union[str, Path]) -> None:
        """Write to a YAML or JSON file, chosen by extension."""
        yaml.dump(self.model_dump(mode='json'), path)
