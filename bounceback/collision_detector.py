"""
Bounce detection from the ball's horizontal trajectory.

A collision is registered when the ball's horizontal direction reverses.
The point just before the reversal is reported, pushed towards the wall by
a fraction of the ball radius so it approximates the ball's leading edge
instead of its center.
"""

from dataclasses import dataclass
from typing import Optional

from bounceback.logging import get_logger
from bounceback.object_detection import BallCandidate
from bounceback.trajectory import TrajectoryBuffer, DEFAULT_CAPACITY
from models.primitives import Point2D

log = get_logger('collision_detector')

# Positions that must be in the buffer before a reversal can be evaluated
MIN_HISTORY_FOR_COLLISION = 3
# How far back the "old" direction is measured from at(1)
COLLISION_PAST_STEPS = 1
# Frames the last collision stays marked in the preview
COLLISION_DISPLAY_FRAMES = 20
# Frames the ball may go undetected before its trajectory is discarded
LOST_BALL_FRAMES = 7
# Fraction of the radius added towards the wall
RADIUS_LATERAL_MULT = 0.66


@dataclass
class CollisionMemory:
    """Last collision in screen space and how long it stays visible."""
    position: Optional[Point2D] = None
    frames_remaining: int = 0


class CollisionDetector:
    """Tracks ball positions and detects direction reversals.

    Call update() once per frame with that frame's candidate (or None).
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        min_history: int = MIN_HISTORY_FOR_COLLISION,
        past_steps: int = COLLISION_PAST_STEPS,
        lost_ball_frames: int = LOST_BALL_FRAMES,
        collision_display_frames: int = COLLISION_DISPLAY_FRAMES,
        lateral_multiplier: float = RADIUS_LATERAL_MULT,
    ):
        """Initialize collision detector.

        Args:
            capacity: Trajectory buffer capacity
            min_history: Buffer must hold more positions than this to evaluate
            past_steps: Offset from at(1) used for the previous direction
            lost_ball_frames: Grace period (frames) before the trajectory is reset
            collision_display_frames: Frames a collision stays marked
            lateral_multiplier: Fraction of the radius applied as correction
        """
        self.trajectory = TrajectoryBuffer(capacity)
        self.min_history = min_history
        self.past_steps = past_steps
        self.lost_ball_frames = lost_ball_frames
        self.collision_display_frames = collision_display_frames
        self.lateral_multiplier = lateral_multiplier

        self.collision = CollisionMemory()
        self.had_ball_previous_frame = False
        self.lost_ball_for_frames = 0

    def reset(self) -> None:
        """Forget the trajectory, the lost-ball countdown and the last collision."""
        self.trajectory.reset()
        self.collision = CollisionMemory()
        self.had_ball_previous_frame = False
        self.lost_ball_for_frames = 0

    def update(self, candidate: Optional[BallCandidate]) -> Optional[Point2D]:
        """Process one frame's candidate.

        Args:
            candidate: Ball candidate for this frame, or None

        Returns:
            Corrected screen-space collision point if a reversal happened
        """
        found = candidate is not None and candidate.found
        collision_point = None

        if found and len(self.trajectory) > self.min_history and candidate.centroid.x > 0.0:
            collision_point = self._detect_reversal(candidate)

        if found:
            self.trajectory.insert(candidate.centroid)
            self.had_ball_previous_frame = True
        else:
            self._handle_missing_ball()

        return collision_point

    def correct_for_radius(self, base: Point2D, old_direction: float, radius: float) -> Point2D:
        """Shift a collision point by the lateral radius correction.

        Args:
            base: Position immediately before the reversal
            old_direction: Horizontal displacement before the reversal
            radius: Ball radius in pixels

        Returns:
            Point shifted along the prior direction of motion
        """
        offset = radius * self.lateral_multiplier
        if old_direction > 0:
            return Point2D(x=base.x + offset, y=base.y)
        return Point2D(x=base.x - offset, y=base.y)

    def tick_marker(self) -> bool:
        """Advance the collision marker countdown by one frame.

        Returns:
            True if the last collision should still be drawn this frame
        """
        if self.collision.frames_remaining > 0:
            self.collision.frames_remaining -= 1
            return True
        return False

    def _detect_reversal(self, candidate: BallCandidate) -> Optional[Point2D]:
        previous = self.trajectory.at(1)
        before_previous = self.trajectory.at(1 + self.past_steps)

        old_direction = previous.x - before_previous.x
        new_direction = candidate.centroid.x - previous.x

        # Strict sign change, a zero displacement on either side is not a bounce
        if old_direction * new_direction >= 0.0:
            return None

        point = self.correct_for_radius(previous, old_direction, candidate.radius)
        self.collision = CollisionMemory(
            position=point,
            frames_remaining=self.collision_display_frames,
        )
        log.debug(
            f"Reversal at ({previous.x:.1f}, {previous.y:.1f}), "
            f"corrected to ({point.x:.1f}, {point.y:.1f})"
        )
        return point

    def _handle_missing_ball(self) -> None:
        if self.had_ball_previous_frame:
            self.lost_ball_for_frames = self.lost_ball_frames
        elif self.lost_ball_for_frames > 0:
            self.lost_ball_for_frames -= 1
        else:
            if self.trajectory:
                log.debug(f"Ball lost, discarding {len(self.trajectory)} positions")
            self.lost_ball_for_frames = -1
            self.trajectory.reset()

        self.had_ball_previous_frame = False
