"""
Tracking session: configuration store, calibration procedures and the
processing loop.

A Session owns every piece of mutable state behind one re-entrant lock. The
processing loop holds the lock for one whole frame at a time; calibration
procedures hold it for their whole duration. Host callbacks run on the
thread that detected the event, with the lock held.
"""

import threading
import time
from typing import Callable, List, Optional

import cv2
import numpy as np

from bounceback.collision_detector import CollisionDetector
from bounceback.display import (
    BALL_DARK_WINDOW,
    BALL_LIGHT_WINDOW,
    MASK_WINDOW,
    PREVIEW_WINDOW,
    SURFACE_CLICK_WINDOW,
    SURFACE_MASK_WINDOW,
    SURFACE_PREVIEW_WINDOW,
    Display,
    OpenCVDisplay,
    TuningValues,
)
from bounceback.errors import (
    BounceBackError,
    FrameReadError,
    NotInCalibrationModeError,
)
from bounceback.frame_source import FrameSource, OpenCVFrameSource
from bounceback.geometry import resize_for_processing
from bounceback.logging import get_logger
from bounceback.object_detection import (
    BallCandidate,
    BallDetectionParameters,
    BallLocator,
    ColorBlobDetector,
    ConfigurationParameters,
    ContourParameters,
)
from bounceback.settings import SessionConfig
from calibration import interactive
from calibration.calibration_manager import CalibrationManager
from models import CalibrationSettings, Point2D, SurfaceCalibration

log = get_logger('session')

CollisionCallback = Callable[[float, float], None]
ErrorCallback = Callable[[int], None]

# Marker colors (BGR)
CANDIDATE_COLOR = (255, 255, 0)
CENTROID_COLOR = (255, 0, 0)
TRAIL_COLOR = (255, 0, 255)
COLLISION_COLOR = (0, 0, 255)
SURFACE_COLOR = (255, 100, 0)
CONTOUR_COLOR = (0, 255, 0)
# Corner markers in TL, TR, BR, BL order
CORNER_COLORS = [(255, 0, 0), (0, 255, 0), (255, 0, 255), (0, 0, 255)]


class Session:
    """One tracking session: a ball, a surface and a frame source.

    Args:
        config: Run configuration, defaults when omitted
        frame_source: Frame source, an OpenCV camera/file source when omitted
        display: Preview windows, OpenCV HighGUI when omitted
        locator: Ball/surface locator, a color blob detector when omitted
    """

    def __init__(
        self,
        config: Optional[SessionConfig] = None,
        frame_source: Optional[FrameSource] = None,
        display: Optional[Display] = None,
        locator: Optional[BallLocator] = None,
    ):
        self.config = config or SessionConfig()

        self.source = frame_source or OpenCVFrameSource(
            camera_index=self.config.source.camera_index,
            video_path=self.config.source.video_path,
        )
        self.display = display or OpenCVDisplay()
        self.locator = locator or ColorBlobDetector(
            morph_iterations=self.config.contour.morph_iterations
        )

        tracking = self.config.tracking
        self.detector = CollisionDetector(
            capacity=tracking.trajectory_capacity,
            min_history=tracking.min_history,
            past_steps=tracking.past_steps,
            lost_ball_frames=tracking.lost_ball_frames,
            collision_display_frames=tracking.collision_display_frames,
            lateral_multiplier=tracking.lateral_multiplier,
        )
        self.calibration = CalibrationManager()

        self.ball = BallDetectionParameters.model_validate(self.config.ball.model_dump())
        self.contour = self.config.contour.model_copy()
        self.configuration = self.config.configuration.model_copy()

        self._lock = threading.RLock()
        self._collision_callback: Optional[CollisionCallback] = None
        self._error_callback: Optional[ErrorCallback] = None

        self._stop_requested = threading.Event()
        self._stopped = threading.Event()
        self._stopped.set()
        self._running = False
        self._worker: Optional[threading.Thread] = None
        self._calibration_owns_source = False

    @property
    def is_running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Error reporting and callbacks
    # ------------------------------------------------------------------

    def _report(self, error: BounceBackError) -> None:
        """Log an error and forward its code to the host."""
        log.error(f"{error} (code {error.code.name})")
        callback = self._error_callback
        if callback is None:
            return
        try:
            callback(int(error.code))
        except Exception as e:
            log.exception(f"Error callback raised: {e}")

    def _notify_collision(self, point: Point2D) -> None:
        callback = self._collision_callback
        if callback is None:
            return
        try:
            callback(point.x, point.y)
        except Exception as e:
            log.exception(f"Collision callback raised: {e}")

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_ball_color_range(
        self,
        hue_low: int, hue_high: int,
        saturation_low: int, saturation_high: int,
        value_low: int, value_high: int,
    ) -> bool:
        """Replace the ball HSV range, keeping the radius threshold."""
        with self._lock:
            try:
                self.ball = BallDetectionParameters(
                    hue_low=hue_low, hue_high=hue_high,
                    saturation_low=saturation_low, saturation_high=saturation_high,
                    value_low=value_low, value_high=value_high,
                    radius_threshold=self.ball.radius_threshold,
                )
            except ValueError as e:
                log.error(f"Rejected ball color range: {e}")
                return False
            self._sync_tuning_panel()
            log.debug(f"Ball range set to {self.ball.get_hsv_lower()} - {self.ball.get_hsv_upper()}")
        return True

    def set_ball_radius_threshold(self, radius: int) -> bool:
        with self._lock:
            try:
                self.ball = BallDetectionParameters(
                    **self.ball.model_dump(exclude={'radius_threshold'}),
                    radius_threshold=radius,
                )
            except ValueError as e:
                log.error(f"Rejected ball radius threshold: {e}")
                return False
            self._sync_tuning_panel()
        return True

    def set_config(
        self,
        show_collisions: bool,
        using_video_file: bool,
        show_tuning_ui: bool,
        show_preview: bool,
    ) -> bool:
        """Replace the display and source flags. Takes effect on the next frame."""
        with self._lock:
            try:
                self.configuration = ConfigurationParameters(
                    **self.configuration.model_dump(exclude={
                        'show_collisions', 'using_video_file', 'show_tuning_ui', 'show_preview'
                    }),
                    show_collisions=show_collisions,
                    using_video_file=using_video_file,
                    show_tuning_ui=show_tuning_ui,
                    show_preview=show_preview,
                )
            except ValueError as e:
                log.error(f"Rejected configuration flags: {e}")
                return False
            self._sync_tuning_panel()
        return True

    def set_contour_parameters(self, contour: ContourParameters) -> bool:
        with self._lock:
            try:
                self.contour = ContourParameters.model_validate(contour.model_dump())
            except ValueError as e:
                log.error(f"Rejected contour parameters: {e}")
                return False
            self._sync_tuning_panel()
        return True

    def set_collision_callback(self, callback: Optional[CollisionCallback]) -> bool:
        with self._lock:
            self._collision_callback = callback
        return True

    def set_error_callback(self, callback: Optional[ErrorCallback]) -> bool:
        with self._lock:
            self._error_callback = callback
        return True

    def _tuning_values(self) -> TuningValues:
        return TuningValues(
            ball=self.ball,
            contour=self.contour,
            show_collisions=self.configuration.show_collisions,
        )

    def _sync_tuning_panel(self) -> None:
        self.display.sync_tuning_panel(self._tuning_values())

    def _apply_tuning_panel(self) -> None:
        values = self.display.read_tuning_panel()
        if values is None:
            return

        self.ball = values.ball
        self.contour = values.contour
        if values.show_collisions != self.configuration.show_collisions:
            self.configuration = ConfigurationParameters(
                **self.configuration.model_dump(exclude={'show_collisions'}),
                show_collisions=values.show_collisions,
            )

    # ------------------------------------------------------------------
    # Frame source ownership
    # ------------------------------------------------------------------

    def _acquire_source(self) -> bool:
        """Open the frame source unless it is already open.

        Returns:
            True if this call opened it and the caller must release it

        Raises:
            VideoSourceError: If the source cannot be opened
        """
        if self.source.is_opened():
            return False
        self.source.open(use_file=self.configuration.using_video_file)
        return True

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def init(self) -> bool:
        """Reset tracking and check that the frame source can be opened."""
        with self._lock:
            self.detector.reset()
            try:
                opened = self._acquire_source()
            except BounceBackError as e:
                self._report(e)
                return False

            if opened:
                self.source.release()
            log.info("Session initialized")
            return True

    def launch(self) -> bool:
        """Run the processing loop on the calling thread until stop() is called.

        Returns:
            False if the loop was already running, the source failed to open
            or the tuning panel could not be created
        """
        with self._lock:
            if self._running:
                log.warning("Processing loop is already running")
                return False

            try:
                opened = self._acquire_source()
            except BounceBackError as e:
                self._report(e)
                return False

            self._running = True
            self._worker = threading.current_thread()
            self._stop_requested.clear()
            self._stopped.clear()

        try:
            if not self._open_windows():
                return False

            log.info("Processing loop started")
            while not self._stop_requested.is_set():
                self.process_next_frame()
                # Let waiting host threads take the lock between frames
                time.sleep(0)
        finally:
            with self._lock:
                self.display.close_all()
                if opened:
                    self.source.release()
                self._running = False
                self._worker = None
                self._stopped.set()
            log.info("Processing loop stopped")

        return True

    def _open_windows(self) -> bool:
        with self._lock:
            self.display.close_all()
            if not self.configuration.show_tuning_ui:
                return True
            try:
                self.display.open_tuning_panel(self._tuning_values())
            except (cv2.error, RuntimeError) as e:
                log.error(f"Could not open the tuning panel: {e}")
                return False
            return True

    def stop(self, timeout: Optional[float] = None) -> bool:
        """Request the processing loop to stop and wait for it to exit.

        The frame in flight always completes. Must not be called from a
        callback; when it is, the stop is only requested.

        Returns:
            True once the loop is no longer running, False on timeout
        """
        self._stop_requested.set()
        if not self._running:
            return True

        if threading.current_thread() is self._worker:
            log.warning("stop() called from the processing thread, not waiting")
            return True

        return self._stopped.wait(timeout)

    def process_next_frame(self) -> Optional[Point2D]:
        """Read one frame and run it through the pipeline.

        A failed read is reported and the loop moves on after a short delay.
        """
        with self._lock:
            try:
                frame = self.source.read()
            except FrameReadError as e:
                self._report(e)
                frame = None

            if frame is not None:
                return self.process_frame(frame)

        time.sleep(self.config.source.read_retry_delay)
        return None

    def process_frame(self, frame: np.ndarray) -> Optional[Point2D]:
        """Run one BGR frame through detection, collision and mapping.

        Returns:
            Surface coordinates of a collision reported to the host, else None
        """
        with self._lock:
            self._apply_tuning_panel()
            configuration = self.configuration

            small = resize_for_processing(
                frame, configuration.target_internal_width, configuration.resize_strategy
            )

            candidate = self.locator.locate_ball(small, self.ball, self.contour)
            collision = self.detector.update(candidate)

            mapped = None
            if (collision is not None
                    and self.calibration.is_calibrated()
                    and not self._stop_requested.is_set()):
                mapped = self.calibration.camera_to_surface(collision)
                log.info(f"Collision at surface ({mapped.x:.3f}, {mapped.y:.3f})")
                self._notify_collision(mapped)

            marker_visible = configuration.show_collisions and self.detector.tick_marker()

            if configuration.show_preview:
                self._render_preview(small, candidate, marker_visible)
                self.display.poll(1)

            return mapped

    def _render_preview(
        self,
        frame: np.ndarray,
        candidate: Optional[BallCandidate],
        marker_visible: bool,
    ) -> None:
        canvas = frame.copy()
        show_markers = self.configuration.show_collisions

        cv2.drawContours(canvas, getattr(self.locator, 'last_contours', []), -1, CONTOUR_COLOR)

        if candidate is not None and candidate.found and show_markers:
            cv2.circle(canvas, candidate.center.to_pixel(), int(candidate.radius), CANDIDATE_COLOR, 2)
            cv2.circle(canvas, candidate.centroid.to_pixel(), 3, CENTROID_COLOR, -1)

        trail = list(self.detector.trajectory.recent())
        for newer, older in zip(trail, trail[1:]):
            cv2.line(canvas, newer.to_pixel(), older.to_pixel(), TRAIL_COLOR)

        position = self.detector.collision.position
        if marker_visible and position is not None:
            cv2.circle(canvas, position.to_pixel(), 10, COLLISION_COLOR, -1)

        corners = self.calibration.get_corners()
        if show_markers and corners:
            outline = np.array([p.to_pixel() for p in corners], dtype=np.int32)
            cv2.polylines(canvas, [outline], True, SURFACE_COLOR, 4)

        self.display.show(PREVIEW_WINDOW, canvas)
        mask = getattr(self.locator, 'last_mask', None)
        if mask is not None:
            self.display.show(MASK_WINDOW, mask)

    # ------------------------------------------------------------------
    # Surface calibration
    # ------------------------------------------------------------------

    def start_surface_calibration(self) -> bool:
        """Open a surface calibration bracket, discarding any previous calibration."""
        with self._lock:
            try:
                opened = self._acquire_source()
            except BounceBackError as e:
                self._report(e)
                return False

            self._calibration_owns_source = self._calibration_owns_source or opened
            self.display.close_all()
            self.calibration.start()
            return True

    def sample_surface_by_click(self, hue_tolerance: int, saturation_tolerance: int, value_tolerance: int) -> bool:
        """Sample the surface after the user clicks on it.

        The clicked color, widened by the tolerances, is the range used to
        look for the surface quadrilateral.
        """
        tolerances = (hue_tolerance, saturation_tolerance, value_tolerance)

        def pick_range():
            hsv, frame = interactive.wait_for_click_hsv(self.source, self.display, SURFACE_CLICK_WINDOW)
            return interactive.range_around(hsv, tolerances), frame

        return self._sample_surface(pick_range)

    def sample_surface_by_range(
        self,
        hue_low: int, hue_high: int,
        saturation_low: int, saturation_high: int,
        value_low: int, value_high: int,
    ) -> bool:
        """Sample the surface using an explicit HSV range."""
        lower = interactive.clamp_hsv((hue_low, saturation_low, value_low))
        upper = interactive.clamp_hsv((hue_high, saturation_high, value_high))

        def pick_range():
            return (lower, upper), self.source.read()

        return self._sample_surface(pick_range)

    def _sample_surface(self, pick_range) -> bool:
        timing = self.config.calibration

        with self._lock:
            try:
                if not self.calibration.is_calibrating:
                    raise NotInCalibrationModeError("Surface sampling requested outside calibration")

                interactive.pause(timing.settle_delay)
                interactive.warm_up(self.source, timing.warmup_frames, self.display)

                (lower, upper), frame = pick_range()

                self._sample_surface_frame(frame, lower, upper)
            except BounceBackError as e:
                self._report(e)
                return False
            except RuntimeError as e:
                log.error(f"Click sampling unavailable: {e}")
                return False

            hold = timing.preview_hold if self.configuration.show_preview else timing.quick_hold
            interactive.pause(hold)
            return True

    def _sample_surface_frame(self, frame: np.ndarray, lower, upper) -> Optional[List[Point2D]]:
        configuration = self.configuration
        small = resize_for_processing(
            frame, configuration.target_internal_width, configuration.resize_strategy
        )

        corners = self.locator.locate_quadrilateral(small, lower, upper)
        if corners is None:
            log.info(f"No surface quadrilateral in range {lower} - {upper}")
        else:
            self.calibration.add_sample(corners)
            log.info(f"Surface sample {self.calibration.sample_count} collected")

        if configuration.show_preview:
            canvas = small.copy()
            for corner, color in zip(corners or [], CORNER_COLORS):
                cv2.circle(canvas, corner.to_pixel(), 3, color, -1)
            self.display.show(SURFACE_PREVIEW_WINDOW, canvas)

            mask = getattr(self.locator, 'last_mask', None)
            if mask is not None:
                self.display.show(SURFACE_MASK_WINDOW, mask)
            self.display.poll(1)

        return corners

    def end_surface_calibration(self) -> SurfaceCalibration:
        """Close the calibration bracket.

        Returns:
            The new surface calibration, invalid if no sample was collected
        """
        with self._lock:
            try:
                result = self.calibration.end()
            except BounceBackError as e:
                self._report(e)
                result = SurfaceCalibration.invalid()
            finally:
                if self._calibration_owns_source and not self._running:
                    self.source.release()
                self._calibration_owns_source = False
                self.display.close_all()

            return result

    # ------------------------------------------------------------------
    # Ball calibration
    # ------------------------------------------------------------------

    def calibrate_ball_by_click(self, hue_tolerance: int, saturation_tolerance: int, value_tolerance: int) -> bool:
        """Derive the ball color range from a dark and a lit click on the ball."""
        tolerances = (hue_tolerance, saturation_tolerance, value_tolerance)

        with self._lock:
            opened = False
            try:
                opened = self._acquire_source()

                timing = self.config.calibration
                interactive.pause(timing.settle_delay)
                interactive.warm_up(self.source, timing.warmup_frames, self.display)

                dark, _ = interactive.wait_for_click_hsv(self.source, self.display, BALL_DARK_WINDOW)
                light, _ = interactive.wait_for_click_hsv(self.source, self.display, BALL_LIGHT_WINDOW)

                self.ball = interactive.derive_ball_parameters(
                    dark, light, tolerances, self.ball.radius_threshold
                )
                self._sync_tuning_panel()
                log.info(f"Ball calibrated to {self.ball.get_hsv_lower()} - {self.ball.get_hsv_upper()}")
                return True
            except BounceBackError as e:
                self._report(e)
                return False
            except RuntimeError as e:
                log.error(f"Click sampling unavailable: {e}")
                return False
            finally:
                if opened:
                    self.source.release()
                self.display.close_all()

    # ------------------------------------------------------------------
    # Settings exchange
    # ------------------------------------------------------------------

    def get_calibration_settings(self) -> CalibrationSettings:
        with self._lock:
            return self.calibration.export_settings(self.ball)

    def set_calibration_settings(self, settings: CalibrationSettings) -> bool:
        """Restore a record from get_calibration_settings()."""
        with self._lock:
            try:
                self.ball = self.calibration.import_settings(settings)
            except ValueError as e:
                log.error(f"Rejected calibration settings: {e}")
                return False
            self._sync_tuning_panel()
            return True

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Stop the loop if running and release every resource."""
        self.stop()
        with self._lock:
            self.source.release()
            self.display.close_all()
            self._calibration_owns_source = False
        log.info("Session closed")

