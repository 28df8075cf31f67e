"""
Handle-based public API.

Flat functions over a Session handle for hosts that prefer a procedural
binding. Every function accepts None as a handle and then fails without
side effects: False, an invalid SurfaceCalibration, or None.
"""

from typing import Optional

from bounceback.session import CollisionCallback, ErrorCallback, Session
from bounceback.settings import SessionConfig
from models import CalibrationSettings, SurfaceCalibration

Handle = Optional[Session]


def create_session(config: Optional[SessionConfig] = None, **kwargs) -> Session:
    return Session(config=config, **kwargs)


def destroy_session(handle: Handle) -> None:
    if handle is not None:
        handle.close()


def is_callable() -> bool:
    """Capability probe for host bindings."""
    return True


def init(handle: Handle) -> bool:
    return handle is not None and handle.init()


def launch(handle: Handle) -> bool:
    """Run the processing loop on the calling thread until stop()."""
    return handle is not None and handle.launch()


def stop(handle: Handle, timeout: Optional[float] = None) -> bool:
    return handle is not None and handle.stop(timeout)


def set_ball_color_range(
    handle: Handle,
    hue_low: int, hue_high: int,
    saturation_low: int, saturation_high: int,
    value_low: int, value_high: int,
) -> bool:
    if handle is None:
        return False
    return handle.set_ball_color_range(
        hue_low, hue_high, saturation_low, saturation_high, value_low, value_high
    )


def set_ball_radius_threshold(handle: Handle, radius: int) -> bool:
    return handle is not None and handle.set_ball_radius_threshold(radius)


def set_config(
    handle: Handle,
    show_collisions: bool,
    using_video_file: bool,
    show_tuning_ui: bool,
    show_preview: bool,
) -> bool:
    if handle is None:
        return False
    return handle.set_config(show_collisions, using_video_file, show_tuning_ui, show_preview)


def set_collision_callback(handle: Handle, callback: Optional[CollisionCallback]) -> bool:
    return handle is not None and handle.set_collision_callback(callback)


def set_error_callback(handle: Handle, callback: Optional[ErrorCallback]) -> bool:
    return handle is not None and handle.set_error_callback(callback)


def start_surface_calibration(handle: Handle) -> bool:
    return handle is not None and handle.start_surface_calibration()


def sample_surface_by_click(
    handle: Handle,
    hue_tolerance: int,
    saturation_tolerance: int,
    value_tolerance: int,
) -> bool:
    if handle is None:
        return False
    return handle.sample_surface_by_click(hue_tolerance, saturation_tolerance, value_tolerance)


def sample_surface_by_range(
    handle: Handle,
    hue_low: int, hue_high: int,
    saturation_low: int, saturation_high: int,
    value_low: int, value_high: int,
) -> bool:
    if handle is None:
        return False
    return handle.sample_surface_by_range(
        hue_low, hue_high, saturation_low, saturation_high, value_low, value_high
    )


def end_surface_calibration(handle: Handle) -> SurfaceCalibration:
    if handle is None:
        return SurfaceCalibration.invalid()
    return handle.end_surface_calibration()


def calibrate_ball_by_click(
    handle: Handle,
    hue_tolerance: int,
    saturation_tolerance: int,
    value_tolerance: int,
) -> bool:
    if handle is None:
        return False
    return handle.calibrate_ball_by_click(hue_tolerance, saturation_tolerance, value_tolerance)


def get_calibration_settings(handle: Handle) -> Optional[CalibrationSettings]:
    if handle is None:
        return None
    return handle.get_calibration_settings()


def set_calibration_settings(handle: Handle, settings: CalibrationSettings) -> bool:
    return handle is not None and handle.set_calibration_settings(settings)
