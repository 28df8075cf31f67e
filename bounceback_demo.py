#!/usr/bin/env python3
"""
BounceBack Demo - track a ball and print where it hits the surface

Runs surface and ball calibration, then processes frames and logs every
collision in normalized surface coordinates.

Usage:
    # Webcam, calibrate by clicking, run until Ctrl+C
    python bounceback_demo.py

    # Video file, 30 seconds
    python bounceback_demo.py --video throws.mp4 --duration 30

    # No windows: surface found by HSV range, ball range from the config
    python bounceback_demo.py --headless --config session.yaml \\
        --surface-range 110 130 100 255 100 255

    # Reuse a configuration and skip calibration entirely
    python bounceback_demo.py --config session.yaml --skip-calibration
"""

import argparse
import sys
import threading

from bounceback import api
from bounceback.display import HeadlessDisplay
from bounceback.errors import ErrorCode
from bounceback.logging import configure_logging, get_logger
from bounceback.settings import SessionConfig

log = get_logger('demo')


def build_config(args) -> SessionConfig:
    """Load the run configuration and apply command line overrides."""
    config = SessionConfig.load(args.config) if args.config else SessionConfig()

    source = config.source.model_copy(update={
        'camera_index': args.camera if args.camera is not None else config.source.camera_index,
        'video_path': args.video or config.source.video_path,
    })
    configuration = config.configuration.model_copy(update={
        'using_video_file': bool(args.video) or config.configuration.using_video_file,
    })
    if args.headless:
        configuration = configuration.model_copy(update={'show_tuning_ui': False, 'show_preview': False})

    return config.model_copy(update={
        'source': source,
        'configuration': configuration,
        'log_level': (args.log_level or config.log_level).upper(),
    })


def calibrate(session, args) -> None:
    """Run surface calibration, then ball calibration when a display is available."""
    print("\nSurface calibration")
    if not api.start_surface_calibration(session):
        return

    for i in range(args.surface_samples):
        if args.surface_range:
            h_low, h_high, s_low, s_high, v_low, v_high = args.surface_range
            api.sample_surface_by_range(session, h_low, h_high, s_low, s_high, v_low, v_high)
        elif not args.headless:
            print(f"  Click on the surface ({i + 1}/{args.surface_samples})")
            api.sample_surface_by_click(session, *args.surface_tolerance)

    surface = api.end_surface_calibration(session)
    if surface.valid:
        corners = ", ".join(f"({p.x:.0f}, {p.y:.0f})" for p in surface.corners)
        print(f"  Surface corners: {corners}")
    else:
        print("  Surface calibration failed, collisions will not be reported")

    if args.headless:
        print("\nBall calibration skipped (headless), using configured ball range")
        return

    print("\nBall calibration: click the ball in shadow, then the ball in light")
    api.calibrate_ball_by_click(session, *args.ball_tolerance)


def main():
    """Main entry point for the demo host."""

    parser = argparse.ArgumentParser(
        description='BounceBack Demo - ball bounce tracking',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Webcam with click calibration
  python bounceback_demo.py

  # Video file for 30 seconds
  python bounceback_demo.py --video throws.mp4 --duration 30
        """
    )

    # Source settings
    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='Run configuration file (.yaml or .json)'
    )
    parser.add_argument(
        '--video',
        type=str,
        default=None,
        help='Read frames from this video file instead of a camera'
    )
    parser.add_argument(
        '--camera',
        type=int,
        default=None,
        help='Camera index (default: from config, else 0)'
    )

    # Run settings
    parser.add_argument(
        '--headless',
        action='store_true',
        help='Run without any window (click calibration is unavailable)'
    )
    parser.add_argument(
        '--duration',
        type=float,
        default=None,
        help='Stop processing after this many seconds (default: until Ctrl+C)'
    )
    parser.add_argument(
        '--log-level',
        type=str,
        default=None,
        help='Console log level (DEBUG, INFO, WARNING, ...)'
    )

    # Calibration settings
    parser.add_argument(
        '--skip-calibration',
        action='store_true',
        help='Do not calibrate; collisions are only reported with a calibrated surface'
    )
    parser.add_argument(
        '--ball-tolerance',
        type=int,
        nargs=3,
        metavar=('H', 'S', 'V'),
        default=[5, 50, 50],
        help='HSV tolerances for ball calibration (default: 5 50 50)'
    )
    parser.add_argument(
        '--surface-tolerance',
        type=int,
        nargs=3,
        metavar=('H', 'S', 'V'),
        default=[10, 60, 60],
        help='HSV tolerances around the clicked surface color (default: 10 60 60)'
    )
    parser.add_argument(
        '--surface-range',
        type=int,
        nargs=6,
        metavar=('H_LOW', 'H_HIGH', 'S_LOW', 'S_HIGH', 'V_LOW', 'V_HIGH'),
        default=None,
        help='Sample the surface with a fixed HSV range instead of clicking'
    )
    parser.add_argument(
        '--surface-samples',
        type=int,
        default=3,
        help='Number of surface samples to average (default: 3)'
    )

    args = parser.parse_args()

    config = build_config(args)
    configure_logging(config.log_level)

    display = HeadlessDisplay() if args.headless else None
    session = api.create_session(config, display=display)

    def on_collision(x: float, y: float) -> None:
        log.info(f"Bounce at ({x:.3f}, {y:.3f})")

    def on_error(code: int) -> None:
        log.warning(f"Session error: {ErrorCode(code).name}")

    api.set_collision_callback(session, on_collision)
    api.set_error_callback(session, on_error)

    try:
        if not api.init(session):
            print("Could not open the video source")
            return 1

        if not args.skip_calibration:
            calibrate(session, args)

        timer = None
        if args.duration:
            timer = threading.Timer(args.duration, api.stop, args=(session,))
            timer.daemon = True
            timer.start()

        print("\nTracking, press Ctrl+C to stop")
        try:
            api.launch(session)
        except KeyboardInterrupt:
            print("\nInterrupted")
        finally:
            if timer is not None:
                timer.cancel()

        settings = api.get_calibration_settings(session)
        if settings is not None and settings.surface.valid:
            log.info("Final calibration: " + settings.model_dump_json())
    finally:
        api.destroy_session(session)

    return 0


if __name__ == "__main__":
    sys.exit(main())
