"""Shared fixtures for the BounceBack test suite."""

import pytest

from bounceback.object_detection import ConfigurationParameters
from bounceback.session import Session
from bounceback.settings import CalibrationTiming, SessionConfig, SourceConfig
from synthetic import ScriptedDisplay, ScriptedFrameSource


@pytest.fixture
def fast_config():
    """Config with no pauses, no windows and no tuning panel."""
    return SessionConfig(
        source=SourceConfig(read_retry_delay=0.0),
        calibration=CalibrationTiming(warmup_frames=2, settle_delay=0.0, preview_hold=0.0, quick_hold=0.0),
        configuration=ConfigurationParameters(show_tuning_ui=False, show_preview=False),
    )


@pytest.fixture
def display():
    return ScriptedDisplay()


@pytest.fixture
def make_session(fast_config, display):
    """Factory building a session around a scripted frame source."""
    sessions = []

    def _make(source=None, config=None, display_override=None):
        session = Session(
            config=config or fast_config,
            frame_source=source or ScriptedFrameSource(),
            display=display_override or display,
        )
        sessions.append(session)
        return session

    yield _make

    for session in sessions:
        session.close()
