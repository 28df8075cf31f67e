"""Error codes and exception classes for BounceBack.

Every exception carries the numeric code reported to the host's error
callback, so the session boundary can translate failures uniformly.
"""

from enum import IntEnum
from typing import Optional


class ErrorCode(IntEnum):
    """Codes passed to the host error callback."""
    OK = 0
    UNABLE_TO_OPEN_VIDEO = 1
    COULD_NOT_READ_FRAME = 2
    NOT_IN_CALIBRATION_MODE = 3
    COULD_NOT_CALIBRATE = 4


class BounceBackError(Exception):
    """Base exception for all BounceBack errors."""

    code: ErrorCode = ErrorCode.OK

    def __init__(self, message: str, code: Optional[ErrorCode] = None):
        if code is not None:
            self.code = code
        super().__init__(message)


class VideoSourceError(BounceBackError):
    """Raised when the frame source cannot be opened."""

    code = ErrorCode.UNABLE_TO_OPEN_VIDEO


class FrameReadError(BounceBackError):
    """Raised when a frame cannot be read from an open source."""

    code = ErrorCode.COULD_NOT_READ_FRAME


class NotInCalibrationModeError(BounceBackError):
    """Raised when a surface sample is requested outside a calibration bracket."""

    code = ErrorCode.NOT_IN_CALIBRATION_MODE


class CalibrationFailedError(BounceBackError):
    """Raised when surface calibration ends without usable samples."""

    code = ErrorCode.COULD_NOT_CALIBRATE
