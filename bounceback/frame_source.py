"""
Frame sources feeding the tracking session.

The session only talks to the FrameSource interface, so tests can feed
synthetic frames and hosts can plug in their own capture code.
"""

from abc import ABC, abstractmethod
from typing import Optional

import cv2
import numpy as np

from bounceback.errors import FrameReadError, VideoSourceError
from bounceback.logging import get_logger

log = get_logger('frame_source')


class FrameSource(ABC):
    """Abstract source of BGR frames."""

    @abstractmethod
    def open(self, use_file: bool = False) -> None:
        """Open the source.

        Args:
            use_file: Read from the configured video file instead of the camera

        Raises:
            VideoSourceError: If the source cannot be opened
        """
        pass

    @abstractmethod
    def read(self) -> np.ndarray:
        """Read the next frame.

        Raises:
            FrameReadError: If no frame could be read
        """
        pass

    @abstractmethod
    def release(self) -> None:
        """Release the source. Safe to call when not open."""
        pass

    @abstractmethod
    def is_opened(self) -> bool:
        pass


class OpenCVFrameSource(FrameSource):
    """Camera or video file read through cv2.VideoCapture."""

    def __init__(self, camera_index: int = 0, video_path: Optional[str] = None):
        self.camera_index = camera_index
        self.video_path = video_path
        self._capture: Optional[cv2.VideoCapture] = None

    def open(self, use_file: bool = False) -> None:
        if use_file:
            if not self.video_path:
                raise VideoSourceError("Reading from file requested but no video path is configured")
            target = self.video_path
        else:
            target = self.camera_index

        log.info(f"Opening video source {target!r}")
        capture = cv2.VideoCapture(target)
        if not capture.isOpened():
            capture.release()
            raise VideoSourceError(f"Unable to open video source {target!r}")

        self._capture = capture

    def read(self) -> np.ndarray:
        if self._capture is None:
            raise FrameReadError("Video source is not open")

        ok, frame = self._capture.read()
        if not ok or frame is None:
            raise FrameReadError("Could not read frame from video source")
        return frame

    def release(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None
            log.debug("Video source released")

    def is_opened(self) -> bool:
        return self._capture is not None and self._capture.isOpened()
