"""Frames and frame sources.

A Frame wraps an RGB(A) uint8 pixel buffer. Frame sources follow the
cv2.VideoCapture convention: read() -> (ok, frame), where ok=False means
"no new frame right now" and the caller should simply try again.
"""
from __future__ import annotations
import time
from typing import Optional, Protocol, Tuple

import cv2
import numpy as np

from engine.errors import DegenerateFrameError


class Frame:
    """RGB pixel buffer of shape (height, width, 3|4)."""

    def __init__(self, pixels: np.ndarray):
        arr = np.asarray(pixels)
        if arr.ndim == 2:
            arr = np.repeat(arr[:, :, None], 3, axis=2)
        self.pixels = arr

    @classmethod
    def from_bgr(cls, bgr: np.ndarray) -> "Frame":
        return cls(cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB))

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0]) if self.pixels.ndim >= 2 else 0

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1]) if self.pixels.ndim >= 2 else 0

    def validate(self) -> "Frame":
        if self.pixels.ndim != 3 or self.width == 0 or self.height == 0 or self.pixels.shape[2] < 3:
            raise DegenerateFrameError(f"unusable frame shape {self.pixels.shape}")
        return self

    def to_bgr(self) -> np.ndarray:
        return cv2.cvtColor(np.ascontiguousarray(self.pixels[:, :, :3]), cv2.COLOR_RGB2BGR)


class FrameSource(Protocol):
    def read(self) -> Tuple[bool, Optional[Frame]]:
        ...


class VideoCaptureSource:
    """OpenCV camera (or video file) source. read() blocks until the device delivers a frame."""

    def __init__(self, device: int | str = 0):
        self.device = device
        self._cap: cv2.VideoCapture | None = None

    def open(self) -> "VideoCaptureSource":
        self._cap = cv2.VideoCapture(self.device)
        if not self._cap.isOpened():
            self._cap = None
            raise RuntimeError(f"Could not open camera {self.device}")
        return self

    def read(self) -> Tuple[bool, Optional[Frame]]:
        if self._cap is None:
            raise RuntimeError("Camera not opened. Call open() first.")
        ok, bgr = self._cap.read()
        if not ok or bgr is None:
            return False, None
        return True, Frame.from_bgr(bgr)

    def release(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None

    def __enter__(self):
        return self.open()

    def __exit__(self, *args):
        self.release()


class StillFrameSource:
    """Replays one still image, pacing reads to `fps` so a loop over it behaves like a camera."""

    def __init__(self, frame: Frame, fps: float = 30.0):
        self.frame = frame
        self.period = 1.0 / fps if fps > 0 else 0.0
        self._next_t = 0.0

    def read(self) -> Tuple[bool, Optional[Frame]]:
        now = time.monotonic()
        if now < self._next_t:
            time.sleep(self._next_t - now)
        self._next_t = time.monotonic() + self.period
        return True, self.frame
