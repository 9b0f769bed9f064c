import numpy as np
import pytest

import engine.frames as frames
from engine.errors import DegenerateFrameError
from engine.frames import Frame, StillFrameSource, VideoCaptureSource


class DummyCap:
    def __init__(self, idx, opened=True):
        self.idx = idx
        self.opened = opened
        self.i = 0
        self.released = False
    def isOpened(self): return self.opened
    def read(self):
        self.i += 1
        if self.i > 2:
            return False, None
        bgr = np.zeros((4, 6, 3), dtype=np.uint8)
        bgr[..., 0] = 255  # blue in BGR
        return True, bgr
    def release(self): self.released = True


def test_video_capture_source_converts_to_rgb(monkeypatch):
    caps = []
    monkeypatch.setattr(frames.cv2, "VideoCapture", lambda idx: caps.append(DummyCap(idx)) or caps[-1])
    with VideoCaptureSource(0) as src:
        ok, frame = src.read()
        assert ok and (frame.width, frame.height) == (6, 4)
        assert frame.pixels[0, 0].tolist() == [0, 0, 255]
        src.read()
        # device ran dry -> "no frame", not an error
        assert src.read() == (False, None)
    assert caps[0].released


def test_video_capture_source_open_failure(monkeypatch):
    monkeypatch.setattr(frames.cv2, "VideoCapture", lambda idx: DummyCap(idx, opened=False))
    with pytest.raises(RuntimeError):
        VideoCaptureSource(1).open()


def test_read_before_open_raises():
    with pytest.raises(RuntimeError):
        VideoCaptureSource(0).read()


def test_frame_validation():
    Frame(np.zeros((2, 2, 4), dtype=np.uint8)).validate()
    gray = Frame(np.zeros((3, 5), dtype=np.uint8))
    assert gray.pixels.shape == (3, 5, 3)
    with pytest.raises(DegenerateFrameError):
        Frame(np.zeros((0, 10, 3), dtype=np.uint8)).validate()


def test_still_source_repeats_frame():
    f = Frame(np.zeros((2, 2, 3), dtype=np.uint8))
    src = StillFrameSource(f, fps=1000)
    assert src.read() == (True, f)
    assert src.read()[1] is f
