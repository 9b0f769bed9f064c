import threading
import time

import numpy as np

from engine.frames import Frame
from engine.models import Box, NeuralFace

# Sampled pixels alternate between these; odd rows/cols stay black so every
# interior sample is an edge against its up-left neighbour.
SKIN = (220, 160, 130)
OTHER = (100, 100, 220)


def make_pattern(h, w):
    pixels = np.zeros((h, w, 3), dtype=np.uint8)
    yy, xx = np.mgrid[0:h:2, 0:w:2]
    skin = ((yy // 2 + xx // 2) % 2 == 0)
    pixels[0::2, 0::2] = np.where(skin[..., None], np.array(SKIN), np.array(OTHER))
    return pixels


def make_uniform(h, w, rgb):
    pixels = np.zeros((h, w, 3), dtype=np.uint8)
    pixels[:, :] = rgb
    return pixels


def wait_until(pred, timeout=3.0):
    end = time.monotonic() + timeout
    while time.monotonic() < end:
        if pred():
            return True
        time.sleep(0.005)
    return pred()


class DummySource:
    """Camera stand-in: yields `frame` every few ms; can fail or go empty on demand."""
    def __init__(self, frame=None, fail_first=0, empty=False):
        self.frame = frame if frame is not None else Frame(make_pattern(160, 200))
        self.fail_first = fail_first
        self.empty = empty
        self.reads = 0
        self.released = False

    def read(self):
        time.sleep(0.002)
        self.reads += 1
        if self.reads <= self.fail_first:
            raise IOError("camera hiccup")
        if self.empty:
            return False, None
        return True, self.frame

    def release(self):
        self.released = True


class DummyNeural:
    def __init__(self, load_ok=True, fail_detect=False, gate=None):
        self.load_ok = load_ok
        self.fail_detect = fail_detect
        self.gate = gate if gate is not None else threading.Event()
        self.loads = 0
        self.detect_calls = 0

    def load_models(self, source):
        self.gate.wait(5)
        self.loads += 1
        return self.load_ok

    def detect(self, frame, min_confidence=0.5, max_input_size=416):
        self.detect_calls += 1
        if self.fail_detect:
            raise RuntimeError("tensor shape mismatch")
        return [NeuralFace(box=Box(x=5, y=5, width=20, height=20), score=0.9,
                           expressions={"happy": 0.9, "neutral": 0.1})]
