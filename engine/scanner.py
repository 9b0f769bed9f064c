"""Multi-scale sliding-window face search over one frame (fallback detector).

Cheap by construction: a handful of scales, a stride of a third of the
window, stride-2 pixel sampling inside each window. It trades recall for
latency; the neural path is the accurate one.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, List, Sequence

from engine import region
from engine.config import Settings
from engine.frames import Frame
from engine.models import Box, Detection, RegionScore

# Padding applied to accepted windows (px)
PAD_SIDE = 20
PAD_BOTTOM_EXTRA = 10


@dataclass(frozen=True)
class Candidate:
    x: int
    y: int
    size: int
    score: RegionScore

    @property
    def center(self) -> tuple[float, float]:
        return self.x + self.size / 2.0, self.y + self.size / 2.0


class HeuristicScanner:
    def __init__(self,
                 region_size: int = 120,
                 step: int = 40,
                 scales: Sequence[float] = (1.0, 0.8, 1.2),
                 max_faces: int = 1,
                 min_confidence: float = 0.6):
        self.region_size = int(region_size)
        self.step = int(step)
        self.scales = tuple(scales)
        self.max_faces = max(1, int(max_faces))
        self.min_confidence = float(min_confidence)

    @classmethod
    def from_settings(cls, settings: Settings) -> "HeuristicScanner":
        return cls(
            region_size=settings.REGION_SIZE,
            step=settings.REGION_STEP,
            scales=settings.SCAN_SCALES,
            max_faces=settings.MAX_FACES,
            min_confidence=settings.MIN_CANDIDATE_CONFIDENCE,
        )

    def _windows(self, width: int, height: int) -> Iterator[tuple[int, int, int]]:
        """Yield (x, y, size) in scan order: scale as configured, then row-major."""
        for scale in self.scales:
            size = int(self.region_size * scale)
            stride = max(1, int(self.step * scale))
            if size <= 0:
                continue
            for y in range(0, height - size, stride):
                for x in range(0, width - size, stride):
                    yield x, y, size

    def find_candidates(self, frame: Frame) -> List[Candidate]:
        """Accepted (unpadded) windows in discovery order.

        A window is dropped when its center lies closer than its own size to the
        center of any window accepted before it, so the earliest find wins.
        """
        frame.validate()
        pixels, width, height = frame.pixels, frame.width, frame.height
        accepted: List[Candidate] = []
        for x, y, size in self._windows(width, height):
            score = region.analyze(pixels, x, y, size, width, height)
            if not (score.is_candidate and score.confidence > self.min_confidence):
                continue
            cand = Candidate(x, y, size, score)
            cx, cy = cand.center
            if any(((cx - ax) ** 2 + (cy - ay) ** 2) ** 0.5 < size
                   for ax, ay in (a.center for a in accepted)):
                continue
            accepted.append(cand)
            if len(accepted) >= self.max_faces:
                break
        return accepted

    def scan(self, frame: Frame) -> List[Detection]:
        width, height = frame.width, frame.height
        return [_to_detection(c, width, height) for c in self.find_candidates(frame)]


def _to_detection(cand: Candidate, width: int, height: int) -> Detection:
    x0 = max(0, cand.x - PAD_SIDE)
    y0 = max(0, cand.y - PAD_SIDE)
    x1 = min(width, cand.x + cand.size + PAD_SIDE)
    y1 = min(height, cand.y + cand.size + PAD_SIDE + PAD_BOTTOM_EXTRA)
    return Detection(
        box=Box(x=x0, y=y0, width=x1 - x0, height=y1 - y0),
        confidence=cand.score.confidence,
        emotion=cand.score.emotion,
        emotion_confidence=cand.score.emotion_confidence,
        source="heuristic",
    )
