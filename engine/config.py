"""
Configuration for the face-region detection engine.
"""
from typing import Tuple
from pydantic import BaseModel
import os

class Settings(BaseModel):
    """
    Runtime settings with environment-variable overrides.
    """
    CAMERA_INDEX: int = int(os.getenv("CAMERA_INDEX", "0"))

    # Neural path (DeepFace)
    MODEL_SOURCE: str = os.getenv("MODEL_SOURCE", "Emotion")
    DETECTOR_BACKEND: str = os.getenv("DETECTOR_BACKEND", "opencv")
    NEURAL_MIN_CONFIDENCE: float = float(os.getenv("NEURAL_MIN_CONFIDENCE", "0.5"))
    NEURAL_INPUT_SIZE: int = int(os.getenv("NEURAL_INPUT_SIZE", "416"))

    # Heuristic fallback scanner
    REGION_SIZE: int = int(os.getenv("REGION_SIZE", "120"))
    REGION_STEP: int = int(os.getenv("REGION_STEP", "40"))
    SCAN_SCALES: Tuple[float, ...] | str = os.getenv("SCAN_SCALES", "1.0,0.8,1.2")
    MAX_FACES: int = int(os.getenv("MAX_FACES", "1"))
    MIN_CANDIDATE_CONFIDENCE: float = float(os.getenv("MIN_CANDIDATE_CONFIDENCE", "0.6"))

    # Loop & publishing
    PUBLISH_INTERVAL_MS: float = float(os.getenv("PUBLISH_INTERVAL_MS", "100"))
    IDLE_SLEEP: float = float(os.getenv("IDLE_SLEEP", "0.01"))
    STOP_JOIN_TIMEOUT: float = float(os.getenv("STOP_JOIN_TIMEOUT", "2.0"))

    def __init__(self, **data):
        super().__init__(**data)
        # Normalize SCAN_SCALES: accept "1.0, 0.8" strings or sequences, drop junk
        raw = self.SCAN_SCALES
        if isinstance(raw, str):
            parts = [p.strip() for p in raw.split(",")]
        else:
            parts = list(raw)
        scales = []
        for p in parts:
            try:
                v = float(p)
            except (TypeError, ValueError):
                continue
            if v > 0:
                scales.append(v)
        object.__setattr__(self, "SCAN_SCALES", tuple(scales) or (1.0, 0.8, 1.2))
        object.__setattr__(self, "MAX_FACES", max(1, int(self.MAX_FACES)))

    @property
    def publish_interval(self) -> float:
        """Publish interval in seconds."""
        return self.PUBLISH_INTERVAL_MS / 1000.0
