"""
Pydantic data models shared by the engine and the API.
"""
from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Dict, List, Optional, Literal

class Box(BaseModel):
    x: float
    y: float
    width: float = Field(gt=0)
    height: float = Field(gt=0)

    @property
    def center(self) -> tuple[float, float]:
        return self.x + self.width / 2.0, self.y + self.height / 2.0

class Point(BaseModel):
    x: float
    y: float

class RegionScore(BaseModel):
    is_candidate: bool
    confidence: float = Field(ge=0.0, le=1.0)
    emotion: str = "neutral"
    emotion_confidence: float = Field(default=0.0, ge=0.0, le=1.0)

class Detection(BaseModel):
    """
    One face-like region in one frame.

    landmarks / expressions are only set by the neural path; None means
    "unknown", never "zero".
    """
    box: Box
    confidence: float = Field(ge=0.0, le=1.0)
    emotion: str = "neutral"
    emotion_confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    landmarks: Optional[List[Point]] = None
    expressions: Optional[Dict[str, float]] = None
    source: Literal["neural", "heuristic"] = "heuristic"


# neural adapter output

class NeuralFace(BaseModel):
    box: Box
    score: float
    landmarks: Optional[List[Point]] = None
    expressions: Dict[str, float] = Field(default_factory=dict)


# consumer-facing status

class DetectorStatus(BaseModel):
    is_detecting: bool
    is_model_loading: bool
    models_loaded: bool
    state: str
    model_state: str | None = None
    last_error: str | None = None
    started_at: float | None = None
    detected_faces: List[Detection] = Field(default_factory=list)
    display_labels: List[str] = Field(default_factory=list)
