"""
Neural face/expression detection with DeepFace.
"""
# engine/neural.py
from __future__ import annotations
from typing import Dict, List, Optional, Protocol
import logging
import cv2

from engine.errors import FrameDetectionError
from engine.frames import Frame
from engine.labels import dominant_expression, normalize_label
from engine.models import Box, Detection, NeuralFace, Point

logger = logging.getLogger(__name__)


class NeuralDetector(Protocol):
    def load_models(self, source: str) -> bool:
        ...

    def detect(self, frame: Frame, min_confidence: float = 0.5,
               max_input_size: int = 416) -> List[NeuralFace]:
        ...


class DeepFaceDetector:
    """
    DeepFace-backed detector: face regions from `detector_backend`, expression
    scores from the DeepFace emotion model.

    DeepFace is imported lazily so the engine runs (on the fallback path) without
    the TF stack, and so tests can inject a fake via sys.modules.
    """
    def __init__(self, detector_backend: str = "opencv"):
        self.detector_backend = detector_backend
        self._loaded: Optional[str] = None

    @property
    def loaded(self) -> bool:
        return self._loaded is not None

    def load_models(self, source: str = "Emotion") -> bool:
        if self._loaded == source:
            return True
        logger.debug(f"[neural] building model source={source} backend={self.detector_backend}")
        try:
            from deepface import DeepFace
            DeepFace.build_model(model_name=source, task="facial_attribute")
        except Exception:
            logger.exception(f"[neural] model build failed source={source}")
            return False
        self._loaded = source
        logger.info(f"[neural] model ready source={source}")
        return True

    def detect(self, frame: Frame, min_confidence: float = 0.5,
               max_input_size: int = 416) -> List[NeuralFace]:
        if not self.loaded:
            raise FrameDetectionError("models not loaded")
        from deepface import DeepFace

        small, scale = _resize_for_detect(frame.to_bgr(), max_input_size)
        try:
            res = DeepFace.analyze(
                small,
                actions=["emotion"],
                enforce_detection=False,
                detector_backend=self.detector_backend,
                silent=True,
            )
        except Exception as e:
            raise FrameDetectionError(str(e)) from e
        # DeepFace returns list[dict] or dict depending on version; normalize to list
        res = res if isinstance(res, list) else ([res] if isinstance(res, dict) else [])

        faces: List[NeuralFace] = []
        for r in res:
            face = _to_neural_face(r or {}, scale, frame.width, frame.height)
            if face is None or face.score < min_confidence:
                continue
            faces.append(face)
        return faces


def _resize_for_detect(img, target: int):
    H, W = img.shape[:2]
    longest = max(H, W)
    if target <= 0 or longest <= target:
        return img, 1.0
    scale = target / float(longest)
    small = cv2.resize(img, (max(1, int(W * scale)), max(1, int(H * scale))), interpolation=cv2.INTER_AREA)
    return small, scale


def _to_neural_face(r: Dict, scale: float, W: int, H: int) -> Optional[NeuralFace]:
    reg = r.get("region") or {}
    x = int(reg.get("x", 0) / scale); y = int(reg.get("y", 0) / scale)
    w = int(reg.get("w", 0) / scale); h = int(reg.get("h", 0) / scale)
    # clamp to frame bounds
    x = max(0, min(x, W - 1)); y = max(0, min(y, H - 1))
    w = min(w, W - x); h = min(h, H - y)
    if w <= 0 or h <= 0:
        return None

    conf = r.get("face_confidence")
    try:
        score = float(conf) if conf is not None else 1.0
    except (TypeError, ValueError):
        score = 1.0

    landmarks = []
    for key in ("left_eye", "right_eye"):
        pt = reg.get(key)
        if pt is not None and len(pt) == 2:
            landmarks.append(Point(x=pt[0] / scale, y=pt[1] / scale))

    # DeepFace reports 0..100 percentages
    expressions: Dict[str, float] = {}
    emo = r.get("emotion")
    if isinstance(emo, dict):
        for label, pct in emo.items():
            expressions[normalize_label(label)] = max(0.0, min(1.0, float(pct) / 100.0))
    elif isinstance(r.get("dominant_emotion"), str):
        expressions[normalize_label(r["dominant_emotion"])] = 1.0

    return NeuralFace(
        box=Box(x=x, y=y, width=w, height=h),
        score=max(0.0, min(1.0, score)),
        landmarks=landmarks or None,
        expressions=expressions,
    )


def to_detection(face: NeuralFace) -> Detection:
    """Map adapter output to the common Detection; the dominant expression becomes the emotion."""
    emotion, emotion_conf = dominant_expression(face.expressions)
    return Detection(
        box=face.box,
        confidence=max(0.0, min(1.0, face.score)),
        emotion=emotion,
        emotion_confidence=max(0.0, min(1.0, emotion_conf)),
        landmarks=face.landmarks,
        expressions=dict(face.expressions),
        source="neural",
    )
