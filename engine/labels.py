"""
Emotion vocabulary and display labels.

The engine speaks one label set. DeepFace emits its own names ("fear",
"disgust", "surprise"), so neural scores are normalized on the way in.
Display labels are what the booth prints on the overlay, in either a plain
("normal") or a playful ("fun") register.
"""
from __future__ import annotations
from typing import Dict, Literal

EmotionMode = Literal["normal", "fun"]

EMOTIONS = ("neutral", "happy", "sad", "angry", "fearful", "disgusted", "surprised", "focused")

# DeepFace label -> engine label
_NEURAL_LABELS = {
    "angry": "angry",
    "disgust": "disgusted",
    "fear": "fearful",
    "happy": "happy",
    "sad": "sad",
    "surprise": "surprised",
    "neutral": "neutral",
}

FUN_LABELS: Dict[str, str] = {
    "neutral": "SEEKING ATTENTION",
    "happy": "YASS",
    "sad": "SALTY",
    "angry": "REALLYYY",
    "fearful": "SHOOKETH",
    "disgusted": "CRINGE",
    "surprised": "LIKE WHATT",
}


def normalize_label(label: str) -> str:
    """Map a detector-native label onto the engine vocabulary (unknowns pass through lower-cased)."""
    key = (label or "").strip().lower()
    if key in EMOTIONS:
        return key
    return _NEURAL_LABELS.get(key, key or "neutral")


def dominant_expression(expressions: Dict[str, float] | None) -> tuple[str, float]:
    """Highest-scoring entry of an expression map; ("neutral", 0.0) when empty."""
    if not expressions:
        return "neutral", 0.0
    label = max(expressions, key=expressions.get)
    return label, float(expressions[label])


def display_label(emotion: str, mode: EmotionMode = "normal") -> str:
    if mode == "fun":
        fun = FUN_LABELS.get((emotion or "").lower())
        if fun:
            return fun
    return (emotion or "").upper()
