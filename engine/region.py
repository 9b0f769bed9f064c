"""Face-likeness scoring for one square pixel window.

The window is sampled on a stride-2 grid. Each sample is classified as skin
when at least two of three cheap colour rules agree, and as an edge when its
red channel jumps by more than EDGE_DELTA against the pixel diagonally up-left
of it. Skin ratio, edge ratio and mean brightness decide whether the window is
a face candidate; mean colour drives a coarse emotion guess.
"""
from __future__ import annotations
from typing import Tuple

import numpy as np

from engine.models import RegionScore

SAMPLE_STRIDE = 2
EDGE_DELTA = 30

# Candidate gates
SKIN_RATIO_RANGE = (0.3, 0.8)
BRIGHTNESS_RANGE = (60.0, 200.0)
MIN_EDGE_RATIO = 0.1
MIN_SKIN_PIXELS = 80
MAX_CONFIDENCE = 0.95


def skin_mask(r: np.ndarray, g: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Vote of the RGB, YCbCr-style and HSV-style skin rules; True where >= 2 agree."""
    rgb_rule = (r > 95) & (g > 40) & (b > 20) & (r > g) & (r > b) & (np.abs(r - g) > 15)
    ycbcr_rule = (r > 80) & (g > 50) & (b > 30) & (r >= g) & (g >= b)
    hsv_rule = (r > 60) & (g > 40) & (b > 25) & ((r - np.minimum(g, b)) > 15)
    votes = rgb_rule.astype(np.int8) + ycbcr_rule.astype(np.int8) + hsv_rule.astype(np.int8)
    return votes >= 2


def estimate_emotion(r: float, g: float, b: float, brightness: float, edge_ratio: float) -> Tuple[str, float]:
    """Map mean colour, brightness and edge density to a coarse emotion label."""
    warmth = (r - b) / 255.0
    saturation = (max(r, g, b) - min(r, g, b)) / 255.0

    if brightness > 130 and warmth > 0.1:
        return "happy", 0.7 + min(0.2, warmth)
    if brightness < 90 and edge_ratio > 0.15:
        return "focused", 0.6 + min(0.3, edge_ratio)
    if saturation > 0.3 and brightness > 100:
        return "surprised", 0.6 + min(0.2, saturation)
    return "neutral", 0.5 + min(0.3, brightness / 200.0)


def analyze(pixels: np.ndarray, x: int, y: int, size: int,
            frame_width: int, frame_height: int) -> RegionScore:
    """Score the size x size window whose top-left corner is (x, y).

    Samples falling outside the frame are ignored; a window with no samples
    left is reported as a non-candidate.
    """
    offsets = np.arange(0, max(0, int(size)), SAMPLE_STRIDE)
    xs = x + offsets
    ys = y + offsets
    x_ok = (xs >= 0) & (xs < frame_width)
    y_ok = (ys >= 0) & (ys < frame_height)
    xs, x_off = xs[x_ok], offsets[x_ok]
    ys, y_off = ys[y_ok], offsets[y_ok]

    total = int(xs.size * ys.size)
    if total == 0:
        return RegionScore(is_candidate=False, confidence=0.0, emotion="neutral", emotion_confidence=0.0)

    sampled = pixels[np.ix_(ys, xs)].astype(np.int16)
    r, g, b = sampled[..., 0], sampled[..., 1], sampled[..., 2]

    mean_r = float(r.mean())
    mean_g = float(g.mean())
    mean_b = float(b.mean())
    brightness = float(((r + g + b) / 3.0).mean())

    skin_pixels = int(skin_mask(r, g, b).sum())

    # edges: samples at positive offsets on both axes vs. the (x-1, y-1) pixel
    edge_pixels = 0
    ex = xs[(x_off > 0) & (xs > 0)]
    ey = ys[(y_off > 0) & (ys > 0)]
    if ex.size and ey.size:
        cur = pixels[np.ix_(ey, ex)][..., 0].astype(np.int16)
        prev = pixels[np.ix_(ey - 1, ex - 1)][..., 0].astype(np.int16)
        edge_pixels = int((np.abs(cur - prev) > EDGE_DELTA).sum())

    skin_ratio = skin_pixels / total
    edge_ratio = edge_pixels / total

    is_candidate = (
        SKIN_RATIO_RANGE[0] < skin_ratio < SKIN_RATIO_RANGE[1]
        and BRIGHTNESS_RANGE[0] < brightness < BRIGHTNESS_RANGE[1]
        and edge_ratio > MIN_EDGE_RATIO
        and skin_pixels > MIN_SKIN_PIXELS
    )

    confidence = min(
        MAX_CONFIDENCE,
        skin_ratio * 0.4 + min(brightness / 120.0, 1.0) * 0.3 + edge_ratio * 0.3,
    )

    emotion, emotion_confidence = estimate_emotion(mean_r, mean_g, mean_b, brightness, edge_ratio)

    return RegionScore(
        is_candidate=bool(is_candidate),
        confidence=float(confidence),
        emotion=emotion,
        emotion_confidence=float(min(1.0, emotion_confidence)),
    )
