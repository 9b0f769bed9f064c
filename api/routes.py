"""
REST endpoints for live face-region detection.
"""
from typing import Literal, Optional
import logging

import cv2
import numpy as np
from fastapi import APIRouter, UploadFile, File, HTTPException, Query

from engine.config import Settings
from engine.errors import AlreadyRunning, DegenerateFrameError, SessionNotStarted
from engine.frames import Frame, VideoCaptureSource
from engine.labels import display_label
from engine.orchestrator import DetectionOrchestrator
from engine.scanner import HeuristicScanner

router = APIRouter()
settings = Settings()
orchestrator = DetectionOrchestrator(settings)
logger = logging.getLogger(__name__)

# camera opened by /detection/start, released by /detection/stop
_camera: dict = {"source": None}


def open_camera(index: int):
    return VideoCaptureSource(index).open()


def _release_camera() -> None:
    cam = _camera.get("source")
    _camera["source"] = None
    if cam is not None and hasattr(cam, "release"):
        try:
            cam.release()
        except Exception:
            logger.warning("[api] failed to release camera")


@router.post("/detection/start")
async def detection_start(camera_index: Optional[int] = None):
    """
    Open the camera and start a detection session.

    The neural models load in the background; until they are ready (or if they
    fail) frames go through the heuristic fallback.
    """
    if orchestrator.is_detecting:
        return {"status": "already_running"}

    idx = settings.CAMERA_INDEX if camera_index is None else camera_index
    try:
        cam = open_camera(idx)
    except Exception as e:
        logger.exception(f"[api] camera open failed index={idx}")
        raise HTTPException(status_code=503, detail=str(e))

    try:
        orchestrator.start(cam)
    except AlreadyRunning:
        if hasattr(cam, "release"):
            cam.release()
        return {"status": "already_running"}
    _camera["source"] = cam
    logger.debug(f"[api] detection started camera_index={idx}")
    return {"status": "started"}


@router.get("/detection/status")
async def detection_status(mode: Literal["normal", "fun"] = Query("normal")):
    return orchestrator.status(mode=mode).model_dump()


@router.post("/detection/stop")
async def detection_stop():
    if not orchestrator.is_detecting:
        return {"status": "not_running"}
    try:
        orchestrator.stop()
    except SessionNotStarted:
        return {"status": "not_running"}
    finally:
        _release_camera()
    return {"status": "stopped"}


@router.post("/detect/image")
async def detect_image(
    file: UploadFile = File(...),
    mode: Literal["normal", "fun"] = Query("normal"),
):
    """
    Run the heuristic scanner once over an uploaded still photo.

    Returns:
        dict: detections plus display labels for the requested mode.
    """
    data = await file.read()
    bgr = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR) if data else None
    if bgr is None:
        raise HTTPException(status_code=400, detail="Could not decode image")

    scanner = HeuristicScanner.from_settings(settings)
    try:
        faces = scanner.scan(Frame.from_bgr(bgr))
    except DegenerateFrameError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "width": int(bgr.shape[1]),
        "height": int(bgr.shape[0]),
        "detected_faces": [f.model_dump() for f in faces],
        "display_labels": [display_label(f.emotion, mode) for f in faces],
    }
