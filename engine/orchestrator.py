# engine/orchestrator.py
"""
Live face-region detection.

DetectionOrchestrator runs one detection session per video stream:
- Neural models (DeepFace) load on a background thread; the loop does not wait
- Each frame goes to the neural detector once it is ready, otherwise (or when it
  raises on that frame) to the heuristic scanner
- Results are published at most once per PUBLISH_INTERVAL_MS so overlays do not flicker

Consumers read detected_faces / is_detecting / is_model_loading / models_loaded /
last_error, or status() for a pydantic snapshot.
"""

from __future__ import annotations

import time
import threading
import logging
from enum import Enum
from typing import Callable, List, Optional

from engine.config import Settings
from engine.errors import (
    AlreadyRunning,
    DegenerateFrameError,
    FrameDetectionError,
    ModelLoadError,
    SessionNotStarted,
)
from engine.frames import Frame, FrameSource
from engine.labels import EmotionMode, display_label
from engine.models import Detection, DetectorStatus
from engine.neural import DeepFaceDetector, NeuralDetector, to_detection
from engine.scanner import HeuristicScanner
from engine.throttle import PublishThrottle

logger = logging.getLogger(__name__)

MODEL_LOAD_ADVISORY = "Failed to load AI models. Using fallback detection."


class LoopState(str, Enum):
    IDLE = "idle"
    DETECTING = "detecting"
    ERROR = "error"
    STOPPED = "stopped"


class ModelState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    UNAVAILABLE = "unavailable"


# -----------------------------------------------------------------------------
# Per-session state
# -----------------------------------------------------------------------------
class _Session:
    """Everything one start()..stop() run owns. Guarded by the orchestrator lock."""
    def __init__(self, source: FrameSource, throttle: PublishThrottle):
        self.source: Optional[FrameSource] = source
        self.throttle = throttle
        self.cancelled = False
        self.state = LoopState.IDLE
        self.model_state = ModelState.LOADING
        self.error: Optional[str] = None
        self.detections: List[Detection] = []
        self.started_at = time.time()
        self.loop_thread: Optional[threading.Thread] = None
        self.load_thread: Optional[threading.Thread] = None
        # diagnostics
        self.neural_frames = 0
        self.fallback_frames = 0
        self.neural_failures = 0
        self.skipped_frames = 0
        self.published = 0


# -----------------------------------------------------------------------------
# DetectionOrchestrator
# -----------------------------------------------------------------------------
class DetectionOrchestrator:
    """Owns the detection state machine and the published detection list."""
    def __init__(self,
                 settings: Optional[Settings] = None,
                 neural: Optional[NeuralDetector] = None,
                 scanner: Optional[HeuristicScanner] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.s = settings or Settings()
        self.neural = neural if neural is not None else DeepFaceDetector(self.s.DETECTOR_BACKEND)
        self.scanner = scanner or HeuristicScanner.from_settings(self.s)
        self._clock = clock
        self._lock = threading.Lock()
        self._session: Optional[_Session] = None

    # ---- lifecycle ----
    def start(self, source: FrameSource) -> None:
        with self._lock:
            if self._session is not None and not self._session.cancelled:
                raise AlreadyRunning("detection session already running; call stop() first")
            session = _Session(source, PublishThrottle(self.s.publish_interval))
            session.state = LoopState.DETECTING
            session.load_thread = threading.Thread(
                target=self._load_models, args=(session,), name="model-load", daemon=True)
            session.loop_thread = threading.Thread(
                target=self._loop, args=(session,), name="detection-loop", daemon=True)
            self._session = session
        logger.debug(f"[orchestrator] session started source={type(source).__name__}")
        session.load_thread.start()
        session.loop_thread.start()

    def stop(self) -> None:
        with self._lock:
            session = self._session
            if session is None:
                raise SessionNotStarted("stop() called before start()")
            if session.cancelled:
                return
            session.cancelled = True
            session.state = LoopState.STOPPED
            session.detections = []
            session.source = None
            loop_thread = session.loop_thread
        if loop_thread is not None and loop_thread is not threading.current_thread():
            loop_thread.join(timeout=self.s.STOP_JOIN_TIMEOUT)
        logger.debug(
            f"[orchestrator] session stopped neural_frames={session.neural_frames} "
            f"fallback_frames={session.fallback_frames} published={session.published}"
        )

    # ---- model loading ----
    def _load_models(self, session: _Session) -> None:
        try:
            ok = bool(self.neural.load_models(self.s.MODEL_SOURCE))
        except Exception:
            logger.exception("[orchestrator] model load raised")
            ok = False
        self._on_models_loaded(session, ok)

    def _on_models_loaded(self, session: _Session, ok: bool) -> None:
        with self._lock:
            if session is not self._session or session.cancelled:
                logger.debug("[orchestrator] model load finished after stop; ignoring")
                return
            if ok:
                session.model_state = ModelState.READY
                session.error = None
            else:
                err = ModelLoadError(MODEL_LOAD_ADVISORY)
                session.model_state = ModelState.UNAVAILABLE
                session.error = str(err)
        if ok:
            logger.info("[orchestrator] neural models ready; switching from fallback")
        else:
            logger.warning(f"[orchestrator] {MODEL_LOAD_ADVISORY}")

    # ---- loop ----
    def _loop(self, session: _Session) -> None:
        while not session.cancelled:
            source = session.source
            if source is None:
                break
            try:
                ok, frame = source.read()
            except Exception:
                logger.exception("[orchestrator] frame source read failed")
                self._mark_error(session)
                time.sleep(self.s.IDLE_SLEEP)
                continue

            if session.cancelled:
                break
            if not ok or frame is None:
                time.sleep(self.s.IDLE_SLEEP)
                continue

            try:
                faces = self._detect_frame(session, frame)
            except DegenerateFrameError as e:
                session.skipped_frames += 1
                logger.debug(f"[orchestrator] skipping frame: {e}")
                continue
            except Exception:
                logger.exception("[orchestrator] frame processing failed")
                self._mark_error(session)
                continue

            self._publish(session, faces)

    def _detect_frame(self, session: _Session, frame: Frame) -> List[Detection]:
        """One frame end to end: neural if ready, heuristic otherwise or on neural failure."""
        frame.validate()
        with self._lock:
            model_state = session.model_state

        if model_state is ModelState.READY:
            try:
                faces = self.neural.detect(
                    frame,
                    min_confidence=self.s.NEURAL_MIN_CONFIDENCE,
                    max_input_size=self.s.NEURAL_INPUT_SIZE,
                )
                detections = [to_detection(f) for f in faces]
                session.neural_frames += 1
                return detections
            except Exception as e:
                err = e if isinstance(e, FrameDetectionError) else FrameDetectionError(str(e))
                session.neural_failures += 1
                logger.debug(f"[orchestrator] neural detect failed ({err!r}); fallback for this frame")

        session.fallback_frames += 1
        return self.scanner.scan(frame)

    def _publish(self, session: _Session, faces: List[Detection]) -> bool:
        with self._lock:
            if session.cancelled or session is not self._session:
                return False
            if session.state is LoopState.ERROR:
                session.state = LoopState.DETECTING
            if not session.throttle.ready(self._clock()):
                return False
            session.detections = list(faces)
            session.published += 1
            return True

    def _mark_error(self, session: _Session) -> None:
        with self._lock:
            if not session.cancelled:
                session.state = LoopState.ERROR

    # ---- consumer surface ----
    def get_detections(self) -> List[Detection]:
        with self._lock:
            session = self._session
            return list(session.detections) if session is not None else []

    @property
    def detected_faces(self) -> List[Detection]:
        return self.get_detections()

    @property
    def is_detecting(self) -> bool:
        with self._lock:
            return self._session is not None and not self._session.cancelled

    @property
    def is_model_loading(self) -> bool:
        with self._lock:
            s = self._session
            return s is not None and not s.cancelled and s.model_state is ModelState.LOADING

    @property
    def models_loaded(self) -> bool:
        with self._lock:
            return self._session is not None and self._session.model_state is ModelState.READY

    @property
    def last_error(self) -> Optional[str]:
        with self._lock:
            return self._session.error if self._session is not None else None

    @property
    def state(self) -> LoopState:
        with self._lock:
            return self._session.state if self._session is not None else LoopState.IDLE

    @property
    def model_state(self) -> Optional[ModelState]:
        with self._lock:
            return self._session.model_state if self._session is not None else None

    def stats(self) -> dict:
        with self._lock:
            s = self._session
            if s is None:
                return {}
            return {
                "neural_frames": s.neural_frames,
                "fallback_frames": s.fallback_frames,
                "neural_failures": s.neural_failures,
                "skipped_frames": s.skipped_frames,
                "published": s.published,
            }

    def status(self, mode: EmotionMode = "normal") -> DetectorStatus:
        with self._lock:
            s = self._session
            if s is None:
                return DetectorStatus(is_detecting=False, is_model_loading=False,
                                      models_loaded=False, state=LoopState.IDLE.value)
            faces = list(s.detections)
            return DetectorStatus(
                is_detecting=not s.cancelled,
                is_model_loading=(not s.cancelled and s.model_state is ModelState.LOADING),
                models_loaded=s.model_state is ModelState.READY,
                state=s.state.value,
                model_state=s.model_state.value,
                last_error=s.error,
                started_at=s.started_at,
                detected_faces=faces,
                display_labels=[display_label(f.emotion, mode) for f in faces],
            )
