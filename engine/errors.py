"""
Error taxonomy for the detection engine.

Only AlreadyRunning and SessionNotStarted escape to callers; everything raised
while processing a frame is recovered inside the detection loop.
"""


class DetectionEngineError(Exception):
    """Base class for engine errors."""


class ModelLoadError(DetectionEngineError):
    """Neural model assets could not be loaded. The session stays on the fallback path."""


class FrameDetectionError(DetectionEngineError):
    """The neural detector failed on a single frame."""


class DegenerateFrameError(DetectionEngineError):
    """Frame has no usable pixels (e.g. the stream is not sized yet)."""


class AlreadyRunning(DetectionEngineError):
    """start() was called while a session is active."""


class SessionNotStarted(DetectionEngineError):
    """An operation needs a session but start() was never called."""
