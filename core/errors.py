"""
Exceptions raised by the frame pipeline.
"""


class EmotionDetectorError(Exception):
    """Base class for all pipeline errors."""


class FrameConversionError(EmotionDetectorError, ValueError):
    """Raw camera buffer could not be turned into an upright image. Drop the frame."""


class EngineLoadError(EmotionDetectorError, RuntimeError):
    """The face landmark model could not be found or loaded."""
