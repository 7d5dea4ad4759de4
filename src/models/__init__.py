"""
Typed models for the darknet detection helper.

Results, configuration and error types shared by the inference, detection
and CLI layers.
"""

from .detection import PredictionResult, Rect
from .errors import DetectorStateError, NetworkLoadError
from .config import (
    Config,
    DetectorConfig,
    AnnotationConfig,
    OutputConfig,
)

__all__ = [
    # Detection
    "PredictionResult",
    "Rect",
    # Errors
    "DetectorStateError",
    "NetworkLoadError",
    # Config
    "Config",
    "DetectorConfig",
    "AnnotationConfig",
    "OutputConfig",
]
