"""
Inference engines and the runner that drives them.
"""

from .engine import InferenceEngine, NormalizedBox, RawDetection
from .nms import box_iou, nms_sort
from .runner import InferenceOutput, InferenceRunner

__all__ = [
    "InferenceEngine",
    "NormalizedBox",
    "RawDetection",
    "box_iou",
    "nms_sort",
    "InferenceOutput",
    "InferenceRunner",
]
