"""
Darknet Detection Helper - Detection Module

Decoding of raw network output, annotation, and the Detector that ties
them to a loaded network.
"""

from .detector import Detector
from .decoder import decode_detections, resolve_name
from .annotator import AnnotationStyle, annotate_image
from .names import load_names

__all__ = [
    'Detector',
    'decode_detections',
    'resolve_name',
    'AnnotationStyle',
    'annotate_image',
    'load_names',
]
