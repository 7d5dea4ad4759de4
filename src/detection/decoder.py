"""
Decoding of raw engine detections into image-space prediction results.
"""

from __future__ import annotations

import math
from typing import Callable, List, Sequence

from inference.engine import RawDetection
from inference.nms import nms_sort
from models.detection import PredictionResult, Rect

SuppressFn = Callable[[List[RawDetection], int, float], List[RawDetection]]


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    fraction, whole = math.modf(abs(value))
    if fraction >= 0.5:
        whole += 1.0
    return int(math.copysign(whole, value))


def to_pixel_rect(detection: RawDetection, image_width: int, image_height: int) -> Rect:
    """Map a normalised centre/size box onto the original image. Not clamped."""
    box = detection.bbox
    w = round_half_away(box.w * image_width)
    h = round_half_away(box.h * image_height)
    x = round_half_away(box.x * image_width - w / 2.0)
    y = round_half_away(box.y * image_height - h / 2.0)
    return Rect(x=x, y=y, width=w, height=h)


def resolve_name(names: Sequence[str], class_id: int) -> str:
    """
    Look up a class display name, falling back to "#<id>".

    The table size check is non-strict (size >= id), so an id equal to the
    table size passes the check but has no entry and also falls back.
    Negative ids never index from the end of the table.
    """
    if class_id >= 0 and len(names) >= class_id:
        if class_id < len(names):
            return names[class_id]
    return f"#{class_id}"


def decode_detections(
    detections: List[RawDetection],
    image_width: int,
    image_height: int,
    threshold: float,
    nms_threshold: float,
    names: Sequence[str],
    suppress: SuppressFn = nms_sort,
) -> List[PredictionResult]:
    """
    Filter, suppress, map and label raw detections.

    Every (box, class) pair whose probability reaches the threshold becomes a
    result, in engine order and then class order; nothing is sorted by
    confidence. The reported class id is the box's sort_class, which is not
    necessarily the class whose probability passed the threshold.

    Args:
        detections: Candidates from the engine.
        image_width: Width of the original (pre-resize) image.
        image_height: Height of the original (pre-resize) image.
        threshold: Minimum class probability to accept.
        nms_threshold: IoU cutoff for suppression; 0 disables it.
        names: Class name table.
        suppress: Engine sort/suppression primitive.

    Returns:
        Ordered list of PredictionResult.
    """
    if nms_threshold and detections:
        detections = suppress(detections, detections[0].classes, nms_threshold)

    results: List[PredictionResult] = []
    for det in detections:
        for class_idx in range(det.classes):
            probability = float(det.prob[class_idx])
            if probability < threshold:
                continue

            class_id = det.sort_class
            results.append(
                PredictionResult(
                    rect=to_pixel_rect(det, image_width, image_height),
                    class_id=class_id,
                    probability=probability,
                    name=resolve_name(names, class_id),
                )
            )

    return results
