"""
Non-maximum suppression over raw detections, following darknet's
do_nms_sort(): for every class in turn the candidates are sorted by that
class's probability and any lower-ranked box overlapping a kept one by more
than the threshold has that class probability zeroed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from .engine import NormalizedBox, RawDetection


def box_iou(a: "NormalizedBox", b: "NormalizedBox") -> float:
    """Intersection over union of two centre/size boxes."""
    ax1, ay1 = a.x - a.w / 2, a.y - a.h / 2
    ax2, ay2 = a.x + a.w / 2, a.y + a.h / 2
    bx1, by1 = b.x - b.w / 2, b.y - b.h / 2
    bx2, by2 = b.x + b.w / 2, b.y + b.h / 2

    inter_w = max(0.0, min(ax2, bx2) - max(ax1, bx1))
    inter_h = max(0.0, min(ay2, by2) - max(ay1, by1))
    inter = inter_w * inter_h
    union = a.w * a.h + b.w * b.h - inter
    if union <= 0:
        return 0.0
    return inter / union


def nms_sort(
    detections: List["RawDetection"],
    classes: int,
    nms_threshold: float,
) -> List["RawDetection"]:
    """
    Suppress overlapping detections class by class.

    Candidates with zero objectness are moved to the end and take no part.
    The returned list is ordered by the probability of the last class
    processed (stable for ties, so the earlier candidate wins).

    Args:
        detections: Candidates; their prob vectors are modified in place.
        classes: Number of classes to process.
        nms_threshold: IoU above which the lower-ranked box is suppressed.

    Returns:
        The candidates in their post-suppression order.
    """
    active = [d for d in detections if d.objectness != 0]
    inactive = [d for d in detections if d.objectness == 0]

    for k in range(classes):
        active.sort(key=lambda d: float(d.prob[k]), reverse=True)
        for i, kept in enumerate(active):
            if kept.prob[k] == 0:
                continue
            for other in active[i + 1:]:
                if box_iou(kept.bbox, other.bbox) > nms_threshold:
                    other.prob[k] = 0

    return active + inactive
