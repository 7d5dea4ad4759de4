"""
Drawing of prediction results onto a copy of the source image.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import cv2
import numpy as np

from models.config import AnnotationConfig
from models.detection import PredictionResult

FONT_FACE = cv2.FONT_HERSHEY_SIMPLEX
COLOR_TEXT = (0, 0, 0)             # Black
COLOR_DURATION_BG = (255, 255, 255)  # White


@dataclass
class AnnotationStyle:
    """Colour (BGR), font scale and stroke thicknesses used for drawing."""
    colour: Tuple[int, int, int] = (255, 0, 255)
    font_scale: float = 0.5
    font_thickness: int = 1
    box_thickness: int = 2

    @classmethod
    def from_config(cls, cfg: AnnotationConfig) -> "AnnotationStyle":
        return cls(
            colour=tuple(int(c) for c in cfg.colour),
            font_scale=cfg.font_scale,
            font_thickness=cfg.font_thickness,
            box_thickness=cfg.box_thickness,
        )


def _draw_label(
    image: np.ndarray,
    pred: PredictionResult,
    style: AnnotationStyle,
) -> None:
    (text_w, text_h), _ = cv2.getTextSize(
        pred.name, FONT_FACE, style.font_scale, style.font_thickness
    )

    # Backdrop sits on the box's top edge, one pixel wider on each side
    x = pred.rect.x - 1
    y = pred.rect.y - text_h
    cv2.rectangle(image, (x, y), (x + text_w + 1, y + text_h + 1), style.colour, cv2.FILLED)
    cv2.putText(
        image,
        pred.name,
        (x + 1, y + text_h),
        FONT_FACE,
        style.font_scale,
        COLOR_TEXT,
        style.font_thickness,
        cv2.LINE_AA,
    )


def _draw_duration(image: np.ndarray, text: str, style: AnnotationStyle) -> None:
    (text_w, text_h), _ = cv2.getTextSize(text, FONT_FACE, style.font_scale, style.font_thickness)

    cv2.rectangle(image, (2, 2), (2 + text_w + 3, 2 + text_h + 3), COLOR_DURATION_BG, cv2.FILLED)
    cv2.putText(
        image,
        text,
        (2, text_h + 3),
        FONT_FACE,
        style.font_scale,
        COLOR_TEXT,
        style.font_thickness,
        cv2.LINE_AA,
    )


def annotate_image(
    image: np.ndarray,
    results: Sequence[PredictionResult],
    threshold: float,
    style: AnnotationStyle,
    duration_text: Optional[str] = None,
) -> np.ndarray:
    """
    Draw results at or above the threshold on a copy of the image.

    Args:
        image: Source image (BGR). Never modified.
        results: Prediction results in pixel coordinates of the image.
        threshold: Minimum probability to draw.
        style: Colours, font scale and thicknesses.
        duration_text: If given, drawn in the top-left corner.

    Returns:
        The annotated copy.
    """
    annotated = image.copy()

    for pred in results:
        if pred.probability < threshold:
            continue

        logging.debug(
            f"class id={pred.class_id}, probability={pred.probability}, "
            f"point=({pred.rect.x},{pred.rect.y})"
        )
        cv2.rectangle(
            annotated,
            pred.rect.top_left,
            pred.rect.bottom_right,
            style.colour,
            style.box_thickness,
        )
        _draw_label(annotated, pred, style)

    if duration_text is not None:
        _draw_duration(annotated, duration_text, style)

    return annotated
