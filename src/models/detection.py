"""
Detection models for object detection results.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Rect:
    """
    An axis-aligned rectangle in absolute pixel coordinates.

    The rectangle is not clamped to the image it came from, so x/y may be
    negative and x + width may exceed the image width.

    Attributes:
        x: Left edge x coordinate.
        y: Top edge y coordinate.
        width: Width in pixels.
        height: Height in pixels.
    """
    x: int
    y: int
    width: int
    height: int

    @property
    def top_left(self) -> Tuple[int, int]:
        return (self.x, self.y)

    @property
    def bottom_right(self) -> Tuple[int, int]:
        """Last pixel covered by the rectangle (inclusive)."""
        return (self.x + self.width - 1, self.y + self.height - 1)

    @property
    def area(self) -> int:
        return self.width * self.height

    def as_tuple(self) -> Tuple[int, int, int, int]:
        """Return as (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)

    def as_xyxy(self) -> Tuple[int, int, int, int]:
        """Return as exclusive (x1, y1, x2, y2) corners."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)


@dataclass(frozen=True)
class PredictionResult:
    """
    A single accepted detection.

    Attributes:
        rect: Bounding box in pixel coordinates of the original image.
        class_id: Class reported by the engine for the box.
        probability: Probability of the class entry that passed the threshold.
        name: Display name from the name table, or "#<class_id>".
    """
    rect: Rect
    class_id: int
    probability: float
    name: str

    @property
    def key(self) -> Tuple[Tuple[int, int, int, int], int]:
        """Identity of the result as (box, class id)."""
        return (self.rect.as_tuple(), self.class_id)

    def to_dict(self) -> dict:
        return {
            "x": self.rect.x,
            "y": self.rect.y,
            "width": self.rect.width,
            "height": self.rect.height,
            "class_id": self.class_id,
            "probability": self.probability,
            "name": self.name,
        }
