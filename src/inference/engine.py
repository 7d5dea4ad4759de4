"""
Inference engine interface.

An engine loads a Darknet configuration/weights pair, runs the forward pass
on a planar tensor and turns the raw network output into candidate boxes in
normalised coordinates. Any library that can do those three things (plus the
sort/suppression step) can stand behind this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Tuple

import numpy as np

from imaging.convert import Tensor
from .nms import nms_sort


@dataclass(frozen=True)
class NormalizedBox:
    """Box centre and size as fractions of the image width/height."""
    x: float
    y: float
    w: float
    h: float


@dataclass
class RawDetection:
    """
    One candidate box as produced by the engine.

    Attributes:
        bbox: Normalised box.
        prob: Per-class probabilities (float32). Suppression zeroes entries in place.
        objectness: Objectness score of the box.
        sort_class: Class the engine assigned to the box.
    """
    bbox: NormalizedBox
    prob: np.ndarray
    objectness: float
    sort_class: int

    @property
    def classes(self) -> int:
        return int(len(self.prob))


class InferenceEngine(ABC):
    """Abstract base class for inference engines."""

    @abstractmethod
    def load(self, config_path: str, weights_path: str) -> None:
        """
        Load a network.

        Raises:
            NetworkLoadError: If the configuration or weights are rejected.
        """

    @abstractmethod
    def forward(self, tensor: Tensor) -> Any:
        """Run the forward pass and return the raw network output."""

    @abstractmethod
    def get_boxes(
        self,
        outputs: Any,
        threshold: float,
        hierarchy_threshold: float,
    ) -> List[RawDetection]:
        """Extract candidate boxes from the raw output of forward()."""

    @property
    @abstractmethod
    def input_size(self) -> Tuple[int, int]:
        """Network input size as (width, height)."""

    @property
    @abstractmethod
    def is_loaded(self) -> bool:
        """Check if a network is loaded."""

    def release(self) -> None:
        """Free the network handle. Safe to call more than once."""

    def nms_sort(
        self,
        detections: List[RawDetection],
        classes: int,
        nms_threshold: float,
    ) -> List[RawDetection]:
        """Sort and suppress overlapping candidates (darknet policy by default)."""
        return nms_sort(detections, classes, nms_threshold)

    @property
    def name(self) -> str:
        """Engine name for logging."""
        return self.__class__.__name__
