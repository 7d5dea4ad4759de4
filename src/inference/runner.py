"""
Single inference call: resize, convert, forward pass, box extraction.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

import cv2
import numpy as np

from imaging.convert import to_tensor
from models.errors import DetectorStateError
from .engine import InferenceEngine, RawDetection


@dataclass
class InferenceOutput:
    """
    Raw result of one inference call.

    Attributes:
        detections: Candidate boxes in engine order.
        duration_ns: Wall-clock duration of the forward pass alone.
    """
    detections: List[RawDetection] = field(default_factory=list)
    duration_ns: int = 0

    @property
    def count(self) -> int:
        return len(self.detections)


class InferenceRunner:
    """
    Runs a source image through an engine.

    The image is resized to the network input size, converted to a planar
    tensor, and pushed through the forward pass. Only the forward pass is
    timed; the measurement is kept in last_duration_ns.
    """

    def __init__(self, engine: Optional[InferenceEngine]):
        self.engine = engine
        self.last_duration_ns = 0

    def run(
        self,
        image: np.ndarray,
        threshold: float,
        hierarchy_threshold: float,
    ) -> InferenceOutput:
        engine = self.engine
        if engine is None or not engine.is_loaded:
            raise DetectorStateError("cannot predict with an empty network")

        width, height = engine.input_size
        resized = cv2.resize(image, (width, height))
        tensor = to_tensor(resized)

        start = time.perf_counter_ns()
        outputs = engine.forward(tensor)
        self.last_duration_ns = time.perf_counter_ns() - start
        del tensor

        detections = engine.get_boxes(outputs, threshold, hierarchy_threshold)
        logging.debug(
            f"{engine.name}: {len(detections)} candidate boxes in {self.last_duration_ns} ns"
        )
        return InferenceOutput(detections=detections, duration_ns=self.last_duration_ns)
