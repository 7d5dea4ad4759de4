"""
Darknet detector: one loaded network plus the state of its last prediction.

Typical use:

    detector = Detector("yolov4-tiny.cfg", "yolov4-tiny.weights", "coco.names")
    results = detector.predict("barcode_0.jpg")
    annotated = detector.annotate()

predict() and annotate() share state on the instance (source image, results,
annotated image), so one instance must not be used from several threads at
once. Separate instances with their own engines are independent.
"""

from __future__ import annotations

import logging
import os
import time
from typing import List, Optional, Tuple, Union

import numpy as np

from imaging.convert import Tensor, from_tensor, is_empty_image
from imaging.io import read_image
from inference.engine import InferenceEngine
from inference.runner import InferenceRunner
from models.config import DetectorConfig
from models.detection import PredictionResult
from models.errors import DetectorStateError, NetworkLoadError
from ops.timing import format_duration
from .annotator import AnnotationStyle, annotate_image
from .decoder import decode_detections
from .names import load_names

ImageSource = Union[str, "os.PathLike[str]", np.ndarray, Tensor]


class Detector:
    """
    Wraps a Darknet network for single-image prediction and annotation.

    Attributes:
        threshold: Minimum probability for a result (default 0.5).
        hierarchy_threshold: Passed to the engine's box extraction (default 0.5).
        nms_threshold: IoU cutoff for suppression, 0 disables it (default 0.45).
        annotation_colour: BGR colour for boxes and label backdrops.
        annotation_font_scale: Font scale for labels.
        annotation_font_thickness: Stroke thickness for label text.
        annotation_box_thickness: Stroke thickness for detection rectangles.
        names: Class names, fixed at construction.
        original_image: Source image of the most recent predict().
        prediction_results: Results of the most recent predict().
        annotated_image: Output of the most recent annotate().
        duration_ns: Duration of the last network load or forward pass.

    Thresholds are expected in [0, 1] but are not validated.
    """

    def __init__(
        self,
        config_filename: str,
        weights_filename: str,
        names_filename: str = "",
        engine: Optional[InferenceEngine] = None,
    ):
        if not config_filename:
            raise ValueError("darknet configuration filename cannot be empty")
        if not weights_filename:
            raise ValueError("darknet weights filename cannot be empty")

        if engine is None:
            from inference.opencv_engine import OpenCVDarknetEngine
            engine = OpenCVDarknetEngine()

        start = time.perf_counter_ns()
        engine.load(os.fspath(config_filename), os.fspath(weights_filename))
        self.duration_ns = time.perf_counter_ns() - start

        if not engine.is_loaded:
            raise NetworkLoadError("darknet failed to load the configuration, the weights, or both")

        self._engine: Optional[InferenceEngine] = engine
        self._runner = InferenceRunner(engine)
        logging.info(
            f"Loaded network {config_filename} with {engine.name} in {self.duration_string()}"
        )

        # pick some reasonable default values
        self.threshold = 0.5
        self.hierarchy_threshold = 0.5
        self.nms_threshold = 0.45
        self.annotation_colour: Tuple[int, int, int] = (255, 0, 255)
        self.annotation_font_scale = 0.5
        self.annotation_font_thickness = 1
        self.annotation_box_thickness = 2

        self.names: Tuple[str, ...] = tuple(load_names(os.fspath(names_filename)))

        self.original_image: Optional[np.ndarray] = None
        self._has_prediction = False
        self.annotated_image: Optional[np.ndarray] = None
        self.prediction_results: List[PredictionResult] = []

    @classmethod
    def from_config(
        cls,
        cfg: DetectorConfig,
        engine: Optional[InferenceEngine] = None,
    ) -> "Detector":
        """Build a detector and apply the thresholds and annotation style from config."""
        detector = cls(cfg.config_path, cfg.weights_path, cfg.names_path, engine=engine)
        detector.threshold = cfg.threshold
        detector.hierarchy_threshold = cfg.hierarchy_threshold
        detector.nms_threshold = cfg.nms_threshold
        style = AnnotationStyle.from_config(cfg.annotation)
        detector.annotation_colour = style.colour
        detector.annotation_font_scale = style.font_scale
        detector.annotation_font_thickness = style.font_thickness
        detector.annotation_box_thickness = style.box_thickness
        return detector

    @property
    def engine(self) -> Optional[InferenceEngine]:
        return self._engine

    @property
    def is_loaded(self) -> bool:
        return self._engine is not None and self._engine.is_loaded

    def release(self) -> None:
        """Free the network. predict() fails with DetectorStateError afterwards."""
        if self._engine is not None:
            self._engine.release()
            self._engine = None
        self._runner.engine = None

    def __enter__(self) -> "Detector":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()

    def predict(self, source: ImageSource, new_threshold: float = -1.0) -> List[PredictionResult]:
        """
        Run the network on an image and return the decoded results.

        Args:
            source: Image filename, OpenCV image (BGR ndarray) or planar Tensor.
            new_threshold: If >= 0, replaces self.threshold before predicting.

        Returns:
            The new prediction_results list.

        Raises:
            ValueError: If the image cannot be loaded or is empty.
            DetectorStateError: If no network is loaded.
        """
        if isinstance(source, Tensor):
            # Go through an OpenCV image so every input is handled the same way
            if source.is_empty:
                raise ValueError("image is empty or has failed to convert from the tensor format")
            image = from_tensor(source)
            if is_empty_image(image):
                raise ValueError("image is empty or has failed to convert from the tensor format")
        elif isinstance(source, np.ndarray):
            image = source
            if is_empty_image(image):
                raise ValueError("cannot predict with an empty OpenCV image")
        else:
            image = read_image(source)
            if image is None:
                raise ValueError(f'failed to load image "{os.fspath(source)}"')

        self.original_image = image
        return self._predict(new_threshold)

    def _predict(self, new_threshold: float) -> List[PredictionResult]:
        self.prediction_results = []
        self.annotated_image = None
        self._has_prediction = False

        if not self.is_loaded:
            raise DetectorStateError("cannot predict with an empty network")
        if is_empty_image(self.original_image):
            raise DetectorStateError("cannot predict with an empty image")

        if new_threshold >= 0.0:
            self.threshold = new_threshold

        output = self._runner.run(self.original_image, self.threshold, self.hierarchy_threshold)
        self.duration_ns = output.duration_ns

        height, width = self.original_image.shape[:2]
        results = decode_detections(
            output.detections,
            width,
            height,
            self.threshold,
            self.nms_threshold,
            self.names,
            suppress=self._engine.nms_sort,
        )

        self.prediction_results = results
        self._has_prediction = True
        logging.debug(
            f"{len(results)} results from {output.count} boxes "
            f"(threshold={self.threshold}, inference={self.duration_string()})"
        )
        return results

    def annotate(self, new_threshold: float = -1.0, include_duration: bool = True) -> np.ndarray:
        """
        Draw the last results on a fresh copy of the last source image.

        Args:
            new_threshold: If >= 0, replaces self.threshold before drawing.
            include_duration: Draw the last inference duration in the corner.

        Returns:
            The annotated image, also kept in annotated_image.

        Raises:
            DetectorStateError: If predict() has not succeeded on this instance.
        """
        if not self._has_prediction or is_empty_image(self.original_image):
            raise DetectorStateError("cannot annotate an empty image; must call predict() first")

        if new_threshold >= 0.0:
            self.threshold = new_threshold

        style = AnnotationStyle(
            colour=self.annotation_colour,
            font_scale=self.annotation_font_scale,
            font_thickness=self.annotation_font_thickness,
            box_thickness=self.annotation_box_thickness,
        )
        self.annotated_image = annotate_image(
            self.original_image,
            self.prediction_results,
            self.threshold,
            style,
            duration_text=self.duration_string() if include_duration else None,
        )
        return self.annotated_image

    def duration_string(self) -> str:
        """Human-readable duration of the last network load or inference."""
        return format_duration(self.duration_ns)
