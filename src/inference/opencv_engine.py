"""
OpenCV DNN inference engine for Darknet networks.

Uses cv2.dnn.readNetFromDarknet(), so the project runs anywhere opencv-python
is installed without building darknet itself. The darknet importer was
removed in OpenCV 5, so opencv-python is held below that release.
"""

from __future__ import annotations

import logging
import os
import tempfile
from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np

from imaging.convert import Tensor
from models.errors import NetworkLoadError
from .engine import InferenceEngine, NormalizedBox, RawDetection

# Output layers that apply their own score cutoff (default 0.2) inside OpenCV
DETECTION_SECTIONS = ("[yolo]", "[region]")


def _section_key(line: str) -> str:
    return line.split("#", 1)[0].split(";", 1)[0].split("=", 1)[0].strip()


def disable_layer_thresholds(cfg_text: str) -> str:
    """
    Return the cfg text with thresh=0 in every [yolo] and [region] section.

    OpenCV zeroes class scores at or below the layer's thresh before they
    reach get_boxes(), which would hide results a lower caller threshold
    should keep. Any existing thresh key in those sections is replaced.
    """
    lines: List[str] = []
    in_detection = False
    for raw_line in cfg_text.splitlines():
        stripped = raw_line.split("#", 1)[0].split(";", 1)[0].strip()
        if stripped.startswith("["):
            in_detection = stripped.lower() in DETECTION_SECTIONS
            lines.append(raw_line)
            if in_detection:
                lines.append("thresh=0")
            continue
        if in_detection and "=" in stripped and _section_key(raw_line) == "thresh":
            continue
        lines.append(raw_line)
    return "\n".join(lines) + "\n"


def read_network_input_size(config_path: str) -> Tuple[int, int]:
    """
    Read the network input (width, height) from the [net] section of a
    darknet .cfg file.
    """
    width: Optional[int] = None
    height: Optional[int] = None
    in_net = False

    with open(config_path, "r") as f:
        for raw_line in f:
            line = raw_line.split("#", 1)[0].split(";", 1)[0].strip()
            if not line:
                continue
            if line.startswith("["):
                if in_net:
                    break
                in_net = line.lower() in ("[net]", "[network]")
                continue
            if in_net and "=" in line:
                key, value = (part.strip() for part in line.split("=", 1))
                if key == "width":
                    width = int(value)
                elif key == "height":
                    height = int(value)

    if not width or not height:
        raise ValueError(f"no [net] width/height in {config_path}")
    return width, height


class OpenCVDarknetEngine(InferenceEngine):
    """
    Darknet network run through OpenCV's DNN module.

    Each output row is [cx, cy, w, h, objectness, class scores...] in
    normalised coordinates; OpenCV already scales the class scores by the
    objectness. Class hierarchies are flattened by OpenCV, so the hierarchy
    threshold has no effect with this engine.

    The cfg is loaded with the [yolo]/[region] layer thresholds set to 0, so
    every score reaches get_boxes() and only the caller's threshold applies.
    """

    def __init__(
        self,
        backend: int = cv2.dnn.DNN_BACKEND_OPENCV,
        target: int = cv2.dnn.DNN_TARGET_CPU,
    ):
        self.backend = backend
        self.target = target
        self._net: Optional[cv2.dnn.Net] = None
        self._output_names: Sequence[str] = ()
        self._input_size: Optional[Tuple[int, int]] = None

    def load(self, config_path: str, weights_path: str) -> None:
        if not hasattr(cv2.dnn, "readNetFromDarknet"):
            raise NetworkLoadError(
                f"OpenCV {cv2.__version__} has no darknet importer (requires opencv-python < 5)"
            )

        try:
            with open(config_path, "r") as f:
                cfg_text = f.read()
            input_size = read_network_input_size(config_path)
        except (OSError, ValueError) as e:
            raise NetworkLoadError(f"cannot read network configuration: {e}") from e

        fd, patched_path = tempfile.mkstemp(suffix=".cfg")
        try:
            with os.fdopen(fd, "w") as f:
                f.write(disable_layer_thresholds(cfg_text))
            net = cv2.dnn.readNetFromDarknet(patched_path, weights_path)
        except cv2.error as e:
            raise NetworkLoadError(
                "darknet failed to load the configuration, the weights, or both"
            ) from e
        finally:
            os.remove(patched_path)
        if net is None or net.empty():
            raise NetworkLoadError(
                "darknet failed to load the configuration, the weights, or both"
            )

        net.setPreferableBackend(self.backend)
        net.setPreferableTarget(self.target)

        self._net = net
        self._output_names = tuple(net.getUnconnectedOutLayersNames())
        self._input_size = input_size
        logging.debug(
            f"{self.name}: input={input_size[0]}x{input_size[1]} outputs={list(self._output_names)}"
        )

    def forward(self, tensor: Tensor) -> List[np.ndarray]:
        if self._net is None:
            raise RuntimeError("Network not loaded. Call load() first.")

        blob = tensor.data[np.newaxis, ...].astype(np.float32)
        self._net.setInput(blob)
        return list(self._net.forward(self._output_names))

    def get_boxes(
        self,
        outputs: List[np.ndarray],
        threshold: float,
        hierarchy_threshold: float,
    ) -> List[RawDetection]:
        detections: List[RawDetection] = []
        for output in outputs:
            rows = np.asarray(output, dtype=np.float32)
            rows = rows.reshape(-1, rows.shape[-1])
            for row in rows:
                objectness = float(row[4])
                if objectness <= threshold:
                    continue
                scores = row[5:]
                prob = np.where(scores > threshold, scores, 0).astype(np.float32)
                detections.append(
                    RawDetection(
                        bbox=NormalizedBox(
                            x=float(row[0]), y=float(row[1]), w=float(row[2]), h=float(row[3])
                        ),
                        prob=prob,
                        objectness=objectness,
                        sort_class=int(np.argmax(scores)),
                    )
                )
        return detections

    @property
    def input_size(self) -> Tuple[int, int]:
        if self._input_size is None:
            raise RuntimeError("Network not loaded.")
        return self._input_size

    @property
    def is_loaded(self) -> bool:
        return self._net is not None

    def release(self) -> None:
        self._net = None
        self._output_names = ()
