"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from inference.engine import InferenceEngine, NormalizedBox, RawDetection  # noqa: E402
from models.errors import NetworkLoadError  # noqa: E402


class FakeEngine(InferenceEngine):
    """
    Scripted engine for testing.

    boxes: list of (x, y, w, h, probs, sort_class) tuples in normalised
    coordinates. Every get_boxes() call returns fresh RawDetection objects so
    suppression on one prediction never leaks into the next.
    """

    def __init__(self, boxes=None, input_size=(32, 24), fail_load=False):
        self.boxes = list(boxes or [])
        self._input_size = input_size
        self.fail_load = fail_load
        self.loaded = False
        self.load_calls = []
        self.forward_calls = []
        self.get_boxes_calls = []
        self.released = 0

    def load(self, config_path, weights_path):
        self.load_calls.append((config_path, weights_path))
        if self.fail_load:
            raise NetworkLoadError("darknet failed to load the configuration, the weights, or both")
        self.loaded = True

    def forward(self, tensor):
        self.forward_calls.append(tensor)
        return "raw-output"

    def get_boxes(self, outputs, threshold, hierarchy_threshold):
        self.get_boxes_calls.append((outputs, threshold, hierarchy_threshold))
        return [
            RawDetection(
                bbox=NormalizedBox(x=x, y=y, w=w, h=h),
                prob=np.array(probs, dtype=np.float32),
                objectness=max(probs) if probs else 0.0,
                sort_class=sort_class,
            )
            for (x, y, w, h, probs, sort_class) in self.boxes
        ]

    @property
    def input_size(self):
        return self._input_size

    @property
    def is_loaded(self):
        return self.loaded

    def release(self):
        self.released += 1
        self.loaded = False


def make_raw(x, y, w, h, probs, sort_class=0, objectness=None):
    """Build a RawDetection for decoder/NMS tests."""
    probs = np.array(probs, dtype=np.float32)
    return RawDetection(
        bbox=NormalizedBox(x=x, y=y, w=w, h=h),
        prob=probs,
        objectness=float(probs.max()) if objectness is None else objectness,
        sort_class=sort_class,
    )


@pytest.fixture
def fake_engine():
    """Engine with one box per class of a two-class network."""
    return FakeEngine(
        boxes=[
            (0.25, 0.25, 0.2, 0.2, [0.9, 0.0], 0),
            (0.75, 0.75, 0.2, 0.4, [0.0, 0.6], 1),
        ]
    )


@pytest.fixture
def names_file(tmp_path):
    path = tmp_path / "classes.names"
    path.write_text("barcode\nqrcode\n\nignored\n")
    return str(path)


@pytest.fixture
def bgr_image():
    """A 40x60 BGR image with a gradient so every pixel differs."""
    rng = np.random.default_rng(1234)
    return rng.integers(0, 256, size=(40, 60, 3), dtype=np.uint8)


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
detector:
  config_path: "models/test.cfg"
  weights_path: "models/test.weights"
  names_path: ""
  threshold: 0.5
  nms_threshold: 0.45

output:
  output_dir: "output/annotated"

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "detector": {
            "config_path": "models/test.cfg",
            "weights_path": "models/test.weights",
            "names_path": "models/test.names",
            "threshold": 0.5,
            "hierarchy_threshold": 0.5,
            "nms_threshold": 0.45,
            "annotation": {
                "colour": [255, 0, 255],
                "font_scale": 0.5,
                "font_thickness": 1,
            },
        },
        "output": {
            "output_dir": "output/annotated",
            "display": False,
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
