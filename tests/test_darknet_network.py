"""
Tests that load a real (tiny) darknet network through OpenCV.

The network is a single 1x1 convolution feeding a [yolo] layer. All conv
weights are zero, so every grid cell produces the same raw output, set by
the biases: tx, ty, tw, th, objectness logit, class logit.
"""

import math

import numpy as np
import pytest

from detection.detector import Detector
from inference.opencv_engine import OpenCVDarknetEngine

GRID = 8

CFG_TEXT = f"""
[net]
batch=1
width={GRID}
height={GRID}
channels=3

[convolutional]
filters=6
size=1
stride=1
pad=1
activation=linear

[yolo]
mask=0
anchors=4,4
classes=1
num=1
"""


def _logit(p):
    return math.log(p / (1.0 - p))


def write_network(tmp_path, objectness, class_score):
    """Write the cfg plus a weights file whose outputs decode to the given scores."""
    cfg = tmp_path / "tiny.cfg"
    cfg.write_text(CFG_TEXT)

    weights = tmp_path / "tiny.weights"
    biases = np.array([0.0, 0.0, 0.0, 0.0, _logit(objectness), _logit(class_score)], dtype=np.float32)
    kernel = np.zeros(6 * 3, dtype=np.float32)
    with open(weights, "wb") as f:
        # major, minor, revision, then a 64-bit "seen" counter (format >= 0.2)
        f.write(np.array([0, 2, 0], dtype=np.int32).tobytes())
        f.write(np.array([0], dtype=np.uint64).tobytes())
        f.write(biases.tobytes())
        f.write(kernel.tobytes())

    return str(cfg), str(weights)


@pytest.fixture
def image():
    return np.zeros((GRID * 4, GRID * 4, 3), dtype=np.uint8)


class TestRealNetwork:
    def test_default_engine_loads(self, tmp_path):
        cfg, weights = write_network(tmp_path, objectness=0.5, class_score=0.5)

        with Detector(cfg, weights) as detector:
            assert isinstance(detector.engine, OpenCVDarknetEngine)
            assert detector.engine.input_size == (GRID, GRID)
            assert detector.is_loaded

    def test_one_result_per_cell(self, tmp_path, image):
        cfg, weights = write_network(tmp_path, objectness=0.5, class_score=0.5)

        with Detector(cfg, weights) as detector:
            detector.nms_threshold = 0.0
            results = detector.predict(image, 0.2)

        assert len(results) == GRID * GRID
        assert all(r.probability == pytest.approx(0.25, rel=1e-3) for r in results)
        assert {r.name for r in results} == {"#0"}

    def test_threshold_below_layer_default(self, tmp_path, image):
        # probability = 0.5 * 0.3 = 0.15, under OpenCV's built-in 0.2 cutoff
        cfg, weights = write_network(tmp_path, objectness=0.5, class_score=0.3)

        with Detector(cfg, weights) as detector:
            detector.nms_threshold = 0.0
            kept = detector.predict(image, 0.1)
            dropped = detector.predict(image, 0.2)

        assert len(kept) == GRID * GRID
        assert all(r.probability == pytest.approx(0.15, rel=1e-3) for r in kept)
        assert dropped == []
