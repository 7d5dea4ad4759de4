"""
Tests for the command-line driver.
"""

import os
from unittest.mock import patch

import cv2
import numpy as np

import main
from detection.detector import Detector
from main import annotated_path, process_images
from models.config import Config
from conftest import FakeEngine


def _write_image(path):
    cv2.imwrite(str(path), np.zeros((60, 80, 3), dtype=np.uint8))
    return str(path)


class TestAnnotatedPath:
    def test_keeps_extension(self):
        assert annotated_path("/data/barcode_0.jpg", "out") == os.path.join("out", "barcode_0_annotated.jpg")

    def test_no_extension(self):
        assert annotated_path("frame", "out") == os.path.join("out", "frame_annotated.png")


class TestProcessImages:
    def test_writes_annotated_images(self, tmp_path, fake_engine):
        images = [_write_image(tmp_path / f"img_{i}.png") for i in range(2)]
        cfg = Config()
        cfg.output.output_dir = str(tmp_path / "out")
        detector = Detector("net.cfg", "net.weights", engine=fake_engine)

        processed = process_images(detector, images, cfg)

        assert processed == 2
        assert os.path.exists(tmp_path / "out" / "img_0_annotated.png")
        assert os.path.exists(tmp_path / "out" / "img_1_annotated.png")

    def test_skips_unreadable(self, tmp_path, fake_engine):
        good = _write_image(tmp_path / "good.png")
        cfg = Config()
        cfg.output.output_dir = str(tmp_path / "out")
        detector = Detector("net.cfg", "net.weights", engine=fake_engine)

        processed = process_images(detector, [str(tmp_path / "missing.png"), good], cfg)

        assert processed == 1

    def test_write_failure_skips_image(self, tmp_path, fake_engine):
        images = [_write_image(tmp_path / f"img_{i}.png") for i in range(2)]
        cfg = Config()
        cfg.output.output_dir = str(tmp_path / "out")
        detector = Detector("net.cfg", "net.weights", engine=fake_engine)

        with patch("main.write_image", side_effect=[RuntimeError("disk full"), None]) as mock_write:
            processed = process_images(detector, images, cfg)

        assert processed == 1
        assert mock_write.call_count == 2

    def test_predict_failure_skips_image(self, tmp_path, fake_engine):
        images = [_write_image(tmp_path / f"img_{i}.png") for i in range(2)]
        cfg = Config()
        cfg.output.output_dir = str(tmp_path / "out")
        detector = Detector("net.cfg", "net.weights", engine=fake_engine)
        detector.release()

        processed = process_images(detector, images, cfg)

        assert processed == 0
        assert not os.path.exists(tmp_path / "out")

    def test_quit_key_stops(self, tmp_path, fake_engine):
        images = [_write_image(tmp_path / f"img_{i}.png") for i in range(3)]
        cfg = Config()
        cfg.output.output_dir = str(tmp_path / "out")
        cfg.output.display = True
        detector = Detector("net.cfg", "net.weights", engine=fake_engine)

        with patch("main.show_image", return_value=ord('q')) as mock_show:
            processed = process_images(detector, images, cfg)

        assert processed == 1
        mock_show.assert_called_once()


class TestMain:
    def _config(self, tmp_path):
        path = tmp_path / "run.yaml"
        path.write_text(
            "detector:\n"
            "  config_path: net.cfg\n"
            "  weights_path: net.weights\n"
            f"output:\n  output_dir: {tmp_path / 'out'}\n"
            "log_path: ''\n"
            "log_level: INFO\n"
        )
        return str(path)

    def test_runs_end_to_end(self, tmp_path):
        image = _write_image(tmp_path / "frame.png")
        engine = FakeEngine(boxes=[(0.5, 0.5, 0.2, 0.2, [0.9], 0)])

        def build(cfg):
            return Detector("net.cfg", "net.weights", engine=engine)

        with patch.object(main.Detector, "from_config", side_effect=build):
            code = main.main(["--config", self._config(tmp_path), "--threshold", "0.4", image])

        assert code == 0
        assert os.path.exists(tmp_path / "out" / "frame_annotated.png")
        assert engine.released == 1

    def test_invalid_config_returns_error(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("detector:\n  config_path: net.cfg\nlog_path: ''\nlog_level: INFO\n")

        assert main.main(["--config", str(path), "frame.png"]) == 1

    def test_load_failure_returns_error(self, tmp_path):
        def build(cfg):
            return Detector("net.cfg", "net.weights", engine=FakeEngine(fail_load=True))

        with patch.object(main.Detector, "from_config", side_effect=build):
            assert main.main(["--config", self._config(tmp_path), "frame.png"]) == 1
