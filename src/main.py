"""
Command-line driver: run a Darknet network over a set of images.

Each image is predicted, its results are logged, and an annotated copy is
written to the output directory (and optionally shown on screen).

Usage:
    python src/main.py --config config/config.yaml images/*.jpg --display

Arguments:
    --config: Path to configuration file
    --display: Show each annotated image and wait for a key ('q' quits)
    --output-dir: Override output.output_dir
    --threshold: Override detector.threshold
"""

import os
import sys
import argparse
import logging
from typing import Any, Dict, List, Optional, Tuple

import yaml

from detection.detector import Detector
from imaging.io import close_windows, read_image, show_image, write_image
from models.config import Config
from models.errors import NetworkLoadError
from ops.logging import setup_logging


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        base_path = os.path.join(os.path.dirname(config_path), "default.yaml")
        base_cfg: Dict[str, Any] = {}
        if os.path.exists(base_path):
            with open(base_path, "r") as f:
                base_cfg = yaml.safe_load(f) or {}

        local_overrides_path = os.path.join(os.path.dirname(config_path), "config.yaml")
        local_cfg: Dict[str, Any] = {}
        if os.path.exists(local_overrides_path):
            with open(local_overrides_path, "r") as f:
                local_cfg = yaml.safe_load(f) or {}

        merged = _deep_merge(base_cfg, local_cfg)

        # Finally apply explicit config_path if it's not the local override file itself
        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            with open(config_path, "r") as f:
                explicit_cfg = yaml.safe_load(f) or {}
            merged = _deep_merge(merged, explicit_cfg)

        return merged
    except (OSError, yaml.YAMLError) as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['detector', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    detector = config.get('detector') or {}
    for key in ('config_path', 'weights_path'):
        if not isinstance(detector.get(key), str) or not detector.get(key):
            return False, f"detector.{key} is required"
    if 'names_path' in detector and detector['names_path'] is not None \
            and not isinstance(detector['names_path'], str):
        return False, "detector.names_path must be a string"

    # Thresholds are nominally in [0, 1] but only their type is enforced
    for key in ('threshold', 'hierarchy_threshold', 'nms_threshold'):
        if key in detector and not _is_number(detector[key]):
            return False, f"detector.{key} must be a number"

    annotation = detector.get('annotation') or {}
    if 'colour' in annotation:
        colour = annotation['colour']
        if not isinstance(colour, list) or len(colour) != 3:
            return False, "detector.annotation.colour must be a list of [b, g, r]"
        if not all(isinstance(c, int) and 0 <= c <= 255 for c in colour):
            return False, "detector.annotation.colour values must be integers in 0..255"
    if 'font_scale' in annotation:
        if not _is_number(annotation['font_scale']) or annotation['font_scale'] <= 0:
            return False, "detector.annotation.font_scale must be a positive number"
    for key in ('font_thickness', 'box_thickness'):
        if key in annotation:
            if not isinstance(annotation[key], int) or annotation[key] <= 0:
                return False, f"detector.annotation.{key} must be a positive integer"

    output = config.get('output') or {}
    if 'output_dir' in output and not isinstance(output['output_dir'], str):
        return False, "output.output_dir must be a string"

    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if config['log_level'] not in valid_log_levels:
        return False, f"log_level must be one of: {', '.join(valid_log_levels)}"

    return True, None


def annotated_path(image_path: str, output_dir: str) -> str:
    """Output filename for an image: <stem>_annotated<ext> inside output_dir."""
    stem, ext = os.path.splitext(os.path.basename(image_path))
    return os.path.join(output_dir, f"{stem}_annotated{ext or '.png'}")


def process_images(
    detector: Detector,
    image_paths: List[str],
    cfg: Config,
) -> int:
    """
    Predict, annotate and save each image.

    Returns the number of images processed successfully.
    """
    processed = 0
    include_duration = cfg.detector.annotation.include_duration

    for path in image_paths:
        image = read_image(path)
        if image is None:
            logging.warning(f"Skipping unreadable image: {path}")
            continue

        try:
            results = detector.predict(image)
            logging.info(f"{path}: {len(results)} detections in {detector.duration_string()}")
            for pred in results:
                x, y, w, h = pred.rect.as_tuple()
                logging.info(
                    f"  {pred.name} (class {pred.class_id}) p={pred.probability:.3f} "
                    f"rect=({x},{y},{w},{h})"
                )

            annotated = detector.annotate(include_duration=include_duration)
            out_path = annotated_path(path, cfg.output.output_dir)
            write_image(out_path, annotated)
        except (ValueError, RuntimeError) as e:
            logging.error(f"Failed to process {path}: {e}")
            continue
        processed += 1

        if cfg.output.display:
            if show_image("darknet", annotated) == ord('q'):
                logging.info("Stopped by user")
                break

    return processed


def main(argv: Optional[List[str]] = None) -> int:
    """Main application function."""
    parser = argparse.ArgumentParser(description='Darknet detection helper')
    parser.add_argument('images', nargs='+',
                        help='Image files to run detection on')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--display', action='store_true',
                        help='Show each annotated image')
    parser.add_argument('--output-dir', type=str, default=None,
                        help='Directory for annotated images')
    parser.add_argument('--threshold', type=float, default=None,
                        help='Probability threshold override')
    args = parser.parse_args(argv)

    config = load_config(args.config)

    if args.threshold is not None:
        config.setdefault('detector', {})['threshold'] = args.threshold
    if args.output_dir is not None:
        config.setdefault('output', {})['output_dir'] = args.output_dir
    if args.display:
        config.setdefault('output', {})['display'] = True

    is_valid, error_msg = validate_config(config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        return 1

    setup_logging(config['log_path'], config['log_level'])
    cfg = Config.from_dict(config)

    logging.info("Starting darknet detection helper")

    try:
        detector = Detector.from_config(cfg.detector)
    except (ValueError, NetworkLoadError) as e:
        logging.error(f"Failed to create detector: {e}")
        return 1

    try:
        processed = process_images(detector, args.images, cfg)
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        processed = 0
    finally:
        detector.release()
        if cfg.output.display:
            close_windows()

    logging.info(f"Processed {processed}/{len(args.images)} images")
    return 0


if __name__ == "__main__":
    sys.exit(main())
