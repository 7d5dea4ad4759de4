"""
Image file I/O and display, backed by OpenCV.
"""

from __future__ import annotations

import logging
import os
from typing import Optional, Union

import cv2
import numpy as np

PathLike = Union[str, "os.PathLike[str]"]


def read_image(path: PathLike) -> Optional[np.ndarray]:
    """
    Decode an image file into a BGR array.

    Returns None when the file is missing or cannot be decoded.
    """
    image = cv2.imread(os.fspath(path))
    if image is None or image.size == 0:
        logging.debug(f"Could not decode image {path}")
        return None
    return image


def write_image(path: PathLike, image: np.ndarray) -> None:
    """Encode an image to disk, creating the parent directory if needed."""
    path = os.fspath(path)
    out_dir = os.path.dirname(path)
    if out_dir and not os.path.exists(out_dir):
        os.makedirs(out_dir)

    if not cv2.imwrite(path, image):
        raise RuntimeError(f"Failed to encode image {path}")


def show_image(window_name: str, image: np.ndarray, wait_ms: int = 0) -> int:
    """
    Display an image and wait for a key.

    Returns the pressed key code (masked to 8 bits), or -1 on timeout.
    """
    cv2.imshow(window_name, image)
    key = cv2.waitKey(wait_ms)
    return key & 0xFF if key >= 0 else -1


def close_windows() -> None:
    cv2.destroyAllWindows()
