"""
Conversion between OpenCV images and the network's tensor layout.

OpenCV images are interleaved uint8 rows in BGR order. Darknet networks
expect planar (channel-first) float32 data in RGB order with intensities
scaled to [0, 1].
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np


@dataclass
class Tensor:
    """
    Planar image tensor handed to the inference engine.

    Attributes:
        width: Width in pixels.
        height: Height in pixels.
        channels: Number of channel planes.
        data: float32 array of shape (channels, height, width), values in [0, 1].
    """
    width: int
    height: int
    channels: int
    data: np.ndarray

    @property
    def is_empty(self) -> bool:
        return self.data is None or self.data.size == 0


def is_empty_image(image: Optional[np.ndarray]) -> bool:
    """True for None or any image with a zero dimension."""
    return image is None or image.size == 0


def to_tensor(image: np.ndarray) -> Tensor:
    """
    Convert an OpenCV image (1-4 channels) to a planar RGB tensor.

    The input is left untouched; callers must not pass an empty image.
    """
    if image.ndim == 2:
        image = image[:, :, np.newaxis]
    elif image.shape[2] == 3:
        # OpenCV uses BGR, darknet expects RGB
        image = cv2.cvtColor(np.ascontiguousarray(image), cv2.COLOR_BGR2RGB)

    height, width, channels = image.shape
    data = np.ascontiguousarray(
        image.transpose(2, 0, 1).astype(np.float32) / 255.0
    )
    return Tensor(width=width, height=height, channels=channels, data=data)


def from_tensor(tensor: Tensor) -> np.ndarray:
    """
    Convert a planar tensor back to an interleaved OpenCV image.

    Intensities are multiplied by 255 and truncated, so a round trip through
    to_tensor() can lose one intensity level.
    """
    scaled = np.clip(tensor.data * 255.0, 0, 255).astype(np.uint8)
    image = np.ascontiguousarray(scaled.transpose(1, 2, 0))

    if tensor.channels == 1:
        return image[:, :, 0].copy()
    if tensor.channels == 3:
        image = cv2.cvtColor(image, cv2.COLOR_RGB2BGR)
    return image
