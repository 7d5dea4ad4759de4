"""
Image conversion and file I/O.
"""

from .convert import Tensor, from_tensor, is_empty_image, to_tensor
from .io import close_windows, read_image, show_image, write_image

__all__ = [
    "Tensor",
    "to_tensor",
    "from_tensor",
    "is_empty_image",
    "read_image",
    "write_image",
    "show_image",
    "close_windows",
]
