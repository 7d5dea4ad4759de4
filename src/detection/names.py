"""
Class name table loading.
"""

from __future__ import annotations

import logging
import os
from typing import List


def load_names(names_path: str) -> List[str]:
    """
    Read class names, one per line in class-index order.

    The first empty line ends the table; anything after it is ignored.
    A missing file yields an empty table.
    """
    names: List[str] = []
    if not names_path:
        return names
    if not os.path.exists(names_path):
        logging.warning(f"Names file not found: {names_path}; using synthetic class names")
        return names

    with open(names_path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.rstrip("\r\n")
            if not line:
                break
            names.append(line)

    logging.debug(f"Loaded {len(names)} class names from {names_path}")
    return names
