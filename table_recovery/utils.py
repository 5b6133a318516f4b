"""
Utility functions shared by the table recovery strategies.
"""

import os
import logging
from bisect import bisect_right
from typing import List, Sequence, Tuple
import numpy as np
from PIL import Image


def setup_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """
    Setup logger with consistent formatting.

    Args:
        name: Logger name
        level: Logging level

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def ensure_dir(path: str) -> str:
    """
    Create directory if it doesn't exist.

    Args:
        path: Directory path

    Returns:
        Absolute path to directory
    """
    os.makedirs(path, exist_ok=True)
    return os.path.abspath(path)


def locate(bounds: Sequence[float], coord: float, clamp: bool = True) -> int:
    """
    Find the interval ``[bounds[i], bounds[i+1])`` containing a coordinate.

    Args:
        bounds: Non-decreasing boundary positions
        coord: Position to look up
        clamp: If True, positions left of the first boundary map to 0 and
            positions at or beyond the last boundary map to the last interval.
            If False, such positions return -1.

    Returns:
        Interval index in ``[0, len(bounds) - 2]``, or -1 (see ``clamp``)
    """
    last = len(bounds) - 2
    if last < 0:
        return 0 if clamp else -1

    idx = bisect_right(bounds, coord) - 1
    if 0 <= idx <= last:
        return idx

    if not clamp:
        return -1
    return 0 if idx < 0 else last


def dedupe_positions(positions: Sequence[int], tol: int) -> List[int]:
    """
    Collapse sorted positions that lie within ``tol`` of the last kept one.

    Args:
        positions: Candidate positions (any order)
        tol: Maximum distance treated as a duplicate

    Returns:
        Sorted, de-duplicated positions
    """
    out: List[int] = []
    for pos in sorted(positions):
        if not out or abs(pos - out[-1]) > tol:
            out.append(pos)
    return out


def crop_image(image: np.ndarray, bbox: Tuple[int, int, int, int]) -> np.ndarray:
    """
    Crop an image array using a bounding box.

    Args:
        image: Image array (rows x cols[, channels])
        bbox: Bounding box as (x1, y1, x2, y2)

    Returns:
        Cropped copy of the image
    """
    x1, y1, x2, y2 = bbox
    return image[y1:y2, x1:x2].copy()


def image_to_numpy(image: Image.Image) -> np.ndarray:
    """
    Convert PIL Image to a grayscale numpy array.

    Args:
        image: PIL Image

    Returns:
        8-bit single channel array
    """
    if image.mode != 'L':
        image = image.convert('L')
    return np.array(image)
