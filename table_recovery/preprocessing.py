"""
Image operations for rule-line detection and OCR preparation (OpenCV).
"""

from typing import List, Sequence, Tuple
import os

import cv2
import numpy as np

from .utils import setup_logger, dedupe_positions, ensure_dir


logger = setup_logger(__name__)

LINE_COVERAGE = 0.35
LINE_DEDUPE_TOL = 3
BORDER_TOL = 3


def binarize_for_lines(gray: np.ndarray) -> np.ndarray:
    """Inverted adaptive threshold: ink and rules become white on black."""
    return cv2.adaptiveThreshold(
        gray, 255, cv2.ADAPTIVE_THRESH_MEAN_C, cv2.THRESH_BINARY_INV, 15, 10
    )


def binarize_for_ocr(gray: np.ndarray) -> np.ndarray:
    """Inverted adaptive threshold with a larger window, tuned for glyph strokes."""
    return cv2.adaptiveThreshold(
        gray, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C, cv2.THRESH_BINARY_INV, 31, 15
    )


def extract_line_masks(bw: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Isolate horizontal and vertical rules with erode+dilate.

    Kernel length grows with the image width so long rules survive and text
    strokes do not.

    Args:
        bw: Inverted binary image

    Returns:
        (horizontal mask, vertical mask)
    """
    scale = max(1, bw.shape[1] // 1000)
    length = max(10 * scale, 10)

    h_kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (length, 1))
    horizontal = cv2.dilate(cv2.erode(bw, h_kernel), h_kernel)

    v_kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (1, length))
    vertical = cv2.dilate(cv2.erode(bw, v_kernel), v_kernel)

    return horizontal, vertical


def project_lines(mask: np.ndarray, horizontal: bool,
                  coverage: float = LINE_COVERAGE) -> List[int]:
    """
    Positions whose foreground coverage exceeds ``coverage``.

    Args:
        mask: Binary line mask
        horizontal: True to scan rows (horizontal rules), False for columns
        coverage: Minimum fraction of foreground pixels

    Returns:
        Row (or column) indices that look like rules
    """
    foreground = mask > 0
    if horizontal:
        counts = foreground.sum(axis=1)
        limit = mask.shape[1] * coverage
    else:
        counts = foreground.sum(axis=0)
        limit = mask.shape[0] * coverage
    return [int(i) for i in np.nonzero(counts > limit)[0]]


def close_grid(positions: Sequence[int], size: int) -> List[int]:
    """
    Dedupe rule positions and add synthetic edges so the grid is closed.

    Args:
        positions: Detected rule positions
        size: Image extent along the same axis

    Returns:
        Sorted positions starting near 0 and ending near ``size - 1``
    """
    lines = dedupe_positions(positions, LINE_DEDUPE_TOL)
    if not lines or lines[0] > BORDER_TOL:
        lines.insert(0, 0)
    if lines[-1] < size - BORDER_TOL:
        lines.append(size - 1)
    return lines


def remove_rules(bin_inv: np.ndarray) -> np.ndarray:
    """
    Subtract horizontal and vertical rules from an inverted binary image.

    Rules are found with morphological opening using kernels proportional to
    the image size.
    """
    h, w = bin_inv.shape[:2]

    h_kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (max(w // 30, 35), 1))
    h_lines = cv2.morphologyEx(bin_inv, cv2.MORPH_OPEN, h_kernel)

    v_kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (1, max(h // 24, 30)))
    v_lines = cv2.morphologyEx(bin_inv, cv2.MORPH_OPEN, v_kernel)

    rules = cv2.bitwise_or(h_lines, v_lines)
    return cv2.subtract(bin_inv, rules)


def clean_for_ocr(gray: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Prepare a page for word OCR: binarize, strip rules, reconnect strokes and
    invert to dark text on a light background.

    Returns:
        (inverted binary image, cleaned OCR input)
    """
    bin_inv = binarize_for_ocr(gray)
    no_lines = remove_rules(bin_inv)
    kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (1, 1))
    no_lines = cv2.dilate(no_lines, kernel)
    return bin_inv, cv2.bitwise_not(no_lines)


def prepare_cell(roi: np.ndarray) -> np.ndarray:
    """
    Upscale a cell crop x2 and binarize it for OCR, inverting dark backgrounds.
    """
    h, w = roi.shape[:2]
    up = cv2.resize(roi, (w * 2, h * 2), interpolation=cv2.INTER_CUBIC)
    binary = cv2.adaptiveThreshold(
        up, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C, cv2.THRESH_BINARY, 35, 15
    )
    if cv2.mean(binary)[0] < 128:
        binary = cv2.bitwise_not(binary)
    return binary


def draw_grid_overlay(gray: np.ndarray, rows_y: Sequence[int],
                      cols_x: Sequence[int]) -> np.ndarray:
    """Colour copy of the page with row rules in green and column rules in blue."""
    overlay = cv2.cvtColor(gray, cv2.COLOR_GRAY2BGR)
    height, width = gray.shape[:2]
    for y in rows_y:
        cv2.line(overlay, (0, int(y)), (width - 1, int(y)), (0, 255, 0), 1, cv2.LINE_AA)
    for x in cols_x:
        cv2.line(overlay, (int(x), 0), (int(x), height - 1), (255, 0, 0), 1, cv2.LINE_AA)
    return overlay


def save_debug_image(image: np.ndarray, directory: str, filename: str) -> str:
    """
    Write a debug image, creating the directory.

    Failures are logged and never raised.

    Returns:
        The path that was (or would have been) written
    """
    path = os.path.join(directory, filename)
    try:
        path = os.path.join(ensure_dir(directory), filename)
        written = cv2.imwrite(path, image)
    except (OSError, cv2.error) as e:
        logger.warning(f"Failed to write debug image {path}: {e}")
        return path
    if written:
        logger.info(f"Wrote debug image: {path}")
    else:
        logger.warning(f"Failed to write debug image: {path}")
    return path
