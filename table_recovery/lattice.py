"""
Lattice strategy: tables from ruling lines detected on the rendered page.
"""

from typing import List, Optional, Sequence, Tuple
import os

import numpy as np

from .base import BaseStrategy
from .config import Config
from .ocr_engine import OcrEngine, NullOcrEngine
from .pdf_loader import Glyph
from .preprocessing import (
    binarize_for_lines,
    close_grid,
    draw_grid_overlay,
    extract_line_masks,
    prepare_cell,
    project_lines,
    save_debug_image,
)
from .table import Table
from .utils import setup_logger, locate, crop_image, ensure_dir


logger = setup_logger(__name__)


def detect_grid(gray: np.ndarray) -> Tuple[List[int], List[int]]:
    """
    Find row and column rule positions on a grayscale page.

    Args:
        gray: 8-bit grayscale page image

    Returns:
        (row y positions, column x positions), closed at the image edges
    """
    bw = binarize_for_lines(gray)
    horizontal, vertical = extract_line_masks(bw)
    height, width = gray.shape[:2]
    rows_y = close_grid(project_lines(horizontal, horizontal=True), height)
    cols_x = close_grid(project_lines(vertical, horizontal=False), width)
    logger.debug(f"Detected {len(rows_y)} row rules and {len(cols_x)} column rules")
    return rows_y, cols_x


def glyph_to_pixels(glyph: Glyph, page_height: float, scale: float) -> Tuple[float, float]:
    """Centre of a glyph box in image pixels (top-left origin)."""
    cx = glyph.x + glyph.width / 2.0
    cy = glyph.y + glyph.height / 2.0
    return cx * scale, (page_height - cy) * scale


def fill_from_glyphs(grid: List[List[str]], glyphs: Sequence[Glyph],
                     rows_y: Sequence[int], cols_x: Sequence[int],
                     page_height: float, scale: float) -> None:
    """Drop each glyph into the cell under its centre; glyphs off the grid are ignored."""
    for g in glyphs:
        px, py = glyph_to_pixels(g, page_height, scale)
        r = locate(rows_y, py, clamp=False)
        c = locate(cols_x, px, clamp=False)
        if r < 0 or c < 0:
            continue
        prev = grid[r][c]
        grid[r][c] = g.text if not prev else prev + " " + g.text


def fill_ratio(grid: Sequence[Sequence[str]]) -> float:
    total = sum(len(row) for row in grid)
    if total == 0:
        return 0.0
    return sum(1 for row in grid for v in row if v and v.strip()) / total


class LatticeStrategy(BaseStrategy):
    """
    Reconstructs a grid from horizontal and vertical rules.

    Cell text comes from the PDF text layer; when the grid is mostly empty
    (scanned pages) every cell is OCR'd instead.
    """

    name = "lattice"

    def __init__(self, config: Optional[Config] = None, ocr_engine: Optional[OcrEngine] = None):
        super().__init__(config)
        self.ocr_engine = ocr_engine or NullOcrEngine()

    def extract(self, document, pages=None) -> List[Table]:
        # Grids without cells are not tables
        return [t for t in super().extract(document, pages) if not t.is_empty()]

    def extract_page(self, document, page_number: int) -> Optional[Table]:
        dpi = self.config.render_dpi
        try:
            gray = document.render(page_number - 1, dpi)
        except Exception as e:
            logger.error(f"Failed to render page {page_number}: {e}")
            return None

        rows_y, cols_x = detect_grid(gray)
        nrows, ncols = len(rows_y) - 1, len(cols_x) - 1
        if nrows <= 0 or ncols <= 0:
            return Table([])

        grid = [[""] * ncols for _ in range(nrows)]
        try:
            glyphs = document.glyphs(page_number)
        except Exception as e:
            logger.error(f"Failed to read text layer of page {page_number}: {e}")
            glyphs = []
        fill_from_glyphs(grid, glyphs, rows_y, cols_x,
                         document.page_height(page_number), dpi / 72.0)

        ratio = fill_ratio(grid)
        if ratio < self.config.ocr_fill_threshold:
            logger.info(f"[lattice] page {page_number}: fill {ratio:.2f} below "
                        f"{self.config.ocr_fill_threshold}, running cell OCR")
            self._ocr_cells(gray, grid, rows_y, cols_x, page_number)

        if self.config.debug:
            save_debug_image(
                draw_grid_overlay(gray, rows_y, cols_x),
                self.config.debug_dir,
                f"debug_lattice_grid_page{page_number}.png",
            )

        logger.info(f"[lattice] page {page_number}: {nrows}x{ncols} grid")
        return Table(grid, cols_x, rows_y)

    def _ocr_cells(self, gray: np.ndarray, grid: List[List[str]],
                   rows_y: Sequence[int], cols_x: Sequence[int], page_number: int) -> None:
        """Replace the text of every large enough cell with its OCR result."""
        cells_dir = None
        if self.config.debug and self.config.keep_empty_cells:
            try:
                cells_dir = ensure_dir(os.path.join(self.config.debug_dir, "cells", f"page{page_number}"))
            except OSError as e:
                logger.warning(f"Cell debug output disabled for page {page_number}: {e}")

        for r in range(len(rows_y) - 1):
            for c in range(len(cols_x) - 1):
                x, y = cols_x[c], rows_y[r]
                w, h = cols_x[c + 1] - x, rows_y[r + 1] - y
                if w < self.config.min_cell_width or h < self.config.min_cell_height:
                    continue
                try:
                    roi = crop_image(gray, (x, y, x + w, y + h))
                    binary = prepare_cell(roi)
                    if cells_dir:
                        save_debug_image(roi, cells_dir, f"r{r:02d}_c{c:02d}_raw.png")
                        save_debug_image(binary, cells_dir, f"r{r:02d}_c{c:02d}_bin.png")
                    text = self.ocr_engine.image_to_text(binary)
                except Exception as e:
                    logger.error(f"OCR failed for cell ({r}, {c}) on page {page_number}: {e}")
                    text = ""
                grid[r][c] = text

                if cells_dir:
                    try:
                        with open(os.path.join(cells_dir, f"r{r:02d}_c{c:02d}.txt"), "w", encoding="utf-8") as f:
                            f.write(text)
                    except OSError as e:
                        logger.warning(f"Could not write OCR text for cell ({r}, {c}): {e}")
