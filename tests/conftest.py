"""Shared fixtures: in-memory documents, scripted OCR engines and ruled page images."""

from typing import Dict, List, Optional

import cv2
import fitz
import numpy as np
import pytest

from table_recovery.config import Config
from table_recovery.ocr_engine import OcrEngine, OcrWord
from table_recovery.pdf_loader import Glyph


class FakeDocument:
    """Stand-in for PdfDocument built from glyph lists and page images."""

    def __init__(self, pages: List[Dict]):
        self.pages = pages
        self.render_calls = []

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def page_height(self, page_number: int) -> float:
        return float(self.pages[page_number - 1].get("height", 300.0))

    def glyphs(self, page_number: int) -> List[Glyph]:
        return list(self.pages[page_number - 1].get("glyphs", []))

    def render(self, page_index: int, dpi: float) -> np.ndarray:
        self.render_calls.append((page_index, dpi))
        page = self.pages[page_index]
        if page.get("render_error"):
            raise RuntimeError("render failed")
        return page["image"].copy()


class FakeOcrEngine(OcrEngine):
    """Returns scripted text and words and records how often it was called."""

    name = "fake"

    def __init__(self, text: str = "", words: Optional[List[OcrWord]] = None, fail: bool = False):
        self.text = text
        self.words = words or []
        self.fail = fail
        self.text_calls = 0
        self.word_calls = 0

    def is_available(self) -> bool:
        return True

    def image_to_text(self, image: np.ndarray) -> str:
        self.text_calls += 1
        if self.fail:
            raise RuntimeError("ocr crashed")
        return self.text

    def image_to_words(self, image: np.ndarray) -> List[OcrWord]:
        self.word_calls += 1
        return list(self.words)


def ruled_page(width: int = 400, height: int = 300,
               rows=(50, 150, 250), cols=(50, 200, 350)) -> np.ndarray:
    """White page with a 1 px ruled grid."""
    image = np.full((height, width), 255, dtype=np.uint8)
    for y in rows:
        cv2.line(image, (cols[0], y), (cols[-1], y), 0, 1)
    for x in cols:
        cv2.line(image, (x, rows[0]), (x, rows[-1]), 0, 1)
    return image


def word(text, left, top, width, height=12, line=1, block=1, par=1):
    return OcrWord(text=text, left=left, top=top, width=width, height=height,
                   conf=90.0, block=block, par=par, line=line)


def make_pdf(lines, path=None) -> bytes:
    """
    Build a one-page PDF with text placed at (x, baseline) positions.

    Args:
        lines: Iterable of (x, y, text) in top-left page coordinates
        path: Optional file to save the PDF to
    """
    doc = fitz.open()
    page = doc.new_page()
    for x, y, text in lines:
        page.insert_text((x, y), text, fontsize=11)
    data = doc.tobytes()
    doc.close()
    if path is not None:
        with open(path, "wb") as f:
            f.write(data)
    return data


@pytest.fixture
def config():
    return Config(render_dpi=72.0)


@pytest.fixture
def ruled_image():
    return ruled_page()


@pytest.fixture
def table_pdf_lines():
    return [
        (50, 100, "1001"), (200, 100, "2001"),
        (50, 120, "1002"), (200, 120, "2002"),
    ]
