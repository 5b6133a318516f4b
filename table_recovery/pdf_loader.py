"""
PDF access: text-layer glyphs and page rasterization via PyMuPDF.
"""

from dataclasses import dataclass
from typing import List, Optional, Union
from pathlib import Path
import io

import fitz
import numpy as np
from PIL import Image

from .exceptions import DocumentError
from .utils import setup_logger, image_to_numpy


logger = setup_logger(__name__)


@dataclass(frozen=True)
class Glyph:
    """
    A single character from the PDF text layer.

    Coordinates are PDF points with the origin at the bottom-left of the
    page; ``y`` is the bottom edge of the glyph box.
    """
    text: str
    x: float
    y: float
    width: float
    height: float = 0.0


class PdfDocument:
    """Read-only view of a PDF used by every extraction strategy."""

    def __init__(self, source: Union[str, Path, bytes]):
        """
        Open a PDF from a path or from raw bytes.

        Args:
            source: Path to a PDF file, or the PDF content

        Raises:
            FileNotFoundError: If a path is given and does not exist
            DocumentError: If the document cannot be opened
        """
        self.path: Optional[str] = None
        try:
            if isinstance(source, (bytes, bytearray)):
                self._doc = fitz.open(stream=bytes(source), filetype="pdf")
            else:
                path = Path(source)
                if not path.exists():
                    raise FileNotFoundError(f"File not found: {path}")
                self.path = str(path)
                self._doc = fitz.open(self.path)
        except FileNotFoundError:
            raise
        except Exception as e:
            logger.error(f"Failed to open PDF: {e}")
            raise DocumentError(f"Cannot open PDF: {e}", path=self.path) from e

        if not self._doc.is_pdf:
            self._doc.close()
            raise DocumentError("Input is not a PDF document", path=self.path)
        if self._doc.needs_pass:
            self._doc.close()
            raise DocumentError("PDF is encrypted", path=self.path)

        logger.debug(f"Opened PDF with {self._doc.page_count} page(s)")

    @property
    def page_count(self) -> int:
        return self._doc.page_count

    def page_height(self, page_number: int) -> float:
        """Height in points of a 1-based page."""
        return float(self._load_page(page_number - 1).rect.height)

    def glyphs(self, page_number: int) -> List[Glyph]:
        """
        Collect the text-layer glyphs of a 1-based page in reading order.

        Whitespace glyphs are skipped; word breaks are recovered from gaps.

        Args:
            page_number: 1-based page number

        Returns:
            List of glyphs (empty for pages without a text layer)
        """
        page = self._load_page(page_number - 1)
        page_h = float(page.rect.height)
        raw = page.get_text("rawdict")

        glyphs: List[Glyph] = []
        for block in raw.get("blocks", []):
            for line in block.get("lines", []):
                for span in line.get("spans", []):
                    for char in span.get("chars", []):
                        text = char.get("c", "")
                        if not text or not text.strip():
                            continue
                        x0, y0, x1, y1 = char["bbox"]
                        glyphs.append(Glyph(
                            text=text,
                            x=float(x0),
                            y=page_h - float(y1),
                            width=float(x1 - x0),
                            height=float(y1 - y0),
                        ))

        logger.debug(f"Collected {len(glyphs)} glyphs from page {page_number}")
        return glyphs

    def render(self, page_index: int, dpi: float) -> np.ndarray:
        """
        Rasterize a page to an 8-bit grayscale array.

        Args:
            page_index: 0-based page index
            dpi: Render resolution

        Returns:
            Array of shape (height, width)
        """
        page = self._load_page(page_index)
        zoom = dpi / 72.0
        pix = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=False)
        image = Image.open(io.BytesIO(pix.tobytes(output="png")))
        logger.debug(f"Rendered page {page_index + 1} at {dpi} DPI: {pix.width}x{pix.height}")
        return image_to_numpy(image)

    def _load_page(self, page_index: int) -> "fitz.Page":
        if not 0 <= page_index < self._doc.page_count:
            raise IndexError(f"Page index {page_index} out of range (0..{self._doc.page_count - 1})")
        return self._doc.load_page(page_index)

    def close(self):
        if not self._doc.is_closed:
            self._doc.close()

    def __enter__(self) -> "PdfDocument":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
