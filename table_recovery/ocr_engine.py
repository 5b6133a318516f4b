"""
OCR engines behind a small capability interface.

Two backends are provided: the Tesseract command-line tool (run as a
subprocess, TSV output for word boxes) and PaddleOCR (in-process). Neither
raises when its backend is missing; they log and return empty results.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple
import importlib.util
import os
import shutil
import subprocess
import tempfile

import cv2
import numpy as np

from .config import Config
from .utils import setup_logger


logger = setup_logger(__name__)


@dataclass(frozen=True)
class OcrWord:
    """A recognized word in image pixel coordinates."""
    text: str
    left: int
    top: int
    width: int
    height: int
    conf: float = 0.0
    block: int = 0
    par: int = 0
    line: int = 0
    word: int = 0

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def locator(self) -> Tuple[int, int, int]:
        """(block, paragraph, line) key used to regroup words into lines."""
        return (self.block, self.par, self.line)


class OcrEngine(ABC):
    """Text recognition capability consumed by the lattice and ocr-stream strategies."""

    name = "base"

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the backend can run in this environment."""

    @abstractmethod
    def image_to_text(self, image: np.ndarray) -> str:
        """Recognize plain text in an image; empty string on failure."""

    @abstractmethod
    def image_to_words(self, image: np.ndarray) -> List[OcrWord]:
        """Recognize words with boxes and line locators; empty list on failure."""


class NullOcrEngine(OcrEngine):
    """Stand-in used when no OCR backend is installed."""

    name = "none"

    def __init__(self):
        self._warned = False

    def is_available(self) -> bool:
        return False

    def _warn(self):
        if not self._warned:
            logger.warning("No OCR backend available; OCR results will be empty")
            self._warned = True

    def image_to_text(self, image: np.ndarray) -> str:
        self._warn()
        return ""

    def image_to_words(self, image: np.ndarray) -> List[OcrWord]:
        self._warn()
        return []


class TesseractCliEngine(OcrEngine):
    """Runs the ``tesseract`` executable on a temporary PNG."""

    name = "tesseract"

    # Common install locations for environments where tesseract is not on PATH
    CANDIDATES = (
        "tesseract",
        "/opt/homebrew/bin/tesseract",
        "/usr/local/bin/tesseract",
        "/usr/bin/tesseract",
        r"C:\Program Files\Tesseract-OCR\tesseract.exe",
    )

    def __init__(self, lang: str = "eng", psm: int = 6, oem: int = 1,
                 timeout: float = 20.0, binary: Optional[str] = None):
        self.lang = lang
        self.psm = psm
        self.oem = oem
        self.timeout = timeout
        self.binary = binary or self.find_binary()
        if self.binary is None:
            logger.warning("tesseract executable not found")

    @classmethod
    def find_binary(cls) -> Optional[str]:
        for candidate in cls.CANDIDATES:
            resolved = shutil.which(candidate)
            if resolved:
                return resolved
            if os.path.isfile(candidate):
                return candidate
        return None

    def is_available(self) -> bool:
        return self.binary is not None

    def _run(self, image: np.ndarray, extra_args: Sequence[str]) -> str:
        """Write the image to a temporary PNG, run tesseract, return stdout."""
        if self.binary is None:
            return ""

        fd, png_path = tempfile.mkstemp(prefix="table_recovery_", suffix=".png")
        os.close(fd)
        try:
            if not cv2.imwrite(png_path, image):
                logger.error(f"Failed to write OCR input image: {png_path}")
                return ""
            cmd = [
                self.binary, png_path, "stdout",
                "-l", self.lang,
                "--oem", str(self.oem),
                "--psm", str(self.psm),
                *extra_args,
            ]
            result = subprocess.run(
                cmd,
                capture_output=True,
                timeout=self.timeout,
                check=False,
            )
            if result.returncode != 0:
                logger.warning(
                    f"tesseract exited with {result.returncode}: "
                    f"{result.stderr.decode('utf-8', errors='replace').strip()}"
                )
            return result.stdout.decode("utf-8", errors="replace")
        except subprocess.TimeoutExpired:
            logger.warning(f"tesseract timed out after {self.timeout}s")
            return ""
        except OSError as e:
            logger.error(f"tesseract failed to run: {e}")
            return ""
        finally:
            try:
                os.remove(png_path)
            except OSError:
                logger.debug(f"Could not remove temporary file {png_path}")

    def image_to_text(self, image: np.ndarray) -> str:
        return self._run(image, []).strip()

    def image_to_words(self, image: np.ndarray) -> List[OcrWord]:
        tsv = self._run(image, [
            "-c", "preserve_interword_spaces=1",
            "-c", "user_defined_dpi=300",
            "tsv",
        ])
        words = parse_tsv(tsv)
        logger.debug(f"tesseract recognized {len(words)} words")
        return words


def parse_tsv(tsv: str) -> List[OcrWord]:
    """
    Parse Tesseract TSV output into word records.

    Only level-5 (word) rows with non-blank text are kept; malformed rows
    are skipped.
    """
    words: List[OcrWord] = []
    for row in tsv.splitlines()[1:]:
        cols = row.split("\t")
        if len(cols) < 12:
            continue
        if _parse_int(cols[0]) != 5:
            continue
        text = cols[11].strip()
        if not text:
            continue
        try:
            conf = float(cols[10])
        except ValueError:
            conf = 0.0
        words.append(OcrWord(
            text=text,
            left=_parse_int(cols[6]),
            top=_parse_int(cols[7]),
            width=_parse_int(cols[8]),
            height=_parse_int(cols[9]),
            conf=conf,
            block=_parse_int(cols[2]),
            par=_parse_int(cols[3]),
            line=_parse_int(cols[4]),
            word=_parse_int(cols[5]),
        ))
    return words


def _parse_int(value: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        return 0


# Tesseract language codes to PaddleOCR model names
PADDLE_LANGS = {
    "eng": "en",
    "fra": "fr",
    "deu": "german",
    "spa": "es",
    "por": "pt",
    "ita": "it",
    "chi_sim": "ch",
}


class PaddleOcrEngine(OcrEngine):
    """Wrapper for PaddleOCR text recognition."""

    name = "paddle"

    def __init__(self, lang: str = "eng"):
        """
        Initialize OCR engine.

        Args:
            lang: Tesseract-style language code, mapped to a PaddleOCR model
        """
        self.lang = PADDLE_LANGS.get(lang, lang)
        self.ocr = None
        self._failed = False

    @staticmethod
    def installed() -> bool:
        return importlib.util.find_spec("paddleocr") is not None

    def is_available(self) -> bool:
        return not self._failed and self.installed()

    def _ensure_ocr(self) -> bool:
        """Initialize the PaddleOCR instance on first use."""
        if self.ocr is not None:
            return True
        if self._failed:
            return False
        try:
            from paddleocr import PaddleOCR

            logger.info("Initializing PaddleOCR engine...")
            self.ocr = PaddleOCR(lang=self.lang)
            logger.info("PaddleOCR engine initialized successfully")
            return True

        except ImportError:
            logger.warning("PaddleOCR is not installed. Install with: pip install paddleocr")
        except Exception as e:
            logger.error(f"Failed to initialize PaddleOCR: {e}")
        self._failed = True
        return False

    def recognize_regions(self, image: np.ndarray) -> List[Dict[str, Any]]:
        """
        Perform OCR on image.

        Returns:
            List of detected text regions:
            ``{'bbox': (x1, y1, x2, y2), 'text': str, 'confidence': float}``
        """
        if not self._ensure_ocr():
            return []

        try:
            if image.ndim == 2:
                image = cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
            result = self.ocr.ocr(image)

            if not result:
                return []

            regions = []
            for page in result:
                if not page:
                    continue
                for line in page:
                    if not isinstance(line, (list, tuple)) or len(line) < 2:
                        continue
                    box, text_info = line[0], line[1]
                    if not isinstance(text_info, (list, tuple)) or not text_info:
                        continue
                    xs = [p[0] for p in box]
                    ys = [p[1] for p in box]
                    regions.append({
                        'bbox': (min(xs), min(ys), max(xs), max(ys)),
                        'text': str(text_info[0]),
                        'confidence': float(text_info[1]) if len(text_info) > 1 else 0.0,
                    })

            logger.debug(f"Detected {len(regions)} text regions")
            return regions

        except Exception as e:
            logger.error(f"OCR failed: {e}")
            return []

    def image_to_text(self, image: np.ndarray) -> str:
        regions = self.recognize_regions(image)
        regions.sort(key=lambda r: (r['bbox'][1], r['bbox'][0]))
        return " ".join(r['text'].strip() for r in regions if r['text'].strip())

    def image_to_words(self, image: np.ndarray) -> List[OcrWord]:
        return regions_to_words(self.recognize_regions(image))


def regions_to_words(regions: List[Dict[str, Any]]) -> List[OcrWord]:
    """
    Split line-level OCR regions into word boxes with line locators.

    Regions are grouped into visual lines when their vertical centres are
    within half a median region height; each region's width is shared among
    its words in proportion to their character counts.
    """
    if not regions:
        return []

    heights = sorted(max(1.0, r['bbox'][3] - r['bbox'][1]) for r in regions)
    tolerance = heights[len(heights) // 2] / 2.0

    ordered = sorted(regions, key=lambda r: ((r['bbox'][1] + r['bbox'][3]) / 2.0, r['bbox'][0]))
    line_no = 0
    line_center = None
    words: List[OcrWord] = []
    for region in ordered:
        x1, y1, x2, y2 = region['bbox']
        center = (y1 + y2) / 2.0
        if line_center is None or abs(center - line_center) > tolerance:
            line_no += 1
            line_center = center

        tokens = region['text'].split()
        total_chars = sum(len(t) for t in tokens) + max(0, len(tokens) - 1)
        if not tokens or total_chars == 0:
            continue
        char_w = (x2 - x1) / total_chars
        offset = 0
        for idx, token in enumerate(tokens, 1):
            left = x1 + offset * char_w
            width = len(token) * char_w
            words.append(OcrWord(
                text=token,
                left=int(round(left)),
                top=int(round(y1)),
                width=max(1, int(round(width))),
                height=max(1, int(round(y2 - y1))),
                conf=region['confidence'] * 100.0,
                block=1,
                par=1,
                line=line_no,
                word=idx,
            ))
            offset += len(token) + 1
    return words


class FallbackOcrEngine(OcrEngine):
    """Tries engines in order and returns the first non-empty result."""

    name = "fallback"

    def __init__(self, engines: Sequence[OcrEngine]):
        self.engines = list(engines)

    def is_available(self) -> bool:
        return any(e.is_available() for e in self.engines)

    def image_to_text(self, image: np.ndarray) -> str:
        for engine in self.engines:
            text = engine.image_to_text(image)
            if text:
                return text
        return ""

    def image_to_words(self, image: np.ndarray) -> List[OcrWord]:
        for engine in self.engines:
            words = engine.image_to_words(image)
            if words:
                return words
        return []


def create_ocr_engine(config: Config) -> OcrEngine:
    """
    Select an OCR backend from ``config.ocr_mode``.

    ``cli`` forces Tesseract, ``paddle`` forces PaddleOCR, ``auto`` prefers
    PaddleOCR and falls back to Tesseract. A mode whose backend is missing
    degrades to an engine that returns empty results.
    """
    tesseract = TesseractCliEngine(
        lang=config.ocr_lang,
        psm=config.ocr_psm,
        oem=config.ocr_oem,
        timeout=config.ocr_timeout,
    ) if config.ocr_mode in ("cli", "auto") else None

    if config.ocr_mode == "cli":
        engines: List[OcrEngine] = [tesseract]
    elif config.ocr_mode == "paddle":
        engines = [PaddleOcrEngine(lang=config.ocr_lang)]
    else:
        engines = []
        if PaddleOcrEngine.installed():
            engines.append(PaddleOcrEngine(lang=config.ocr_lang))
        engines.append(tesseract)

    available = [e for e in engines if e.is_available()]
    if not available:
        logger.warning(f"No OCR backend available for mode '{config.ocr_mode}'")
        return NullOcrEngine()
    if len(available) == 1:
        logger.info(f"Using OCR engine: {available[0].name}")
        return available[0]
    logger.info(f"Using OCR engines: {', '.join(e.name for e in available)}")
    return FallbackOcrEngine(available)
