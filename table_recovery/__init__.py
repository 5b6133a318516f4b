"""
Table structure recovery for PDF documents.

Recovers rows, columns and cell text from digital and scanned PDFs using
text-layer layout (stream), ruling lines (lattice), OCR word boxes
(ocr-stream) or the best of all three (hybrid).
"""

from .config import Config, DEFAULT_CONFIG
from .exceptions import TableRecoveryError, DocumentError, ScoreThresholdError
from .pages import PageSelection
from .pipeline import TableExtractionPipeline, build_strategy
from .table import Table

__version__ = "1.0.0"
__all__ = [
    "Config",
    "DEFAULT_CONFIG",
    "DocumentError",
    "PageSelection",
    "ScoreThresholdError",
    "Table",
    "TableExtractionPipeline",
    "TableRecoveryError",
    "build_strategy",
]
