"""
Configuration settings for the table recovery engine.
"""

from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

from .pages import PageSelection


MODES = ("stream", "lattice", "ocrstream", "hybrid")
OCR_MODES = ("auto", "cli", "paddle")


@dataclass(frozen=True)
class Config:
    """Central configuration, fixed for the lifetime of an extraction."""

    # Strategy selection
    mode: str = "hybrid"
    pages: PageSelection = field(default_factory=PageSelection.all)

    # Rasterization; ocr-stream renders finer for word recognition
    render_dpi: float = 300.0
    ocr_dpi: float = 450.0

    # Stream settings
    strip_text: bool = True

    # Lattice settings
    min_cell_width: int = 20
    min_cell_height: int = 10
    ocr_fill_threshold: float = 0.25

    # Debug artifacts
    debug: bool = False
    debug_dir: str = "debug"
    keep_empty_cells: bool = False

    # Hybrid selection
    min_score: float = 0.0

    # OCR stream settings
    required_header_tokens: Tuple[str, ...] = ()

    # OCR backend
    ocr_mode: str = "auto"
    ocr_lang: str = "eng"
    ocr_psm: int = 6
    ocr_oem: int = 1
    ocr_timeout: float = 20.0

    # Output settings
    csv_separator: str = ","
    output_dir: Optional[str] = None

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.mode == "ocr-stream":
            object.__setattr__(self, "mode", "ocrstream")
        if self.mode not in MODES:
            raise ValueError(f"mode must be one of {MODES}, got {self.mode!r}")
        if self.ocr_mode not in OCR_MODES:
            raise ValueError(f"ocr_mode must be one of {OCR_MODES}, got {self.ocr_mode!r}")
        if self.render_dpi < 72:
            raise ValueError("render_dpi must be at least 72")
        if self.ocr_dpi < 72:
            raise ValueError("ocr_dpi must be at least 72")
        if not 0 <= self.min_score <= 1:
            raise ValueError("min_score must be between 0 and 1")
        if not 0 <= self.ocr_fill_threshold <= 1:
            raise ValueError("ocr_fill_threshold must be between 0 and 1")
        if len(self.csv_separator) != 1:
            raise ValueError("csv_separator must be a single character")
        if self.ocr_timeout <= 0:
            raise ValueError("ocr_timeout must be positive")

        # normalize user-supplied shapes without breaking immutability
        object.__setattr__(self, "pages", PageSelection.coerce(self.pages))
        object.__setattr__(
            self,
            "required_header_tokens",
            tuple(t.strip().lower() for t in self.required_header_tokens if t and t.strip()),
        )

    def replace(self, **changes) -> "Config":
        """Return a copy with the given fields changed."""
        return replace(self, **changes)


# Default configuration instance
DEFAULT_CONFIG = Config()
