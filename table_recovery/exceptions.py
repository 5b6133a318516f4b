"""
Exceptions raised by the table recovery engine.
"""

from typing import Optional


class TableRecoveryError(Exception):
    """Base class for table recovery failures."""


class DocumentError(TableRecoveryError):
    """The input document could not be opened or read."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class ScoreThresholdError(TableRecoveryError):
    """The best hybrid candidate scored below the configured minimum."""

    def __init__(self, page: int, score: float, min_score: float):
        super().__init__(
            f"Best table score on page {page} ({score:.3f}) is lower than "
            f"the minimum allowed ({min_score:.3f})"
        )
        self.page = page
        self.score = score
        self.min_score = min_score
