"""
Page selection: either every page of a document or an explicit set of pages.
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional, Union

from .utils import setup_logger


logger = setup_logger(__name__)


@dataclass(frozen=True)
class PageSelection:
    """
    Pages to process, as 1-based page numbers.

    ``pages`` is None for "all pages"; otherwise it holds the requested page
    numbers. Use ``PageSelection.all()``, ``PageSelection.of(...)`` or
    ``PageSelection.parse(...)`` rather than the constructor.
    """

    pages: Optional[FrozenSet[int]] = None

    def __post_init__(self):
        if self.pages is not None:
            bad = sorted(p for p in self.pages if p < 1)
            if bad:
                raise ValueError(f"Page numbers are 1-based, got {bad}")
            if not self.pages:
                raise ValueError("An explicit page selection cannot be empty")

    @classmethod
    def all(cls) -> "PageSelection":
        return cls(None)

    @classmethod
    def of(cls, *pages: int) -> "PageSelection":
        return cls(frozenset(int(p) for p in pages))

    @property
    def is_all(self) -> bool:
        return self.pages is None

    @classmethod
    def parse(cls, expr: Optional[str]) -> "PageSelection":
        """
        Parse a page expression such as ``"all"``, ``"1"``, ``"2-5"`` or ``"1,3-4"``.

        A blank expression selects page 1.

        Raises:
            ValueError: On malformed numbers or reversed ranges
        """
        if expr is None or not expr.strip():
            expr = "1"
        expr = expr.strip().lower()
        if expr == "all":
            return cls.all()

        pages = set()
        for part in expr.split(","):
            part = part.strip()
            if not part:
                continue
            if "-" in part:
                start_s, end_s = part.split("-", 1)
                try:
                    start, end = int(start_s), int(end_s)
                except ValueError:
                    raise ValueError(f"Invalid page range: {part!r}") from None
                if end < start:
                    raise ValueError(f"Page range is reversed: {part!r}")
                pages.update(range(start, end + 1))
            else:
                try:
                    pages.add(int(part))
                except ValueError:
                    raise ValueError(f"Invalid page number: {part!r}") from None

        if not pages:
            raise ValueError(f"No pages in expression: {expr!r}")
        return cls(frozenset(pages))

    @classmethod
    def coerce(cls, value: Union[None, int, str, Iterable[int], "PageSelection"]) -> "PageSelection":
        """
        Accept the shapes callers pass around: None (all pages), a single page
        number, a page expression string, an iterable of page numbers or an
        existing selection.
        """
        if value is None:
            return cls.all()
        if isinstance(value, PageSelection):
            return value
        if isinstance(value, bool):
            raise TypeError("Page selection cannot be a boolean")
        if isinstance(value, int):
            return cls.of(value)
        if isinstance(value, str):
            return cls.parse(value)
        return cls.of(*value)

    def resolve(self, page_count: int) -> List[int]:
        """
        Concrete, ascending page numbers for a document with ``page_count`` pages.

        Requested pages beyond the document are skipped with a warning.
        """
        if self.pages is None:
            return list(range(1, page_count + 1))

        selected = sorted(self.pages)
        missing = [p for p in selected if p > page_count]
        if missing:
            logger.warning(f"Skipping pages {missing}: document has {page_count} page(s)")
        return [p for p in selected if p <= page_count]

    def __str__(self) -> str:
        if self.pages is None:
            return "all"
        return ",".join(str(p) for p in sorted(self.pages))
