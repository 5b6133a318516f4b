"""
Common page loop shared by the extraction strategies.
"""

from typing import Iterable, List, Optional, Union

from .config import Config, DEFAULT_CONFIG
from .pages import PageSelection
from .table import Table
from .utils import setup_logger


logger = setup_logger(__name__)

PagesArg = Union[None, int, str, Iterable[int], PageSelection]


class BaseStrategy:
    """
    A table extraction strategy.

    Subclasses implement ``extract_page``; ``extract`` resolves the page
    selection against the document and collects the per-page tables.
    """

    name = "base"

    def __init__(self, config: Optional[Config] = None):
        self.config = config or DEFAULT_CONFIG

    def extract(self, document, pages: PagesArg = None) -> List[Table]:
        """
        Extract tables from the selected pages of a document.

        Args:
            document: Opened document (see ``PdfDocument``)
            pages: Page selection; defaults to ``config.pages``

        Returns:
            Tables in page order
        """
        selection = PageSelection.coerce(pages if pages is not None else self.config.pages)
        page_numbers = selection.resolve(document.page_count)

        tables: List[Table] = []
        for page_number in page_numbers:
            logger.debug(f"[{self.name}] processing page {page_number}")
            table = self.extract_page(document, page_number)
            if table is not None:
                tables.append(table)

        if not tables:
            logger.info(f"[{self.name}] No tables detected on pages {selection}")
        return tables

    def extract_page(self, document, page_number: int) -> Optional[Table]:
        """Recover the table of one 1-based page, or None if there is none."""
        raise NotImplementedError
