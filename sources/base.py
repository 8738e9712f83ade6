"""
Review source interface. The acquisition engine only talks to this.
"""

from abc import ABC, abstractmethod

from models import PageResult


class ReviewSource(ABC):
    """
    A review source serves one page of reviews per call.

    Contract:
    - fetch_page() with cursor "*" returns the first page.
    - Identical (source_id, cursor) inputs give the same page, modulo
      source-side staleness.
    - Transport, HTTP and decoding failures raise SourceError.
      A page the source itself flags as unsuccessful comes back as
      PageResult(success=False).
    """

    @abstractmethod
    def fetch_page(self, source_id: str, cursor: str, page_size: int) -> PageResult:
        ...

    @abstractmethod
    def name(self) -> str:
        """Source name for logging."""
        ...


class SourceError(Exception):
    """Raised when a page fetch fails before the source could answer."""
    pass
