"""
Catalog search.

Title and author are matched as case-insensitive substrings. When both are
given, a book must match both. Format and ``available_only`` narrow the
result afterwards. Results are ordered by title the way a reader expects in
a Spanish/English catalog: accents and case do not affect the order.
"""

import logging
import unicodedata
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict, Field

from ..models import Book, BookFormat
from ..observability import trace_workflow
from .ports import UnitOfWorkPort

logger = logging.getLogger(__name__)


class SearchCriteria(BaseModel):
    """Filters for a catalog search. All of them are optional."""

    title: str | None = Field(None, description="Substring of the title", max_length=200)
    author: str | None = Field(None, description="Substring of the author name", max_length=200)
    format: BookFormat | None = Field(None, description="Restrict to physical or digital")
    available_only: bool = Field(False, description="Only books that can be borrowed now")

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @property
    def has_filters(self) -> bool:
        return bool(self.title or self.author or self.format)


def title_sort_key(book: Book) -> tuple[str, str]:
    """Accent-insensitive, case-folded title with the raw title as tie-break."""
    decomposed = unicodedata.normalize("NFKD", book.title)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold(), book.title


class CatalogSearch:
    """Runs catalog searches against a fresh unit of work per query."""

    def __init__(self, uow_factory: Callable[[], UnitOfWorkPort]):
        self.uow_factory = uow_factory

    @trace_workflow("search")
    def search(self, criteria: SearchCriteria) -> list[Book]:
        with self.uow_factory() as uow:
            books = self._candidates(uow, criteria)

        if criteria.format is not None:
            books = [book for book in books if book.format == criteria.format]
        if criteria.available_only:
            books = [book for book in books if book.is_available()]

        logger.debug("Search %s matched %d book(s)", criteria.model_dump(), len(books))
        return sorted(books, key=title_sort_key)

    def _candidates(self, uow: UnitOfWorkPort, criteria: SearchCriteria) -> list[Book]:
        if not criteria.has_filters:
            if criteria.available_only:
                return uow.books.find_available_books()
            return uow.books.find_all()

        if criteria.title and criteria.author:
            by_author = {book.id for book in uow.books.search_by_author(criteria.author)}
            by_title = uow.books.search_by_title(criteria.title)
            return [book for book in by_title if book.id in by_author]
        if criteria.title:
            return uow.books.search_by_title(criteria.title)
        if criteria.author:
            return uow.books.search_by_author(criteria.author)
        return uow.books.find_by_format(criteria.format)
