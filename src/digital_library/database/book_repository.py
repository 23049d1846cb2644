"""
Book repository for the Digital Library lending engine.

Supports the catalog queries used by search and the locked read/update
pair used by the lending workflows. Updates go through the ``books.version``
optimistic lock; a lost race surfaces as ``ConcurrentModification`` when
the unit of work flushes or commits.

Substring search folds case in Python; SQLite's ``lower()`` only handles ASCII.
"""

from sqlalchemy import select

from ..errors import BookNotFound
from ..models import Book as BookModel
from ..models import BookFormat, BookStatus
from .repository import BaseRepository
from .schema import Book as BookDB


class BookRepository(BaseRepository[BookDB, BookModel]):
    """Catalog and availability access for books."""

    id_prefix = "book"

    @property
    def model_class(self):
        return BookDB

    @property
    def response_schema(self):
        return BookModel

    def find_by_id(self, id: str, for_update: bool = False) -> BookModel | None:
        """
        Get a book by ID.

        Args:
            id: Book ID
            for_update: Lock the row for the rest of the transaction (a no-op on SQLite)
        """
        db_obj = self._get_row(id, for_update=for_update)
        if db_obj is None:
            return None
        return self._to_response_model(db_obj)

    def update(self, book: BookModel) -> BookModel:
        """
        Persist a derived book.

        Raises:
            BookNotFound: If no row has ``book.id``
        """
        db_obj = self._get_row(book.id, for_update=True)
        if db_obj is None:
            raise BookNotFound(book.id)
        return self._apply(db_obj, book)

    def find_all(self) -> list[BookModel]:
        return self._list(select(BookDB).order_by(BookDB.title))

    def search_by_title(self, fragment: str) -> list[BookModel]:
        """Books whose title contains ``fragment``, ignoring case."""
        needle = fragment.casefold()
        return [book for book in self.find_all() if needle in book.title.casefold()]

    def search_by_author(self, fragment: str) -> list[BookModel]:
        """Books whose author contains ``fragment``, ignoring case."""
        needle = fragment.casefold()
        return [book for book in self.find_all() if needle in book.author.casefold()]

    def find_by_format(self, format: BookFormat) -> list[BookModel]:
        return self._list(select(BookDB).where(BookDB.format == format).order_by(BookDB.title))

    def find_available_books(self) -> list[BookModel]:
        query = select(BookDB).where(
            BookDB.status == BookStatus.AVAILABLE,
            BookDB.available_copies > 0,
        )
        return self._list(query.order_by(BookDB.title))
