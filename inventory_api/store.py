"""
In-memory inventory store for the Book Inventory API.
"""

import threading
from typing import Any, Dict, Iterable, List, Mapping, Optional

import structlog

from inventory_api.exceptions import BookNotFoundError, DuplicateBookError, OutOfStockError
from inventory_api.models import Book

logger = structlog.get_logger(__name__)

UPDATABLE_FIELDS = frozenset({"title", "author", "quantity"})

SEED_BOOKS = (
    Book(id="1", title="Book One", author="Author One", quantity=1),
    Book(id="2", title="Book Two", author="Author Two", quantity=2),
    Book(id="3", title="Book Three", author="Author Three", quantity=3),
)


class InventoryStore:
    """
    Owns every book record and serializes access to them.

    Records are kept in an insertion-ordered dict keyed by book id. Every
    operation runs under a single store-wide lock, so reads never see a
    record mid-update and checkout's check-then-decrement is atomic.
    Callers only ever receive copies of stored records.
    """

    def __init__(self, books: Optional[Iterable[Book]] = None):
        self._lock = threading.Lock()
        self._books: Dict[str, Book] = {}
        for book in books or ():
            if book.id in self._books:
                raise DuplicateBookError(book.id)
            self._books[book.id] = book.model_copy()

    @classmethod
    def with_seed_data(cls) -> "InventoryStore":
        """Create a store pre-populated with the default sample books."""
        return cls(SEED_BOOKS)

    def count(self) -> int:
        """Return the number of stored books."""
        with self._lock:
            return len(self._books)

    def list_books(self) -> List[Book]:
        """Return all books in insertion order."""
        with self._lock:
            return [book.model_copy() for book in self._books.values()]

    def get_book(self, book_id: str) -> Book:
        """
        Get a single book by ID.

        Raises:
            BookNotFoundError: If the book does not exist
        """
        with self._lock:
            return self._require(book_id).model_copy()

    def create_book(self, book: Book) -> Book:
        """
        Insert a new book.

        Raises:
            DuplicateBookError: If a book with the same id is already stored
        """
        with self._lock:
            if book.id in self._books:
                raise DuplicateBookError(book.id)
            stored = book.model_copy()
            self._books[book.id] = stored
            logger.debug("Book created", book_id=book.id, quantity=book.quantity)
            return stored.model_copy()

    def replace_book(self, book_id: str, title: str, author: Optional[str], quantity: int) -> Book:
        """Replace every mutable field of an existing book."""
        with self._lock:
            self._require(book_id)
            updated = Book(id=book_id, title=title, author=author, quantity=quantity)
            self._books[book_id] = updated
            logger.debug("Book replaced", book_id=book_id)
            return updated.model_copy()

    def update_book(self, book_id: str, changes: Mapping[str, Any]) -> Book:
        """
        Apply a partial update.

        Args:
            book_id: Book identifier
            changes: Only the fields to change; anything left out keeps its value

        Returns:
            The updated book

        Raises:
            BookNotFoundError: If the book does not exist
            pydantic.ValidationError: If a new value breaks the Book constraints;
                the stored book is left unchanged
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        with self._lock:
            current = self._require(book_id)
            if changes:
                current = Book(**{**current.model_dump(), **changes})
                self._books[book_id] = current
                logger.debug("Book updated", book_id=book_id, fields=sorted(changes))
            return current.model_copy()

    def delete_book(self, book_id: str) -> None:
        """Remove a book, raising BookNotFoundError if it does not exist."""
        with self._lock:
            self._require(book_id)
            del self._books[book_id]
            logger.debug("Book deleted", book_id=book_id)

    def checkout_book(self, book_id: str) -> Book:
        """
        Take one copy out of stock.

        Raises:
            BookNotFoundError: If the book does not exist
            OutOfStockError: If no copies are left; the quantity stays at 0
        """
        with self._lock:
            book = self._require(book_id)
            if book.quantity <= 0:
                raise OutOfStockError(book_id)
            book = book.model_copy(update={"quantity": book.quantity - 1})
            self._books[book_id] = book
            logger.debug("Book checked out", book_id=book_id, quantity=book.quantity)
            return book.model_copy()

    def return_book(self, book_id: str) -> Book:
        """Put one copy back in stock. Quantity has no upper bound."""
        with self._lock:
            book = self._require(book_id)
            book = book.model_copy(update={"quantity": book.quantity + 1})
            self._books[book_id] = book
            logger.debug("Book returned", book_id=book_id, quantity=book.quantity)
            return book.model_copy()

    def _require(self, book_id: str) -> Book:
        # Caller must hold self._lock.
        try:
            return self._books[book_id]
        except KeyError:
            raise BookNotFoundError(book_id) from None
