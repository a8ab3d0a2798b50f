"""
Error taxonomy raised by the inventory store.
"""

from typing import Optional


class InventoryError(Exception):
    """Base class for inventory store errors."""

    message = "Inventory error"

    def __init__(self, book_id: str, message: Optional[str] = None):
        self.book_id = book_id
        if message is not None:
            self.message = message
        super().__init__(self.message)


class BookNotFoundError(InventoryError):
    """No book with the given identifier exists."""

    message = "Book not found"


class DuplicateBookError(InventoryError):
    """A book with the given identifier already exists."""

    def __init__(self, book_id: str):
        super().__init__(book_id, f"Book with ID '{book_id}' already exists")


class OutOfStockError(InventoryError):
    """Checkout attempted on a book with zero quantity."""

    message = "Book is out of stock"
