import logging
import sqlite3
from typing import List

from book_inventory.book import Book
from book_inventory.database import Database

logger = logging.getLogger(__name__)


class InventoryError(Exception):
    """Base class for inventory failures."""


class InvalidInputError(InventoryError):
    """Malformed or missing fields."""


class DuplicateItemError(InventoryError):
    """An item with the same id already exists."""


class ItemNotFoundError(InventoryError):
    """No item has the requested id."""


class ItemUnavailableError(InventoryError):
    """Checkout requested while quantity is zero."""


class StorageUnavailableError(InventoryError):
    """The database could not be read or written."""


_SELECT_COLUMNS = "SELECT id, title, author, quantity FROM items"


class InventoryStore:
    """Manages the catalog of books and their available quantities.

    Storage is the only source of truth: nothing is cached in memory, every call
    round-trips to the database.
    """

    def __init__(self, database: Database) -> None:
        self.database = database

    # ------------------------- Core operations ------------------------- #
    def create_item(self, book: Book) -> Book:
        """Insert a new book. Fails with DuplicateItemError if the id is taken."""
        if not book.id or not book.id.strip():
            raise InvalidInputError("ID is required")
        if book.quantity < 0:
            raise InvalidInputError("Quantity cannot be negative")

        try:
            with self.database.transaction() as conn:
                row = conn.execute("SELECT id FROM items WHERE id = ?", (book.id,)).fetchone()
                if row:
                    logger.warning(f"Rejected duplicate book ID: {book.id}")
                    raise DuplicateItemError("Book ID already exists")
                conn.execute(
                    "INSERT INTO items (id, title, author, quantity) VALUES (?, ?, ?, ?)",
                    (book.id, book.title, book.author, book.quantity),
                )
        except sqlite3.IntegrityError as e:
            # Primary key backstop for writers that bypassed the lookup above
            logger.warning(f"Rejected duplicate book ID: {book.id}")
            raise DuplicateItemError("Book ID already exists") from e
        except OverflowError as e:
            # Value does not fit in a SQLite INTEGER
            raise InvalidInputError("Quantity out of range") from e
        except sqlite3.Error as e:
            logger.error(f"Error adding book {book.id}: {e}")
            raise StorageUnavailableError("Error adding book") from e

        logger.info(f"Book added: {book.id} ({book.quantity} available)")
        return book

    def list_items(self) -> List[Book]:
        """List every book in insertion order."""
        try:
            with self.database.connect() as conn:
                rows = conn.execute(f"{_SELECT_COLUMNS} ORDER BY rowid").fetchall()
        except sqlite3.Error as e:
            logger.error(f"Error fetching books: {e}")
            raise StorageUnavailableError("Error fetching books") from e
        return [Book.from_dict(dict(row)) for row in rows]

    def get_item(self, item_id: str) -> Book:
        """Find a single book by id."""
        self._require_id(item_id)
        logger.info(f"Looking up book with ID: {item_id}")
        try:
            with self.database.connect() as conn:
                row = conn.execute(f"{_SELECT_COLUMNS} WHERE id = ?", (item_id,)).fetchone()
        except sqlite3.Error as e:
            logger.error(f"Error fetching book {item_id}: {e}")
            raise StorageUnavailableError("Error fetching book") from e

        if row is None:
            logger.warning(f"Book not found: {item_id}")
            raise ItemNotFoundError("Book not found")
        return Book.from_dict(dict(row))

    def checkout_item(self, item_id: str) -> Book:
        """Take one unit out of stock.

        Returns the book as it was read before the decrement.
        """
        self._require_id(item_id)
        logger.info(f"Checkout requested for book with ID: {item_id}")
        try:
            with self.database.transaction() as conn:
                book = self._fetch_for_update(conn, item_id)
                if not book.is_available:
                    logger.warning(f"Book not available: {item_id}")
                    raise ItemUnavailableError("Book not available")
                cursor = conn.execute(
                    "UPDATE items SET quantity = quantity - 1 WHERE id = ? AND quantity > 0",
                    (item_id,),
                )
                if cursor.rowcount != 1:
                    logger.warning(f"Book not available: {item_id}")
                    raise ItemUnavailableError("Book not available")
        except sqlite3.Error as e:
            logger.error(f"Error checking out book {item_id}: {e}")
            raise StorageUnavailableError("Error checking out book") from e

        logger.info(f"Book checked out: {item_id} ({book.quantity - 1} left)")
        return book

    def return_item(self, item_id: str) -> Book:
        """Put one unit back into stock. No upper bound is enforced.

        Returns the book as it was read before the increment.
        """
        self._require_id(item_id)
        logger.info(f"Return requested for book with ID: {item_id}")
        try:
            with self.database.transaction() as conn:
                book = self._fetch_for_update(conn, item_id)
                conn.execute("UPDATE items SET quantity = quantity + 1 WHERE id = ?", (item_id,))
        except sqlite3.Error as e:
            logger.error(f"Error returning book {item_id}: {e}")
            raise StorageUnavailableError("Error returning book") from e

        logger.info(f"Book returned: {item_id} ({book.quantity + 1} available)")
        return book

    # ------------------------- Helpers ------------------------- #
    @staticmethod
    def _fetch_for_update(conn: sqlite3.Connection, item_id: str) -> Book:
        row = conn.execute(f"{_SELECT_COLUMNS} WHERE id = ?", (item_id,)).fetchone()
        if row is None:
            logger.warning(f"Book not found: {item_id}")
            raise ItemNotFoundError("Book not found")
        return Book.from_dict(dict(row))

    @staticmethod
    def _require_id(item_id: str) -> None:
        if not item_id or not item_id.strip():
            raise InvalidInputError("ID is required")
