from __future__ import annotations


class Book:
    """Represents a single catalog item and its available quantity."""

    def __init__(self, id: str, title: str, author: str, quantity: int = 0) -> None:
        self.id = id
        self.title = title
        self.author = author
        self.quantity = int(quantity)

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} (ID: {self.id}, quantity: {self.quantity})"

    def __repr__(self) -> str:  # pragma: no cover
        return f"Book(id={self.id!r}, title={self.title!r}, author={self.author!r}, quantity={self.quantity})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Book):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    @property
    def is_available(self) -> bool:
        return self.quantity > 0

    def to_dict(self) -> dict:
        return {"id": self.id, "title": self.title, "author": self.author, "quantity": self.quantity}

    @staticmethod
    def from_dict(data: dict) -> "Book":
        # Columns are nullable in the schema; normalize NULLs coming back from SQLite
        return Book(
            id=data["id"],
            title=data.get("title") or "",
            author=data.get("author") or "",
            quantity=data.get("quantity") or 0,
        )
