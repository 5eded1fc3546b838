"""Domain entities for CampusReads.

Rows coming back from any store are mapped into these values at the
adapter boundary; the recommendation and lending logic only ever sees them.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


def normalize_isbn(isbn: str) -> str:
    """Strip spaces and dashes so ``978-0 262`` and ``9780262`` compare equal."""
    return isbn.replace("-", "").replace(" ", "").strip()


@dataclass(frozen=True)
class BorrowRecord:
    id: str
    borrower: str
    book_isbn: str
    borrowed_at: datetime
    due_at: datetime
    returned: bool = False
    returned_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return not self.returned


@dataclass(frozen=True)
class CatalogEntry:
    """A book in the catalog together with its copy counts."""

    isbn: str
    title: str
    author: str
    category: Optional[str]
    total_copies: int
    available_copies: int

    def __post_init__(self) -> None:
        if not self.isbn:
            raise ValueError("catalog entry requires an ISBN")
        if not 0 <= self.available_copies <= self.total_copies:
            raise ValueError(
                f"invalid copy counts for {self.isbn}: "
                f"available={self.available_copies}, total={self.total_copies}"
            )

    @property
    def is_available(self) -> bool:
        return self.available_copies > 0
