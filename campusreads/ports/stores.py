"""Store ports — abstract interfaces over the borrow ledger and the catalog."""

from abc import ABC, abstractmethod
from collections.abc import Collection
from datetime import datetime
from typing import Optional

from campusreads.domain.entities import BorrowRecord, CatalogEntry


class BorrowLedgerPort(ABC):
    """Read-only view of borrowing events.

    Every method returns records ordered by borrow date, then record id.
    """

    @abstractmethod
    async def active_for_borrower(self, borrower: str) -> list[BorrowRecord]:
        """Return the borrower's unreturned records."""
        ...

    @abstractmethod
    async def active_for_books(
        self, isbns: Collection[str], exclude_borrower: str
    ) -> list[BorrowRecord]:
        """Return other borrowers' unreturned records for any of ``isbns``."""
        ...

    @abstractmethod
    async def active_for_borrowers(
        self, borrowers: Collection[str]
    ) -> list[BorrowRecord]:
        """Return every unreturned record belonging to ``borrowers``."""
        ...


class CatalogPort(ABC):
    """Read-only view of the book inventory."""

    @abstractmethod
    async def by_isbns(self, isbns: Collection[str]) -> list[CatalogEntry]:
        """Return entries for ``isbns`` regardless of availability."""
        ...

    @abstractmethod
    async def available_by_isbns(self, isbns: Collection[str]) -> list[CatalogEntry]:
        """Return entries for ``isbns`` that have at least one copy on the shelf."""
        ...

    @abstractmethod
    async def available_in_categories(
        self, categories: Collection[str], exclude: Collection[str], limit: int
    ) -> list[CatalogEntry]:
        """Available entries in any of ``categories``, most copies first."""
        ...

    @abstractmethod
    async def available_by_authors(
        self, authors: Collection[str], exclude: Collection[str], limit: int
    ) -> list[CatalogEntry]:
        """Available entries written by any of ``authors``, most copies first."""
        ...

    @abstractmethod
    async def most_available(
        self, exclude: Collection[str], limit: int
    ) -> list[CatalogEntry]:
        """Available entries ordered by descending available copies."""
        ...


class LendingPort(ABC):
    """Write access used by the borrow workflow. The recommender never sees it."""

    @abstractmethod
    async def find_book(self, isbn: str) -> Optional[CatalogEntry]:
        ...

    @abstractmethod
    async def has_active_borrow(self, borrower: str, isbn: str) -> bool:
        ...

    @abstractmethod
    async def record_borrow(
        self,
        borrower: str,
        isbn: str,
        borrowed_at: datetime,
        due_at: datetime,
    ) -> BorrowRecord:
        """Insert a borrow record and take one copy off the shelf.

        Raises BookUnavailableError when no copy is left and
        AlreadyBorrowedError when the borrower already holds the book, checked
        atomically with the insert.
        """
        ...
