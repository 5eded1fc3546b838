"""In-memory store adapter for local runs and tests."""

import itertools
import logging
from collections.abc import Collection, Iterable
from dataclasses import replace
from datetime import datetime
from typing import Optional

from campusreads.domain.entities import BorrowRecord, CatalogEntry, normalize_isbn
from campusreads.errors import AlreadyBorrowedError, BookUnavailableError
from campusreads.ports.stores import BorrowLedgerPort, CatalogPort, LendingPort

logger = logging.getLogger(__name__)

# Same starter catalog the hosted database is seeded with.
SAMPLE_BOOKS: tuple[CatalogEntry, ...] = (
    CatalogEntry("978-0262033848", "Introduction to Algorithms", "Thomas H. Cormen", "Computer Science", 5, 5),
    CatalogEntry("978-0136042594", "Artificial Intelligence: A Modern Approach", "Stuart Russell", "Computer Science", 3, 3),
    CatalogEntry("978-0521809269", "The Art of Electronics", "Paul Horowitz", "Engineering", 4, 4),
    CatalogEntry("978-0538453059", "Principles of Economics", "N. Gregory Mankiw", "Economics", 6, 6),
    CatalogEntry("978-0134093413", "Campbell Biology", "Lisa A. Urry", "Biology", 5, 5),
    CatalogEntry("978-1118230725", "Fundamentals of Physics", "David Halliday", "Physics", 4, 4),
)


def _most_available_first(entries: Iterable[CatalogEntry]) -> list[CatalogEntry]:
    return sorted(entries, key=lambda e: (-e.available_copies, e.isbn))


class InMemoryStore(BorrowLedgerPort, CatalogPort, LendingPort):
    """Ledger, catalog and lending ports over plain Python collections."""

    def __init__(
        self,
        books: Iterable[CatalogEntry] = (),
        borrows: Iterable[BorrowRecord] = (),
    ) -> None:
        self._books: dict[str, CatalogEntry] = {book.isbn: book for book in books}
        self._borrows: list[BorrowRecord] = list(borrows)
        self._ids = itertools.count(len(self._borrows) + 1)
        logger.info(
            "InMemoryStore initialized: %d books, %d borrow records",
            len(self._books),
            len(self._borrows),
        )

    @classmethod
    def with_sample_books(cls) -> "InMemoryStore":
        return cls(books=SAMPLE_BOOKS)

    # ── Borrow ledger ──────────────────────────────

    def _active(self) -> list[BorrowRecord]:
        active = [r for r in self._borrows if r.is_active]
        return sorted(active, key=lambda r: r.borrowed_at)

    async def active_for_borrower(self, borrower: str) -> list[BorrowRecord]:
        return [r for r in self._active() if r.borrower == borrower]

    async def active_for_books(
        self, isbns: Collection[str], exclude_borrower: str
    ) -> list[BorrowRecord]:
        return [
            r
            for r in self._active()
            if r.book_isbn in isbns and r.borrower != exclude_borrower
        ]

    async def active_for_borrowers(
        self, borrowers: Collection[str]
    ) -> list[BorrowRecord]:
        return [r for r in self._active() if r.borrower in borrowers]

    # ── Catalog ────────────────────────────────────

    def _available(self, exclude: Collection[str] = ()) -> list[CatalogEntry]:
        return _most_available_first(
            book
            for book in self._books.values()
            if book.is_available and book.isbn not in exclude
        )

    async def by_isbns(self, isbns: Collection[str]) -> list[CatalogEntry]:
        return sorted(
            (self._books[isbn] for isbn in set(isbns) if isbn in self._books),
            key=lambda e: e.isbn,
        )

    async def available_by_isbns(self, isbns: Collection[str]) -> list[CatalogEntry]:
        return [book for book in self._available() if book.isbn in isbns]

    async def available_in_categories(
        self, categories: Collection[str], exclude: Collection[str], limit: int
    ) -> list[CatalogEntry]:
        if limit <= 0:
            return []
        matches = [b for b in self._available(exclude) if b.category in categories]
        return matches[:limit]

    async def available_by_authors(
        self, authors: Collection[str], exclude: Collection[str], limit: int
    ) -> list[CatalogEntry]:
        if limit <= 0:
            return []
        matches = [b for b in self._available(exclude) if b.author in authors]
        return matches[:limit]

    async def most_available(
        self, exclude: Collection[str], limit: int
    ) -> list[CatalogEntry]:
        if limit <= 0:
            return []
        return self._available(exclude)[:limit]

    # ── Lending ────────────────────────────────────

    async def find_book(self, isbn: str) -> Optional[CatalogEntry]:
        if isbn in self._books:
            return self._books[isbn]
        normalized = normalize_isbn(isbn)
        for book in self._books.values():
            if book.isbn == normalized or normalize_isbn(book.isbn) == normalized:
                return book
        return None

    async def has_active_borrow(self, borrower: str, isbn: str) -> bool:
        return any(
            r.borrower == borrower and r.book_isbn == isbn for r in self._active()
        )

    async def record_borrow(
        self,
        borrower: str,
        isbn: str,
        borrowed_at: datetime,
        due_at: datetime,
    ) -> BorrowRecord:
        book = self._books.get(isbn)
        if book is None or not book.is_available:
            raise BookUnavailableError(isbn)
        if any(r.borrower == borrower and r.book_isbn == isbn for r in self._active()):
            raise AlreadyBorrowedError(borrower, isbn)

        self._books[isbn] = replace(book, available_copies=book.available_copies - 1)
        record = BorrowRecord(
            id=str(next(self._ids)),
            borrower=borrower,
            book_isbn=isbn,
            borrowed_at=borrowed_at,
            due_at=due_at,
        )
        self._borrows.append(record)
        logger.info("Recorded borrow id=%s: %s -> %s", record.id, borrower, isbn)
        return record
