"""SQLAlchemy store adapter over the hosted ``books`` / ``borrowed_books`` tables."""

import logging
from collections.abc import Collection, Sequence
from datetime import datetime
from typing import Optional

from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import async_sessionmaker

from campusreads.domain.entities import BorrowRecord, CatalogEntry, normalize_isbn
from campusreads.domain.models import Book, BorrowedBook
from campusreads.errors import AlreadyBorrowedError, BookUnavailableError
from campusreads.ports.stores import BorrowLedgerPort, CatalogPort, LendingPort

logger = logging.getLogger(__name__)


def to_borrow_record(row: BorrowedBook) -> BorrowRecord:
    return BorrowRecord(
        id=str(row.id),
        borrower=row.user_email,
        book_isbn=row.book_isbn,
        borrowed_at=row.borrow_date,
        due_at=row.due_date,
        returned=bool(row.returned),
        returned_at=row.return_date,
    )


def to_catalog_entry(row: Book) -> Optional[CatalogEntry]:
    """Map a ``books`` row, or return None when the row breaks the copy invariant."""
    try:
        return CatalogEntry(
            isbn=row.isbn,
            title=row.name,
            author=row.author,
            category=row.category,
            total_copies=row.total_copies or 0,
            available_copies=row.available_copies or 0,
        )
    except ValueError as exc:
        logger.warning("Skipping malformed catalog row id=%s: %s", row.id, exc)
        return None


class SqlStore(BorrowLedgerPort, CatalogPort, LendingPort):
    """Ledger, catalog and lending ports backed by an async SQLAlchemy session factory."""

    def __init__(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory

    # ── Borrow ledger ──────────────────────────────

    def _active_borrows(self) -> Select:
        return (
            select(BorrowedBook)
            .where(BorrowedBook.returned.is_(False))
            .order_by(BorrowedBook.borrow_date, BorrowedBook.id)
        )

    async def _fetch_borrows(self, stmt: Select) -> list[BorrowRecord]:
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [to_borrow_record(row) for row in result.scalars().all()]

    async def active_for_borrower(self, borrower: str) -> list[BorrowRecord]:
        stmt = self._active_borrows().where(BorrowedBook.user_email == borrower)
        return await self._fetch_borrows(stmt)

    async def active_for_books(
        self, isbns: Collection[str], exclude_borrower: str
    ) -> list[BorrowRecord]:
        if not isbns:
            return []
        stmt = self._active_borrows().where(
            BorrowedBook.book_isbn.in_(list(isbns)),
            BorrowedBook.user_email != exclude_borrower,
        )
        return await self._fetch_borrows(stmt)

    async def active_for_borrowers(
        self, borrowers: Collection[str]
    ) -> list[BorrowRecord]:
        if not borrowers:
            return []
        stmt = self._active_borrows().where(
            BorrowedBook.user_email.in_(list(borrowers))
        )
        return await self._fetch_borrows(stmt)

    # ── Catalog ────────────────────────────────────

    @staticmethod
    def _available(exclude: Collection[str] = ()) -> Select:
        stmt = (
            select(Book)
            .where(Book.available_copies > 0)
            .order_by(Book.available_copies.desc(), Book.isbn)
        )
        if exclude:
            stmt = stmt.where(Book.isbn.not_in(list(exclude)))
        return stmt

    async def _fetch_books(self, stmt: Select) -> list[CatalogEntry]:
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            entries = (to_catalog_entry(row) for row in result.scalars().all())
            return [entry for entry in entries if entry is not None]

    async def by_isbns(self, isbns: Collection[str]) -> list[CatalogEntry]:
        if not isbns:
            return []
        stmt = select(Book).where(Book.isbn.in_(list(isbns))).order_by(Book.isbn)
        return await self._fetch_books(stmt)

    async def available_by_isbns(self, isbns: Collection[str]) -> list[CatalogEntry]:
        if not isbns:
            return []
        return await self._fetch_books(
            self._available().where(Book.isbn.in_(list(isbns)))
        )

    async def available_in_categories(
        self, categories: Collection[str], exclude: Collection[str], limit: int
    ) -> list[CatalogEntry]:
        if not categories or limit <= 0:
            return []
        stmt = (
            self._available(exclude)
            .where(Book.category.in_(list(categories)))
            .limit(limit)
        )
        return await self._fetch_books(stmt)

    async def available_by_authors(
        self, authors: Collection[str], exclude: Collection[str], limit: int
    ) -> list[CatalogEntry]:
        if not authors or limit <= 0:
            return []
        stmt = self._available(exclude).where(Book.author.in_(list(authors))).limit(limit)
        return await self._fetch_books(stmt)

    async def most_available(
        self, exclude: Collection[str], limit: int
    ) -> list[CatalogEntry]:
        if limit <= 0:
            return []
        return await self._fetch_books(self._available(exclude).limit(limit))

    # ── Lending ────────────────────────────────────

    async def find_book(self, isbn: str) -> Optional[CatalogEntry]:
        """Look a book up by exact ISBN, then by its dash/space-free form."""
        normalized = normalize_isbn(isbn)
        stored_normalized = func.replace(func.replace(Book.isbn, "-", ""), " ", "")
        candidates: Sequence[Select] = (
            select(Book).where(Book.isbn == isbn),
            select(Book).where(Book.isbn == normalized),
            select(Book).where(stored_normalized == normalized),
        )
        async with self._session_factory() as session:
            for stmt in candidates:
                row = (await session.execute(stmt.limit(1))).scalar_one_or_none()
                if row is not None:
                    return to_catalog_entry(row)
        return None

    @staticmethod
    def _active_borrow_count(borrower: str, isbn: str) -> Select:
        return select(func.count(BorrowedBook.id)).where(
            BorrowedBook.user_email == borrower,
            BorrowedBook.book_isbn == isbn,
            BorrowedBook.returned.is_(False),
        )

    async def has_active_borrow(self, borrower: str, isbn: str) -> bool:
        async with self._session_factory() as session:
            stmt = self._active_borrow_count(borrower, isbn)
            return (await session.execute(stmt)).scalar_one() > 0

    async def record_borrow(
        self,
        borrower: str,
        isbn: str,
        borrowed_at: datetime,
        due_at: datetime,
    ) -> BorrowRecord:
        async with self._session_factory() as session:
            async with session.begin():
                # the guarded UPDATE locks the book row, so concurrent borrows of
                # the same book queue here and see each other's inserts below
                taken = await session.execute(
                    update(Book)
                    .where(Book.isbn == isbn, Book.available_copies > 0)
                    .values(available_copies=Book.available_copies - 1)
                )
                if taken.rowcount == 0:
                    raise BookUnavailableError(isbn)

                held = await session.execute(self._active_borrow_count(borrower, isbn))
                if held.scalar_one() > 0:
                    raise AlreadyBorrowedError(borrower, isbn)

                row = BorrowedBook(
                    user_email=borrower,
                    book_isbn=isbn,
                    borrow_date=borrowed_at,
                    due_date=due_at,
                    returned=False,
                )
                session.add(row)
                await session.flush()
                record = to_borrow_record(row)

        logger.info("Recorded borrow id=%s: %s -> %s", record.id, borrower, isbn)
        return record
