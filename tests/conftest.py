from collections.abc import AsyncGenerator
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Optional

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from campusreads.adapters.stores.memory import InMemoryStore
from campusreads.adapters.stores.sql import SqlStore
from campusreads.domain.entities import BorrowRecord, CatalogEntry
from campusreads.domain.models import Base

EPOCH = datetime(2025, 1, 6, 9, 0, 0)


@pytest.fixture
def make_book() -> Callable[..., CatalogEntry]:
    def _make(
        isbn: str,
        available: int = 1,
        total: Optional[int] = None,
        category: Optional[str] = "General",
        author: str = "Anonymous",
        title: Optional[str] = None,
    ) -> CatalogEntry:
        return CatalogEntry(
            isbn=isbn,
            title=title or f"Book {isbn}",
            author=author,
            category=category,
            total_copies=max(available, 1) if total is None else total,
            available_copies=available,
        )

    return _make


@pytest.fixture
def make_borrow() -> Callable[..., BorrowRecord]:
    """Borrow records numbered in creation order, one minute apart."""
    counter = iter(range(1, 10_000))

    def _make(borrower: str, isbn: str, returned: bool = False) -> BorrowRecord:
        n = next(counter)
        borrowed_at = EPOCH + timedelta(minutes=n)
        return BorrowRecord(
            id=str(n),
            borrower=borrower,
            book_isbn=isbn,
            borrowed_at=borrowed_at,
            due_at=borrowed_at + timedelta(days=14),
            returned=returned,
            returned_at=borrowed_at + timedelta(days=3) if returned else None,
        )

    return _make


@pytest.fixture
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
async def session_factory(tmp_path: Path) -> AsyncGenerator[async_sessionmaker, None]:
    """A fresh SQLite database per test with the library tables created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def sql_store(session_factory: async_sessionmaker) -> SqlStore:
    return SqlStore(session_factory)
