"""SQLAlchemy ORM models for the hosted ``books`` and ``borrowed_books`` tables."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    pass


class Book(Base):
    __tablename__ = "books"

    id = Column(Integer, primary_key=True, autoincrement=True)
    isbn = Column(Text, unique=True, nullable=False, index=True)
    name = Column(Text, nullable=False)
    author = Column(Text, nullable=False)
    category = Column(Text, nullable=True)
    total_copies = Column(Integer, nullable=False, default=0)
    available_copies = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)

    borrows = relationship("BorrowedBook", back_populates="book")


class BorrowedBook(Base):
    __tablename__ = "borrowed_books"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_email = Column(Text, nullable=False, index=True)
    book_isbn = Column(
        Text,
        ForeignKey("books.isbn", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    borrow_date = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    due_date = Column(DateTime(timezone=True), nullable=False, index=True)
    return_date = Column(DateTime(timezone=True), nullable=True)
    returned = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    book = relationship("Book", back_populates="borrows")
