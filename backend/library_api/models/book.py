"""
Library Lending API — Book SQLAlchemy Model
============================================

What:  ORM model representing the `books` table.
Who:   Owned by BookService (name, isbn); `loaned` and `reader_id` are
       written only by LendingService, inside the same transaction that
       creates or deletes the Lending row.

Table Design Rationale:
    - Integer primary key, but the public identifier is the ISBN
      (routes address books as /book/{isbn})
    - isbn UNIQUE: the registry maps its violation to a duplicate error
    - loaned / reader_id: a denormalized projection of "an open Lending exists
      for this ISBN". Never updated one without the other.
"""

from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String, false
from sqlalchemy.orm import Mapped, mapped_column

from library_api.database import Base


class Book(Base):
    """
    A catalogued book.

    Lifecycle:
        1. Created Available (loaned=False, reader_id=None)
        2. Lent: loaned=True, reader_id set, Lending row inserted
        3. Returned: back to Available, Lending row deleted
        4. Deleted only while Available
    """

    __tablename__ = "books"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Stored exactly as sent (hyphens kept); lookups are exact matches
    isbn: Mapped[str] = mapped_column(
        String(32),
        unique=True,
        nullable=False,
        comment="ISBN-10 or ISBN-13, unique across the catalogue",
    )

    loaned: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )

    reader_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("readers.id"),
        nullable=True,
        default=None,
        comment="Reader currently holding the book; NULL while available",
    )

    def __repr__(self) -> str:
        return f"<Book(id={self.id}, isbn='{self.isbn}', loaned={self.loaned})>"
