"""
Library Lending API — Lending SQLAlchemy Model
===============================================

What:  ORM model representing the `lendings` table.
Why:   A row exists exactly while a book is out. Its existence is the source
       of truth for the loan; Book.loaned / Book.reader_id mirror it.
Who:   Created and deleted only by LendingService. The application never
       updates a lending; book_isbn only changes through the ISBN cascade.

Constraints:
    - book_isbn UNIQUE: at most one open lending per book. If two requests
      race past the availability check, the second commit fails here and
      LendingService reports "Book not available".
    - book_isbn → books.isbn ON UPDATE CASCADE: editing the ISBN of a loaned
      book keeps its lending attached.
    - reader_id → readers.id: the database refuses to delete a reader with
      open lendings. SQLite enforces both foreign keys only because
      database.enable_sqlite_foreign_keys turns them on per connection.
    - id is never reused (AUTOINCREMENT on SQLite, a sequence elsewhere), so
      a retried return of an old lending id cannot close a newer loan.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from library_api.database import Base
from library_api.models.book import Book
from library_api.models.reader import Reader


class Lending(Base):
    __tablename__ = "lendings"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # UTC creation time of the loan
    date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    book_isbn: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("books.isbn", onupdate="CASCADE"),
        nullable=False,
        unique=True,
        comment="One open lending per book",
    )

    reader_id: Mapped[int] = mapped_column(
        ForeignKey("readers.id"),
        nullable=False,
        index=True,
    )

    # Many-to-one only; always loaded explicitly (selectinload/joinedload)
    # because lazy loads are not available on an AsyncSession
    book: Mapped[Book] = relationship(Book, lazy="raise")
    reader: Mapped[Reader] = relationship(Reader, lazy="raise")

    def __repr__(self) -> str:
        return (
            f"<Lending(id={self.id}, book_isbn='{self.book_isbn}', "
            f"reader_id={self.reader_id})>"
        )
