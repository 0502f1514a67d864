"""Create readers, books and lendings tables

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  Creates the three library tables.
How:   readers first, then books (→ readers), then lendings (→ books, readers).

Constraints that carry business rules:
    - books.isbn UNIQUE               → duplicate ISBN error
    - lendings.book_isbn UNIQUE       → at most one open lending per book
    - lendings.book_isbn → books.isbn ON UPDATE CASCADE
    - ids use AUTOINCREMENT on SQLite, so deleted lending ids are not reused

Rollback: downgrade() drops all three tables (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "readers",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_readers_name", "readers", ["name"])

    op.create_table(
        "books",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "isbn",
            sa.String(32),
            nullable=False,
            comment="ISBN-10 or ISBN-13, unique across the catalogue",
        ),
        sa.Column("loaned", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column(
            "reader_id",
            sa.Integer(),
            nullable=True,
            comment="Reader currently holding the book; NULL while available",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("isbn"),
        sa.ForeignKeyConstraint(["reader_id"], ["readers.id"]),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "lendings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "date",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "book_isbn",
            sa.String(32),
            nullable=False,
            comment="One open lending per book",
        ),
        sa.Column("reader_id", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("book_isbn"),
        sa.ForeignKeyConstraint(["book_isbn"], ["books.isbn"], onupdate="CASCADE"),
        sa.ForeignKeyConstraint(["reader_id"], ["readers.id"]),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_lendings_reader_id", "lendings", ["reader_id"])


def downgrade() -> None:
    op.drop_index("ix_lendings_reader_id", table_name="lendings")
    op.drop_table("lendings")
    op.drop_table("books")
    op.drop_index("ix_readers_name", table_name="readers")
    op.drop_table("readers")
