"""ORM model for the `readers` table."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from library_api.database import Base


class Reader(Base):
    __tablename__ = "readers"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Not unique: seeding checks existence by name before inserting
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Reader(id={self.id}, name='{self.name}')>"
