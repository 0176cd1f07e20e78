from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from catalog.database.base import Base


class Category(Base):
    """
    SQLAlchemy model for a Category.

    Categories are owned independently of products: deleting a product never
    removes the categories it referenced.
    """
    __tablename__ = "categories"

    # Integer identity assigned by the database on insert
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Unique, 3..12 characters (length is enforced by the category form)
    title: Mapped[str] = mapped_column(
        String(12),
        unique=True,
        nullable=False,
    )

    # Optional external identifier
    eid: Mapped[int | None] = mapped_column(Integer, nullable=True)

    def __repr__(self) -> str:
        return f"<Category(id={self.id!r}, title={self.title!r})>"
