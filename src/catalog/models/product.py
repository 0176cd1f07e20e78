from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Column, ForeignKey, Integer, Numeric, String, Table, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from catalog.database.base import Base

# Avoid circular import issues when using type hints for related models
if TYPE_CHECKING:
    from .category import Category


# Many-to-many link between products and categories.
# The surrogate id keeps a product's categories in insertion order.
product_categories = Table(
    "product_categories",
    Base.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "product_id",
        Integer,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column(
        "category_id",
        Integer,
        ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    ),
    UniqueConstraint("product_id", "category_id"),
)


class Product(Base):
    """
    SQLAlchemy model for a Product.

    Product is the aggregate root of the product -> categories association: the
    association rows belong to it, the Category rows do not.
    """
    __tablename__ = "products"

    # Integer identity assigned by the database on insert, never by a client
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    # Optional external identifier
    eid: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # --- Relationships ---

    # Many-to-Many, unidirectional. "selectin" so the collection is loaded together
    # with the product (lazy loading is not available on an AsyncSession).
    categories: Mapped[list["Category"]] = relationship(
        "Category",
        secondary=product_categories,
        order_by=product_categories.c.id,
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id!r}, title={self.title!r}, price={self.price!r})>"
