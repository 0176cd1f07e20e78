"""
Single import point for the catalog's ORM models.

Importing this package registers every table on `Base.metadata`:

    from catalog.models import Product, Category
"""

from .category import Category
from .product import Product, product_categories

__all__ = [
    "Category",
    "Product",
    "product_categories",
]
