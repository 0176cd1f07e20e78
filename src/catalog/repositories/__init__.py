"""
Repository layer.

Usage:
    from catalog.repositories import ProductRepository, CategoryRepository
"""

from .base_repository import BaseRepository
from .category_repository import CategoryRepository
from .product_repository import ProductRepository

__all__ = [
    "BaseRepository",
    "CategoryRepository",
    "ProductRepository",
]
