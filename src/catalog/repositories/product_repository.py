"""
Product repository.

Products load their categories eagerly (the relationship is `selectin`), so every
entity returned here can be serialized without further queries.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from catalog.models.product import Product

from .base_repository import BaseRepository


class ProductRepository(BaseRepository[Product]):

    def __init__(self, db: AsyncSession):
        super().__init__(Product, db)

    async def list_products(self) -> list[Product]:
        """Every product in id order."""
        return await self.get_all(order_by="id")
