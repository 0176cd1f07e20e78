from sqlalchemy.ext.asyncio import AsyncSession

from catalog.models.category import Category

from .base_repository import BaseRepository


class CategoryRepository(BaseRepository[Category]):
    """
    Category rows. Also the reference loader the binder uses to resolve
    `{"id": ...}` elements of a product's `categories`.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Category, db)

    async def get_by_title(self, title: str) -> Category | None:
        return await self.find_by_field("title", title.strip())
