"""Response schemas: how products and their categories are serialized."""

from pydantic import BaseModel, ConfigDict


class CategoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    eid: int | None = None


class ProductRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    # Numeric column; a JSON number on the wire
    price: float
    eid: int | None = None
    categories: list[CategoryRead] = []
