from .product_service import ProductService
from .results import ServiceResult

__all__ = ["ProductService", "ServiceResult"]
