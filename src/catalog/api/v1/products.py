"""
Product endpoints.

    GET    /product          list every product
    GET    /product/{id}     one product, 400 "Product not found" when absent
    POST   /product          create, 201 "success"
    PATCH  /product/{id}     partial update, 200 "success", 400 "Product not found!"
    PUT    /product/{id}     full update (absent fields are cleared)
    DELETE /product/{id}     200 "success" whether or not the product existed

`{id}` uses the `int` path convertor, so a non-numeric segment never reaches a
handler (404). Write bodies are read raw: decoding and binding are part of the
service pipeline, not FastAPI's request parsing.
"""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.database.session import get_async_session
from catalog.schemas.product import ProductRead
from catalog.services.product_service import ProductService
from catalog.services.results import ServiceResult

router = APIRouter(prefix="/product", tags=["product"])

SUCCESS = "success"


def get_product_service(db: AsyncSession = Depends(get_async_session)) -> ProductService:
    return ProductService(db)


def _error_response(result: ServiceResult) -> JSONResponse:
    return JSONResponse(content=result.error.to_payload(), status_code=result.error.http_status())


def _success_response(status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse(content=SUCCESS, status_code=status_code)


@router.get("")
async def list_products(service: ProductService = Depends(get_product_service)):
    result = await service.list_products()
    if not result.ok:
        return _error_response(result)
    return JSONResponse(
        content=[ProductRead.model_validate(p).model_dump(mode="json") for p in result.value]
    )


@router.get("/{product_id:int}")
async def get_product(product_id: int, service: ProductService = Depends(get_product_service)):
    result = await service.get_product(product_id)
    if not result.ok:
        return _error_response(result)
    return JSONResponse(content=ProductRead.model_validate(result.value).model_dump(mode="json"))


@router.post("")
async def create_product(request: Request, service: ProductService = Depends(get_product_service)):
    result = await service.create_product(await request.body())
    if not result.ok:
        return _error_response(result)
    return _success_response(status.HTTP_201_CREATED)


@router.patch("/{product_id:int}")
async def patch_product(product_id: int, request: Request,
                        service: ProductService = Depends(get_product_service)):
    result = await service.update_product(product_id, await request.body(), partial=True)
    if not result.ok:
        return _error_response(result)
    return _success_response()


@router.put("/{product_id:int}")
async def put_product(product_id: int, request: Request,
                      service: ProductService = Depends(get_product_service)):
    result = await service.update_product(product_id, await request.body(), partial=False)
    if not result.ok:
        return _error_response(result)
    return _success_response()


@router.delete("/{product_id:int}")
async def delete_product(product_id: int, service: ProductService = Depends(get_product_service)):
    result = await service.delete_product(product_id)
    if not result.ok:
        return _error_response(result)
    return _success_response()
