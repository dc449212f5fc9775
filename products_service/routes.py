from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Request
from loguru import logger

from .models import Product, ProductCollection
from .pipeline import validated_payload
from .schemas import DeletedProduct, ProductPage, ProductPayload

router = APIRouter(prefix="/api/products")


def get_collection(request: Request) -> ProductCollection:
    return request.app.state.products


@router.get("", response_model=ProductPage)
async def list_products(
    category: Optional[str] = None,
    page: str = "1",
    limit: str = "10",
    products: ProductCollection = Depends(get_collection),
):
    logger.info(f"Listing products (category={category}, page={page}, limit={limit})")
    items, total, page_num, limit_num = products.list_products(category, page, limit)
    return ProductPage(page=page_num, limit=limit_num, total=total, products=items)


# search et stats doivent être déclarées avant la route {product_id}
@router.get("/search", response_model=List[Product])
async def search_products(q: Optional[str] = None, products: ProductCollection = Depends(get_collection)):
    logger.info(f"Searching products by name: {q}")
    return products.search(q)


@router.get("/stats", response_model=Dict[str, int])
async def product_stats(products: ProductCollection = Depends(get_collection)):
    return products.stats()


@router.get("/{product_id}", response_model=Product)
async def get_product(product_id: str, products: ProductCollection = Depends(get_collection)):
    logger.info(f"Fetching product {product_id}")
    return products.get(product_id)


@router.post("", response_model=Product, status_code=201)
async def create_product(
    payload: ProductPayload = Depends(validated_payload),
    products: ProductCollection = Depends(get_collection),
):
    product = products.create(payload.model_dump())
    logger.info(f"Product created with ID {product.id}")
    return product


@router.put("/{product_id}", response_model=Product)
async def update_product(
    product_id: str,
    payload: ProductPayload = Depends(validated_payload),
    products: ProductCollection = Depends(get_collection),
):
    product = products.replace(product_id, payload.model_dump())
    logger.info(f"Product {product_id} updated")
    return product


@router.delete("/{product_id}", response_model=DeletedProduct)
async def delete_product(product_id: str, products: ProductCollection = Depends(get_collection)):
    product = products.delete(product_id)
    logger.info(f"Product {product_id} deleted")
    return DeletedProduct(message="Product deleted", product=product)
