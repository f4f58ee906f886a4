"""Product catalog API routes"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from ..models.product import Product, ProductListResponse
from ..database.products import ProductDatabase
from .dependencies import get_product_db

router = APIRouter(prefix="/api/products", tags=["Products"])


@router.get("", response_model=ProductListResponse, response_model_exclude_none=True)
async def list_products(
    q: Optional[str] = Query(None, description="Free-text search query"),
    product_db: ProductDatabase = Depends(get_product_db),
):
    """
    List the catalog, filtered by ``q`` when given.

    The raw query is echoed back only when it is non-blank.
    """
    query = (q or "").strip()
    products = product_db.search_products(query) if query else product_db.list_products()
    return ProductListResponse(
        count=len(products),
        data=products,
        query=q if query else None,
    )


@router.get("/{product_id}", response_model=Product)
async def get_product(
    product_id: str,
    product_db: ProductDatabase = Depends(get_product_db),
):
    """Get a product by ID"""
    product = product_db.get_product(product_id)
    if not product:
        return JSONResponse(status_code=404, content={"error": "Not found"})
    return product
