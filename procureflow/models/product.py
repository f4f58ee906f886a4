"""Product models for the procurement catalog"""

from pydantic import BaseModel, Field
from typing import Optional


class Product(BaseModel):
    """Product in the catalog"""
    id: str
    name: str
    category: str
    description: str = ""
    price: float = Field(ge=0, default=0)
    status: str
    images: list[str] = []

    model_config = {"from_attributes": True}


class ProductListResponse(BaseModel):
    """Response from product listing and search"""
    count: int
    data: list[Product]
    query: Optional[str] = None


class RegisterProductResponse(BaseModel):
    """Response from product registration"""
    success: bool
    product: Optional[Product] = None
    error: Optional[str] = None
