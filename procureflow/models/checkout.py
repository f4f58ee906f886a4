"""Checkout models for the mocked purchase flow"""

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from typing import Any, Optional


class CheckoutLine(BaseModel):
    """One cart line posted at checkout"""
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    name: Optional[str] = None
    price: float = 0.0
    quantity: int = 1

    @model_validator(mode="before")
    @classmethod
    def _flatten_cart_item(cls, data: Any) -> Any:
        # Client cart items nest the product: {"product": {...}, "quantity": n}
        if isinstance(data, dict) and isinstance(data.get("product"), dict):
            product = data["product"]
            return {
                "id": product.get("id"),
                "name": product.get("name"),
                "price": product.get("price", 0),
                "quantity": data.get("quantity", 1),
            }
        return data

    @field_validator("price", mode="before")
    @classmethod
    def _coerce_price(cls, value: Any) -> float:
        try:
            return float(value)
        except (TypeError, ValueError):
            return 0.0

    @field_validator("quantity", mode="before")
    @classmethod
    def _coerce_quantity(cls, value: Any) -> int:
        try:
            return max(1, int(value))
        except (TypeError, ValueError):
            return 1


class CheckoutRequest(BaseModel):
    """Request to checkout"""
    cart: list[CheckoutLine] = []


class CheckoutResponse(BaseModel):
    """Response from checkout"""
    success: bool
    message: str
    total: float
