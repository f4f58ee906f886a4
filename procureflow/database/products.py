"""Product catalog repository"""

import logging
import time
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from ..core.errors import InvalidProductError
from ..models.product import Product
from ..services.search import filter_products

logger = logging.getLogger(__name__)

# Seed catalog
SEED_PRODUCTS: tuple[Product, ...] = (
    Product(
        id="1",
        name="USB-C Cable 2m",
        category="Electronics",
        description="High-speed USB-C charging cable with durable braided design",
        price=12.99,
        status="In Stock",
        images=["https://images.unsplash.com/photo-1625948515291-69613efd103f?w=800&q=80"],
    ),
    Product(
        id="2",
        name="USB-C Cable 1m",
        category="Electronics",
        description="Compact USB-C cable for desktop use",
        price=9.99,
        status="In Stock",
        images=["https://images.unsplash.com/photo-1625948515291-69613efd103f?w=800&q=80"],
    ),
    Product(
        id="3",
        name="Wireless Mouse",
        category="Electronics",
        description="Ergonomic wireless mouse with precision tracking",
        price=24.99,
        status="In Stock",
        images=["https://images.unsplash.com/photo-1527864550417-7fd91fc51a46?w=800&q=80"],
    ),
)


def _parse_price(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return 0.0


class ProductDatabase:
    """In-memory product catalog, one instance per application"""

    def __init__(self, seed: Iterable[Product] = SEED_PRODUCTS):
        self._seed = tuple(seed)
        self.products: list[Product] = []
        self.reset()

    def reset(self) -> None:
        """Restore the seed catalog"""
        self.products = [p.model_copy(deep=True) for p in self._seed]

    def list_products(self) -> list[Product]:
        """Get all products in catalog order"""
        return list(self.products)

    def get_product(self, product_id: str) -> Optional[Product]:
        """Get a product by ID"""
        return next((p for p in self.products if p.id == product_id), None)

    def search_products(self, query: Optional[str] = None) -> list[Product]:
        """Search products with the catalog token filter"""
        return filter_products(self.products, query)

    def add_product(self, payload: Optional[dict] = None) -> Product:
        """
        Register a product, filling in defaults for missing fields.

        Raises:
            InvalidProductError: payload is not an object or has ill-typed fields
        """
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            raise InvalidProductError("Product payload must be an object")

        images = payload.get("images") or []
        if not isinstance(images, list) or not all(isinstance(i, str) for i in images):
            raise InvalidProductError("images must be a list of strings")

        try:
            product = Product(
                id=self._next_id(),
                name=payload.get("name") or "Unnamed Product",
                category=payload.get("category") or "Uncategorized",
                description=payload.get("description") or "",
                price=max(0.0, _parse_price(payload.get("price", 0))),
                status=payload.get("status") or "Pending Approval",
                images=images,
            )
        except ValidationError as e:
            raise InvalidProductError(str(e)) from e
        self.products.append(product)
        logger.info(f"Registered product {product.id}: {product.name}")
        return product

    def update_status(self, product_id: str, status: str) -> Optional[Product]:
        """Change a product's status, the only mutable field"""
        product = self.get_product(product_id)
        if not product:
            return None
        product.status = status
        return product

    def _next_id(self) -> str:
        candidate = int(time.time() * 1000)
        existing = {p.id for p in self.products}
        while str(candidate) in existing:
            candidate += 1
        return str(candidate)
