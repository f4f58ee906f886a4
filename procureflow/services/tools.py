"""
Assistant toolset

Tools run server-side during a chat turn. Cart, payment and shipping tools
do not touch server state: the client holds the cart and checkout details,
so these tools validate the request and return a structured intent that the
client applies once per tool call.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field, ValidationError

from ..core.errors import InvalidProductError, ToolExecutionError
from ..database.products import ProductDatabase
from ..models.product import Product

logger = logging.getLogger(__name__)

MAX_QUANTITY = 999
SEARCH_RESULT_LIMIT = 10


def clamp_quantity(value: Any) -> int:
    """Clamp a requested quantity to 1..999, defaulting to 1"""
    try:
        quantity = int(float(value))
    except (TypeError, ValueError):
        return 1
    return max(1, min(MAX_QUANTITY, quantity))


# ==================== Tool inputs ====================

class SearchProductsInput(BaseModel):
    query: str = Field(description="The search query to find products")


class ProductDetails(BaseModel):
    name: str = Field(min_length=1)
    category: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    status: Optional[str] = None
    images: Optional[list[str]] = None


class RegisterProductInput(BaseModel):
    product_details: ProductDetails = Field(description="Product fields to register")


class CartItemInput(BaseModel):
    productId: str = Field(description="Product id")
    quantity: float = Field(default=1, description="Quantity to add or remove (1-999)")


class NoInput(BaseModel):
    pass


class PaymentMethodInput(BaseModel):
    method_details: dict[str, Any] = Field(
        description="Payment method details (e.g., type, brand, last4, etc.)"
    )


class ShippingAddressInput(BaseModel):
    address_details: dict[str, Any] = Field(
        description="Shipping address details (e.g., name, street, city, postal_code, country)"
    )


@dataclass(frozen=True)
class Tool:
    """A tool the assistant may call"""
    name: str
    description: str
    input_model: type[BaseModel]
    execute: Callable[[BaseModel], dict]

    def schema(self) -> dict:
        """OpenAI function-calling definition"""
        parameters = self.input_model.model_json_schema()
        parameters.pop("title", None)
        parameters.setdefault("properties", {})
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": parameters,
            },
        }


class ToolRegistry:
    """Named tools bound to one product catalog"""

    def __init__(self, tools: list[Tool]):
        self._tools = {t.name: t for t in tools}

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def schemas(self) -> list[dict]:
        return [t.schema() for t in self._tools.values()]

    def execute(self, name: str, arguments: Any) -> dict:
        """
        Validate arguments and run a tool.

        Raises:
            ToolExecutionError: unknown tool, invalid arguments, or a failure
                inside the tool
        """
        tool = self._tools.get(name)
        if tool is None:
            raise ToolExecutionError(f"Unknown tool: {name}")
        try:
            params = tool.input_model.model_validate(arguments or {})
        except ValidationError as e:
            raise ToolExecutionError(f"Invalid input for {name}: {e.errors()[0]['msg']}") from e
        return tool.execute(params)


def _product_summary(product: Product) -> dict:
    return product.model_dump(include={"id", "name", "category", "description", "price", "status", "images"})


def build_toolset(product_db: ProductDatabase) -> ToolRegistry:
    """Create the assistant's tools over a product catalog"""

    def search_products(params: SearchProductsInput) -> dict:
        logger.info(f'[Tool] Searching products for: "{params.query}"')
        found = product_db.search_products(params.query)
        logger.info(f"[Tool] Found {len(found)} products")
        if not found:
            message = f'No products found for "{params.query}"'
        else:
            plural = "" if len(found) == 1 else "s"
            message = f'Found {len(found)} product{plural} matching "{params.query}"'
        return {
            "count": len(found),
            "products": [_product_summary(p) for p in found[:SEARCH_RESULT_LIMIT]],
            "message": message,
        }

    def register_product(params: RegisterProductInput) -> dict:
        logger.info("[Tool] Registering new product")
        details = params.product_details.model_dump(exclude_none=True)
        try:
            product = product_db.add_product(details)
        except InvalidProductError as e:
            raise ToolExecutionError(str(e)) from e
        return {
            "success": True,
            "message": f"Registered new product: {product.name}",
            "product": _product_summary(product),
        }

    def add_to_cart(params: CartItemInput) -> dict:
        logger.info(f"[Tool] addToCart productId={params.productId} quantity={params.quantity}")
        product = product_db.get_product(params.productId)
        if not product:
            return {"success": False, "message": f"Product not found: {params.productId}"}
        quantity = clamp_quantity(params.quantity)
        return {
            "success": True,
            "message": f"Added {quantity} × {product.name} to cart",
            "quantity": quantity,
            "product": _product_summary(product),
        }

    def remove_from_cart(params: CartItemInput) -> dict:
        logger.info(f"[Tool] removeFromCart productId={params.productId} quantity={params.quantity}")
        product = product_db.get_product(params.productId)
        if not product:
            return {"success": False, "message": f"Product not found: {params.productId}"}
        quantity = clamp_quantity(params.quantity)
        return {
            "success": True,
            "action": "remove",
            "message": f"Removed {quantity} × {product.name} from cart",
            "quantity": quantity,
            "product": _product_summary(product),
        }

    def view_cart(params: NoInput) -> dict:
        logger.info("[Tool] Viewing cart")
        return {"success": True, "action": "view", "message": "Opening cart"}

    def add_payment_method(params: PaymentMethodInput) -> dict:
        logger.info("[Tool] Adding payment method")
        return {"success": True, "action": "add-payment-method", "method_details": params.method_details}

    def change_payment_method(params: PaymentMethodInput) -> dict:
        logger.info("[Tool] Changing payment method")
        return {"success": True, "action": "change-payment-method", "method_details": params.method_details}

    def remove_payment_method(params: NoInput) -> dict:
        logger.info("[Tool] Removing payment method")
        return {"success": True, "action": "remove-payment-method"}

    def add_shipping_address(params: ShippingAddressInput) -> dict:
        logger.info("[Tool] Adding shipping address")
        return {"success": True, "action": "add-shipping-address", "address_details": params.address_details}

    def change_shipping_address(params: ShippingAddressInput) -> dict:
        logger.info("[Tool] Changing shipping address")
        return {"success": True, "action": "change-shipping-address", "address_details": params.address_details}

    def remove_shipping_address(params: NoInput) -> dict:
        logger.info("[Tool] Removing shipping address")
        return {"success": True, "action": "remove-shipping-address"}

    def finalize_purchase(params: NoInput) -> dict:
        logger.info("[Tool] Finalizing purchase")
        return {
            "success": True,
            "action": "finalize-purchase",
            "message": "Please review your order and confirm.",
        }

    tools = [
        Tool("searchProducts", "Search items in the procurement catalog by query.",
             SearchProductsInput, search_products),
        Tool("registerProduct", "Register a new product into the procurement catalog.",
             RegisterProductInput, register_product),
        Tool("addToCart", "Add an item to the cart with an optional quantity (defaults to 1).",
             CartItemInput, add_to_cart),
        Tool("removeFromCart",
             "Remove an item (or quantity) from the cart. Client will perform the actual removal.",
             CartItemInput, remove_from_cart),
        Tool("viewCart", "View the current cart. Signals the client UI to open the cart panel.",
             NoInput, view_cart),
        Tool("addPaymentMethod", "Add a payment method for checkout (client will persist).",
             PaymentMethodInput, add_payment_method),
        Tool("changePaymentMethod", "Change the currently selected payment method.",
             PaymentMethodInput, change_payment_method),
        Tool("removePaymentMethod", "Remove the current payment method.",
             NoInput, remove_payment_method),
        Tool("addShippingAddress", "Add a shipping address for checkout (client will persist).",
             ShippingAddressInput, add_shipping_address),
        Tool("changeShippingAddress", "Change the current shipping address.",
             ShippingAddressInput, change_shipping_address),
        Tool("removeShippingAddress", "Remove the current shipping address.",
             NoInput, remove_shipping_address),
        Tool("finalizePurchase",
             "Finalize the purchase: the client will display a summary and confirmation UI.",
             NoInput, finalize_purchase),
    ]
    return ToolRegistry(tools)
