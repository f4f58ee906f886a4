"""
Client-side tool effects

Cart, payment and shipping tools only describe an intent on the server.
The client applies that intent when the tool result arrives, once per tool
call, and only for messages produced during the current session: history
loaded at startup is never replayed.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from pydantic import ValidationError

from ..models.chat import ChatMessage, ToolPart, ToolState
from ..models.product import Product
from .cart import CartStore
from .ledger import ToolCallLedger

logger = logging.getLogger(__name__)

DEFAULT_SHIPPING_ADDRESS = "John Doe, 123 Main St, Springfield, USA"
DEFAULT_PAYMENT_METHOD = "Visa •••• 4242"


@dataclass
class CheckoutDetails:
    """Payment method and shipping address chosen during the session"""
    payment_method: Optional[dict] = None
    shipping_address: Optional[dict] = None

    def payment_label(self) -> str:
        method = self.payment_method
        if not method:
            return DEFAULT_PAYMENT_METHOD
        brand = method.get("brand") or method.get("type") or "Card"
        last4 = method.get("last4")
        return f"{brand} •••• {last4}" if last4 else str(brand)

    def shipping_label(self) -> str:
        address = self.shipping_address
        if not address:
            return DEFAULT_SHIPPING_ADDRESS
        keys = ("name", "street", "city", "postal_code", "country")
        parts = [str(address[k]) for k in keys if address.get(k)]
        return ", ".join(parts) or DEFAULT_SHIPPING_ADDRESS


class ToolEffects:
    """Applies tool results to the cart and checkout details exactly once"""

    def __init__(
        self,
        cart: CartStore,
        checkout: CheckoutDetails,
        ledger: ToolCallLedger,
        initial_message_ids: Iterable[str] = (),
    ):
        self.cart = cart
        self.checkout = checkout
        self.ledger = ledger
        self.initial_message_ids = frozenset(initial_message_ids)
        self._handlers: dict[str, Callable[[Any], None]] = {
            "addToCart": self._add_to_cart,
            "removeFromCart": self._remove_from_cart,
            "viewCart": self._view_cart,
            "addPaymentMethod": self._set_payment_method,
            "changePaymentMethod": self._set_payment_method,
            "removePaymentMethod": self._clear_payment_method,
            "addShippingAddress": self._set_shipping_address,
            "changeShippingAddress": self._set_shipping_address,
            "removeShippingAddress": self._clear_shipping_address,
        }

    def is_live(self, message: ChatMessage) -> bool:
        """True for messages produced after the session started"""
        return message.id not in self.initial_message_ids

    def apply(self, messages: Iterable[ChatMessage]) -> list[str]:
        """
        Apply every pending effect in ``messages``.

        Safe to call repeatedly with the same messages. Returns the tool call
        ids applied by this call.
        """
        applied: list[str] = []
        for message in messages:
            if message.role != "assistant" or not self.is_live(message):
                continue
            for part in message.tool_parts():
                if self._apply_part(part):
                    applied.append(part.tool_call_id)
        return applied

    def _apply_part(self, part: ToolPart) -> bool:
        handler = self._handlers.get(part.tool_name)
        if handler is None or part.state != ToolState.OUTPUT_AVAILABLE:
            return False
        # Claimed before running, so a failing effect is not retried
        if not self.ledger.claim(part.tool_call_id):
            return False
        try:
            handler(part.output)
        except (AttributeError, KeyError, TypeError, ValueError, ValidationError) as e:
            logger.warning(f"Could not apply {part.tool_name} ({part.tool_call_id}): {e}")
            return False
        return True

    # ==================== Handlers ====================

    def _add_to_cart(self, output: Any) -> None:
        if not output or not output.get("success"):
            return
        product = Product.model_validate(output["product"])
        self.cart.add_to_cart(product, int(output.get("quantity", 1)))

    def _remove_from_cart(self, output: Any) -> None:
        if not output or not output.get("success"):
            return
        self.cart.reduce(output["product"]["id"], int(output.get("quantity", 1)))

    def _view_cart(self, output: Any) -> None:
        self.cart.open()

    def _set_payment_method(self, output: Any) -> None:
        self.checkout.payment_method = dict(output["method_details"])

    def _clear_payment_method(self, output: Any) -> None:
        self.checkout.payment_method = None

    def _set_shipping_address(self, output: Any) -> None:
        self.checkout.shipping_address = dict(output["address_details"])

    def _clear_shipping_address(self, output: Any) -> None:
        self.checkout.shipping_address = None
