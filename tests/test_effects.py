"""
Tests for exactly-once tool effects.
"""

import pytest

from procureflow.client.cart import CartStore
from procureflow.client.effects import CheckoutDetails, ToolEffects
from procureflow.client.ledger import ToolCallLedger
from procureflow.database.products import SEED_PRODUCTS
from procureflow.models.chat import ChatMessage, ToolPart, ToolState

CABLE = SEED_PRODUCTS[0]


def tool_message(message_id, tool_name, call_id, output, state=ToolState.OUTPUT_AVAILABLE):
    part = ToolPart(
        type=f"tool-{tool_name}",
        tool_call_id=call_id,
        state=state,
        input={},
        output=output if state == ToolState.OUTPUT_AVAILABLE else None,
    )
    return ChatMessage(id=message_id, role="assistant", parts=[part])


def add_output(quantity=1, success=True):
    if not success:
        return {"success": False, "message": "Product not found: 99"}
    return {
        "success": True,
        "message": f"Added {quantity} × {CABLE.name} to cart",
        "quantity": quantity,
        "product": CABLE.model_dump(),
    }


@pytest.fixture
def cart():
    return CartStore()


@pytest.fixture
def effects(cart):
    return ToolEffects(cart, CheckoutDetails(), ToolCallLedger())


class TestToolCallLedger:

    def test_claim_once(self):
        ledger = ToolCallLedger()
        assert ledger.claim("call-1") is True
        assert ledger.claim("call-1") is False
        assert "call-1" in ledger

    def test_reset(self):
        ledger = ToolCallLedger()
        ledger.claim("call-1")
        ledger.reset()
        assert len(ledger) == 0


class TestAddToCartEffect:
    """The cart mutates exactly once per tool call id."""

    def test_reprocessing_applies_once(self, effects, cart):
        message = tool_message("a1", "addToCart", "call-1", add_output(2))
        assert effects.apply([message]) == ["call-1"]
        assert effects.apply([message]) == []
        effects.apply([message, message])
        assert cart.get(CABLE.id).quantity == 2

    def test_distinct_calls_accumulate(self, effects, cart):
        effects.apply([
            tool_message("a1", "addToCart", "call-1", add_output(1)),
            tool_message("a2", "addToCart", "call-2", add_output(3)),
        ])
        assert cart.get(CABLE.id).quantity == 4

    def test_waits_for_output(self, effects, cart):
        pending = tool_message("a1", "addToCart", "call-1", None, state=ToolState.INPUT_AVAILABLE)
        assert effects.apply([pending]) == []
        assert len(cart) == 0
        done = tool_message("a1", "addToCart", "call-1", add_output(1))
        assert effects.apply([done]) == ["call-1"]

    def test_failed_lookup_changes_nothing(self, effects, cart):
        effects.apply([tool_message("a1", "addToCart", "call-1", add_output(success=False))])
        assert len(cart) == 0

    def test_history_is_not_replayed(self, cart):
        history = tool_message("old", "addToCart", "call-1", add_output(1))
        effects = ToolEffects(cart, CheckoutDetails(), ToolCallLedger(), initial_message_ids=["old"])
        assert effects.apply([history]) == []
        assert len(cart) == 0
        assert effects.is_live(history) is False

    def test_failing_effect_is_recorded(self, effects, cart):
        broken = tool_message("a1", "addToCart", "call-1", {"success": True, "quantity": 1})
        assert effects.apply([broken]) == []
        assert "call-1" in effects.ledger
        assert len(cart) == 0


class TestOtherEffects:

    def test_remove_from_cart(self, effects, cart):
        cart.add_to_cart(CABLE, 3)
        output = {"success": True, "action": "remove", "quantity": 2, "product": CABLE.model_dump()}
        effects.apply([tool_message("a1", "removeFromCart", "call-1", output)])
        assert cart.get(CABLE.id).quantity == 1

    def test_view_cart_opens_panel(self, effects, cart):
        effects.apply([tool_message("a1", "viewCart", "call-1", {"success": True, "action": "view"})])
        assert cart.is_open is True

    def test_payment_and_shipping(self, effects):
        effects.apply([
            tool_message("a1", "addPaymentMethod", "call-1",
                         {"success": True, "method_details": {"brand": "Mastercard", "last4": "1111"}}),
            tool_message("a2", "addShippingAddress", "call-2",
                         {"success": True, "address_details": {"name": "Ada", "city": "London"}}),
        ])
        assert effects.checkout.payment_label() == "Mastercard •••• 1111"
        assert effects.checkout.shipping_label() == "Ada, London"

        effects.apply([tool_message("a3", "removePaymentMethod", "call-3", {"success": True})])
        assert effects.checkout.payment_method is None
        assert effects.checkout.payment_label() == "Visa •••• 4242"

    def test_search_has_no_effect(self, effects):
        message = tool_message("a1", "searchProducts", "call-1", {"count": 0, "products": [], "message": ""})
        assert effects.apply([message]) == []
        assert "call-1" not in effects.ledger
