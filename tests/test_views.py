"""
Tests for message part view models.
"""

import pytest

from procureflow.client.cart import CartStore
from procureflow.client.effects import CheckoutDetails
from procureflow.client.views import (
    CartSummaryView,
    CheckoutSummaryView,
    FileView,
    ProductGridView,
    PurchaseStatus,
    ReasoningView,
    RegisteredProductView,
    RenderContext,
    TextView,
    ToolCallView,
    render_message,
    render_part,
)
from procureflow.database.products import SEED_PRODUCTS
from procureflow.models.chat import (
    TOOL_NAMES,
    ChatMessage,
    FilePart,
    ReasoningPart,
    TextPart,
    ToolPart,
    ToolState,
)

CABLE, _, MOUSE = SEED_PRODUCTS


@pytest.fixture
def cart():
    return CartStore()


@pytest.fixture
def ctx(cart):
    return RenderContext(cart=cart)


def done_tool(name, output, call_id="c1"):
    return ToolPart(
        type=f"tool-{name}",
        tool_call_id=call_id,
        state=ToolState.OUTPUT_AVAILABLE,
        input={},
        output=output,
    )


class TestContentParts:

    def test_text(self, ctx):
        assert render_part(TextPart(text="hi", state="streaming"), ctx) == [TextView(text="hi", streaming=True)]

    def test_reasoning(self, ctx):
        assert render_part(ReasoningPart(text="hmm", state="done"), ctx) == [ReasoningView(text="hmm")]

    @pytest.mark.parametrize("media_type, kind", [
        ("image/png", "image"), ("audio/webm", "audio"), ("application/pdf", "link"),
    ])
    def test_file_kinds(self, ctx, media_type, kind):
        part = FilePart(media_type=media_type, url="https://example.com/f", filename="f")
        (view,) = render_part(part, ctx)
        assert isinstance(view, FileView)
        assert view.kind == kind

    def test_unknown_part_is_rejected(self, ctx):
        with pytest.raises(ValueError):
            render_part({"type": "text", "text": "raw dict"}, ctx)


class TestToolParts:

    @pytest.mark.parametrize("name", TOOL_NAMES)
    def test_every_tool_has_a_view(self, ctx, name):
        part = ToolPart(type=f"tool-{name}", tool_call_id="c1", state=ToolState.INPUT_STREAMING)
        views = render_part(part, ctx)
        assert isinstance(views[0], ToolCallView)
        assert views[0].tool_name == name

    def test_search_results_grid(self, ctx):
        output = {"count": 1, "products": [MOUSE.model_dump()], "message": "Found 1 product"}
        header, grid = render_part(done_tool("searchProducts", output), ctx)
        assert header.output == output
        assert isinstance(grid, ProductGridView)
        assert grid.products == [MOUSE]

    def test_search_without_results_has_no_grid(self, ctx):
        views = render_part(done_tool("searchProducts", {"count": 0, "products": [], "message": ""}), ctx)
        assert len(views) == 1

    def test_registered_product(self, ctx):
        output = {"success": True, "message": "Registered new product: Mouse", "product": MOUSE.model_dump()}
        _, view = render_part(done_tool("registerProduct", output), ctx)
        assert isinstance(view, RegisteredProductView)
        assert view.product == MOUSE

    def test_error_state(self, ctx):
        part = ToolPart(type="tool-viewCart", tool_call_id="c1", state=ToolState.OUTPUT_ERROR, error_text="boom")
        (header,) = render_part(part, ctx)
        assert header.error_text == "boom"
        assert header.output is None


class TestLiveCartViews:
    """viewCart and finalizePurchase read the current cart."""

    def test_view_cart_tracks_live_cart(self, cart, ctx):
        message = ChatMessage(id="a1", role="assistant", parts=[done_tool("viewCart", {"success": True})])
        cart.add_to_cart(CABLE, 2)
        summary = render_message(message, ctx)[1]
        assert isinstance(summary, CartSummaryView)
        assert summary.total_count == 2
        assert summary.live is True

        cart.add_to_cart(MOUSE)
        assert render_message(message, ctx)[1].total_count == 3

    def test_stale_flag(self, cart):
        stale = RenderContext(cart=cart, live=False)
        _, summary = render_part(done_tool("viewCart", {"success": True}), stale)
        assert summary.live is False

    def test_checkout_summary(self, cart):
        cart.add_to_cart(CABLE)
        ctx = RenderContext(cart=cart, checkout=CheckoutDetails())
        _, summary = render_part(done_tool("finalizePurchase", {"success": True}), ctx)
        assert isinstance(summary, CheckoutSummaryView)
        assert summary.total == pytest.approx(12.99)
        assert summary.shipping_address == "John Doe, 123 Main St, Springfield, USA"
        assert summary.payment_method == "Visa •••• 4242"
        assert summary.can_confirm is True
        assert summary.status is None

    def test_confirm_disabled_on_empty_cart(self, ctx):
        _, summary = render_part(done_tool("finalizePurchase", {"success": True}), ctx)
        assert summary.can_confirm is False

    def test_confirmed_status(self, cart):
        cart.add_to_cart(CABLE)
        ctx = RenderContext(cart=cart, purchase_status={"c1": PurchaseStatus.CONFIRMED})
        _, summary = render_part(done_tool("finalizePurchase", {"success": True}), ctx)
        assert summary.status == PurchaseStatus.CONFIRMED
        assert summary.can_confirm is False
