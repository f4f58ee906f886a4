"""
View models for chat messages

Maps every message part to the view model describing what the chat UI shows
for it. Dispatch is exhaustive: each part class and each tool name has a
renderer, and anything else is rejected.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Union

from pydantic import ValidationError

from ..models.chat import (
    TOOL_NAMES,
    ChatMessage,
    FilePart,
    ReasoningPart,
    TextPart,
    ToolPart,
    ToolState,
)
from ..models.product import Product
from .cart import CartItem, CartStore
from .effects import CheckoutDetails


class PurchaseStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELED = "canceled"


@dataclass
class TextView:
    text: str
    streaming: bool = False


@dataclass
class ReasoningView:
    text: str
    streaming: bool = False


@dataclass
class FileView:
    kind: str  # image, audio or link
    url: str
    media_type: str
    filename: Optional[str] = None


@dataclass
class ToolCallView:
    """Header and raw input/output of a tool call"""
    tool_name: str
    tool_call_id: str
    state: ToolState
    input: Any = None
    output: Any = None
    error_text: Optional[str] = None


@dataclass
class ProductGridView:
    tool_call_id: str
    products: list[Product]
    message: str = ""


@dataclass
class RegisteredProductView:
    tool_call_id: str
    message: str
    product: Optional[Product] = None


@dataclass
class CartSummaryView:
    """Current cart contents; ``live`` is False for calls from loaded history"""
    items: list[CartItem]
    total_count: int
    total_amount: float
    live: bool


@dataclass
class CheckoutSummaryView:
    tool_call_id: str
    items: list[CartItem]
    total: float
    shipping_address: str
    payment_method: str
    live: bool
    status: Optional[PurchaseStatus] = None
    can_confirm: bool = False


View = Union[
    TextView,
    ReasoningView,
    FileView,
    ToolCallView,
    ProductGridView,
    RegisteredProductView,
    CartSummaryView,
    CheckoutSummaryView,
]


@dataclass
class RenderContext:
    """Live client state a message is rendered against"""
    cart: CartStore
    checkout: CheckoutDetails = field(default_factory=CheckoutDetails)
    live: bool = True
    purchase_status: dict[str, PurchaseStatus] = field(default_factory=dict)


# ==================== Content parts ====================

def _render_text(part: TextPart, ctx: RenderContext) -> list[View]:
    return [TextView(text=part.text, streaming=part.state == "streaming")]


def _render_reasoning(part: ReasoningPart, ctx: RenderContext) -> list[View]:
    return [ReasoningView(text=part.text, streaming=part.state == "streaming")]


def _render_file(part: FilePart, ctx: RenderContext) -> list[View]:
    if part.media_type.startswith("image/"):
        kind = "image"
    elif part.media_type.startswith("audio/"):
        kind = "audio"
    else:
        kind = "link"
    return [FileView(kind=kind, url=part.url, media_type=part.media_type, filename=part.filename)]


# ==================== Tool parts ====================

def _tool_header(part: ToolPart) -> ToolCallView:
    return ToolCallView(
        tool_name=part.tool_name,
        tool_call_id=part.tool_call_id,
        state=part.state,
        input=part.input,
        output=part.output if part.state == ToolState.OUTPUT_AVAILABLE else None,
        error_text=part.error_text,
    )


def _products(raw: Any) -> list[Product]:
    products = []
    for item in raw or []:
        try:
            products.append(Product.model_validate(item))
        except ValidationError:
            continue
    return products


def _render_generic_tool(part: ToolPart, ctx: RenderContext) -> list[View]:
    return [_tool_header(part)]


def _render_search(part: ToolPart, ctx: RenderContext) -> list[View]:
    views: list[View] = [_tool_header(part)]
    if part.state == ToolState.OUTPUT_AVAILABLE and isinstance(part.output, dict):
        products = _products(part.output.get("products"))
        if products:
            views.append(ProductGridView(
                tool_call_id=part.tool_call_id,
                products=products,
                message=part.output.get("message", ""),
            ))
    return views


def _render_register(part: ToolPart, ctx: RenderContext) -> list[View]:
    views: list[View] = [_tool_header(part)]
    if part.state == ToolState.OUTPUT_AVAILABLE and isinstance(part.output, dict):
        registered = _products([part.output.get("product")] if part.output.get("product") else [])
        views.append(RegisteredProductView(
            tool_call_id=part.tool_call_id,
            message=part.output.get("message", ""),
            product=registered[0] if registered else None,
        ))
    return views


def _render_view_cart(part: ToolPart, ctx: RenderContext) -> list[View]:
    views: list[View] = [_tool_header(part)]
    if part.state == ToolState.OUTPUT_AVAILABLE:
        views.append(CartSummaryView(
            items=ctx.cart.items,
            total_count=ctx.cart.total_count,
            total_amount=ctx.cart.total_amount,
            live=ctx.live,
        ))
    return views


def _render_finalize(part: ToolPart, ctx: RenderContext) -> list[View]:
    views: list[View] = [_tool_header(part)]
    if part.state == ToolState.OUTPUT_AVAILABLE:
        status = ctx.purchase_status.get(part.tool_call_id)
        views.append(CheckoutSummaryView(
            tool_call_id=part.tool_call_id,
            items=ctx.cart.items,
            total=ctx.cart.total_amount,
            shipping_address=ctx.checkout.shipping_label(),
            payment_method=ctx.checkout.payment_label(),
            live=ctx.live,
            status=status,
            can_confirm=status is None and len(ctx.cart) > 0,
        ))
    return views


_TOOL_RENDERERS: dict[str, Callable[[ToolPart, RenderContext], list[View]]] = {
    "searchProducts": _render_search,
    "addToCart": _render_generic_tool,
    "removeFromCart": _render_generic_tool,
    "viewCart": _render_view_cart,
    "registerProduct": _render_register,
    "addPaymentMethod": _render_generic_tool,
    "changePaymentMethod": _render_generic_tool,
    "removePaymentMethod": _render_generic_tool,
    "addShippingAddress": _render_generic_tool,
    "changeShippingAddress": _render_generic_tool,
    "removeShippingAddress": _render_generic_tool,
    "finalizePurchase": _render_finalize,
}

if set(_TOOL_RENDERERS) != set(TOOL_NAMES):
    raise RuntimeError("Tool renderers out of sync with TOOL_NAMES")


def _render_tool(part: ToolPart, ctx: RenderContext) -> list[View]:
    renderer = _TOOL_RENDERERS.get(part.tool_name)
    if renderer is None:
        raise ValueError(f"No view for tool: {part.tool_name}")
    return renderer(part, ctx)


_PART_RENDERERS: dict[type, Callable[[Any, RenderContext], list[View]]] = {
    TextPart: _render_text,
    ReasoningPart: _render_reasoning,
    FilePart: _render_file,
    ToolPart: _render_tool,
}


def render_part(part: Any, ctx: RenderContext) -> list[View]:
    """
    Views for one message part.

    Raises:
        ValueError: the part is not one of the known part classes
    """
    renderer = _PART_RENDERERS.get(type(part))
    if renderer is None:
        raise ValueError(f"No view for part: {type(part).__name__}")
    return renderer(part, ctx)


def render_message(message: ChatMessage, ctx: RenderContext) -> list[View]:
    views: list[View] = []
    for part in message.parts:
        views.extend(render_part(part, ctx))
    return views
