# Client library

from .cart import CartItem, CartStore, PreferenceStore
from .ledger import ToolCallLedger
from .effects import CheckoutDetails, ToolEffects
from .views import RenderContext, render_message, render_part
from .api_client import ProcureFlowClient, SearchResult
from .session import ChatSession, ChatStatus

__all__ = [
    "CartItem",
    "CartStore",
    "PreferenceStore",
    "ToolCallLedger",
    "CheckoutDetails",
    "ToolEffects",
    "RenderContext",
    "render_message",
    "render_part",
    "ProcureFlowClient",
    "SearchResult",
    "ChatSession",
    "ChatStatus",
]
