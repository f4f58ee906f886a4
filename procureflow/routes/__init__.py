# API Routes

from .products import router as products_router
from .checkout import router as checkout_router
from .chat import router as chat_router, conversations_router
from .transcribe import router as transcribe_router

__all__ = [
    "products_router",
    "checkout_router",
    "chat_router",
    "conversations_router",
    "transcribe_router",
]
