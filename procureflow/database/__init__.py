# Database modules

from .products import ProductDatabase, SEED_PRODUCTS
from .chats import ChatStore, generate_chat_id

__all__ = [
    "ProductDatabase",
    "SEED_PRODUCTS",
    "ChatStore",
    "generate_chat_id",
]
