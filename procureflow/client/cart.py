"""Client-held shopping cart"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from ..models.product import Product

logger = logging.getLogger(__name__)

PINNED_KEY = "cart:pinned"


class PreferenceStore:
    """
    Small durable key/value store backed by one JSON file.

    Read and write failures are logged and otherwise ignored: a preference
    that cannot be read falls back to its default.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def get(self, key: str, default: Any = None) -> Any:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return default
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable preferences at {self.path}: {e}")
            return default
        if not isinstance(data, dict):
            return default
        return data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        data: dict = {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                loaded = json.load(f)
            if isinstance(loaded, dict):
                data = loaded
        except FileNotFoundError:
            pass
        except (OSError, ValueError) as e:
            logger.warning(f"Overwriting unreadable preferences at {self.path}: {e}")
        data[key] = value
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f)
        except OSError as e:
            logger.warning(f"Could not persist preference {key}: {e}")


@dataclass
class CartItem:
    """A product and how many of it"""
    product: Product
    quantity: int = 1

    @property
    def subtotal(self) -> float:
        return self.product.price * self.quantity


class CartStore:
    """
    In-memory cart keyed by product id, in insertion order.

    Only the pinned flag survives a restart; items and the open flag live as
    long as the store.
    """

    def __init__(self, preferences: Optional[PreferenceStore] = None):
        self.preferences = preferences
        self._items: dict[str, CartItem] = {}
        self.pinned = self._load_pinned()
        self.is_open = False

    @property
    def items(self) -> list[CartItem]:
        return list(self._items.values())

    def get(self, product_id: str) -> Optional[CartItem]:
        return self._items.get(product_id)

    def __len__(self) -> int:
        return len(self._items)

    # ==================== Items ====================

    def add_to_cart(self, product: Product, quantity: int = 1) -> CartItem:
        """Add a product, increasing the quantity if it is already in the cart"""
        was_empty = not self._items
        item = self._items.get(product.id)
        if item:
            item.quantity += quantity
        else:
            item = self._items[product.id] = CartItem(product=product, quantity=quantity)
        if was_empty:
            self.is_open = True
        return item

    def increment(self, product_id: str) -> None:
        item = self._items.get(product_id)
        if item:
            item.quantity += 1

    def decrement(self, product_id: str) -> None:
        """Lower the quantity by one, dropping the item at zero"""
        self.reduce(product_id, 1)

    def reduce(self, product_id: str, quantity: int) -> None:
        item = self._items.get(product_id)
        if not item:
            return
        item.quantity -= quantity
        if item.quantity <= 0:
            del self._items[product_id]

    def remove_from_cart(self, product_id: str) -> None:
        self._items.pop(product_id, None)

    def clear_cart(self) -> None:
        self._items.clear()

    @property
    def total_count(self) -> int:
        return sum(item.quantity for item in self._items.values())

    @property
    def total_amount(self) -> float:
        return sum(item.subtotal for item in self._items.values())

    # ==================== Panel ====================

    def open(self) -> None:
        self.is_open = True

    def close(self) -> None:
        self.is_open = False

    def toggle(self) -> None:
        """Flip the panel; a pinned cart stays open"""
        self.is_open = True if self.pinned else not self.is_open

    def toggle_pinned(self) -> None:
        self.pinned = not self.pinned
        if self.preferences:
            self.preferences.set(PINNED_KEY, self.pinned)
        if self.pinned:
            self.is_open = True

    def _load_pinned(self) -> bool:
        if not self.preferences:
            return False
        return self.preferences.get(PINNED_KEY, False) is True
