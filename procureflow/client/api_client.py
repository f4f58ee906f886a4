"""
ProcureFlow API Client

HTTP client for the ProcureFlow server: chat lifecycle, reply streaming,
catalog search, product registration and checkout.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Optional

import httpx

from ..chat.events import iter_sse_events
from ..core.errors import ChatRequestError
from ..models.chat import ChatMessage
from ..models.checkout import CheckoutResponse
from ..models.product import Product, RegisterProductResponse
from .cart import CartStore

logger = logging.getLogger(__name__)

SEARCH_FAILED_MESSAGE = "Search failed. Please try again."
CHECKOUT_FAILED_MESSAGE = "Checkout failed. Please try again."
REGISTER_FAILED_MESSAGE = "Could not register the product. Please try again."


@dataclass
class SearchResult:
    """Catalog search outcome; failures carry a message instead of raising"""
    products: list[Product] = field(default_factory=list)
    query: Optional[str] = None
    error: Optional[str] = None

    @property
    def count(self) -> int:
        return len(self.products)


class ProcureFlowClient:
    """Client for the ProcureFlow HTTP API"""

    def __init__(
        self,
        base_url: str = "http://localhost:4000",
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        """
        Initialize the client.

        Args:
            base_url: Server base URL
            http_client: Pre-configured client, e.g. with a mock transport
            timeout: Request timeout when no client is given
        """
        self.base_url = base_url.rstrip("/")
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Close HTTP client"""
        await self._http_client.aclose()

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def create_chat(self) -> str:
        """Create an empty chat and return its id"""
        response = await self._http_client.post(self._url("/api/chat/create"))
        response.raise_for_status()
        return response.json()["id"]

    async def load_chat(self, chat_id: str) -> list[ChatMessage]:
        """Load a chat's history; unknown chats load as empty"""
        response = await self._http_client.get(self._url(f"/api/chat/{chat_id}"))
        if response.status_code == 404:
            return []
        response.raise_for_status()
        return [ChatMessage.model_validate(m) for m in response.json().get("messages", [])]

    async def stream_chat(self, chat_id: str, message: ChatMessage) -> AsyncIterator[dict]:
        """
        Post a user message and yield the reply's stream events.

        Yields nothing when the server answers 204 (already answered).

        Raises:
            ChatRequestError: the server answered with an error status
            httpx.HTTPError: network failure
        """
        body = {"message": message.dump(), "id": chat_id}
        async with self._http_client.stream("POST", self._url("/api/chat"), json=body) as response:
            if response.status_code == 204:
                logger.info(f"Message {message.id} was already answered")
                return
            if response.status_code >= 400:
                await response.aread()
                detail = None
                try:
                    detail = response.json().get("error")
                except ValueError:
                    detail = response.text or None
                logger.error(f"Chat request failed: {response.status_code} - {detail}")
                raise ChatRequestError(response.status_code, detail)

            async for event in iter_sse_events(response.aiter_lines()):
                yield event

    async def search_products(self, query: str) -> SearchResult:
        """Search the catalog; network and server errors become ``result.error``"""
        try:
            response = await self._http_client.get(self._url("/api/products"), params={"q": query})
            response.raise_for_status()
            data = response.json()
            products = [Product.model_validate(p) for p in data.get("data", [])]
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Product search failed: {e}")
            return SearchResult(query=query, error=SEARCH_FAILED_MESSAGE)
        return SearchResult(products=products, query=query)

    async def register_product(self, payload: dict[str, Any]) -> RegisterProductResponse:
        """
        Register a product in the catalog.

        Failures come back as ``success=False`` with an error message.
        """
        try:
            response = await self._http_client.post(self._url("/api/register"), json=payload)
            if response.status_code == 400:
                return RegisterProductResponse.model_validate(response.json())
            response.raise_for_status()
            result = RegisterProductResponse.model_validate(response.json())
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Product registration failed: {e}")
            return RegisterProductResponse(success=False, error=REGISTER_FAILED_MESSAGE)
        logger.info(f"Registered product {result.product.id if result.product else '?'}")
        return result

    async def checkout(self, cart: CartStore) -> CheckoutResponse:
        """
        Place an order for everything in the cart.

        The cart is cleared only when the server confirms the order; on
        failure it is left untouched and ``success`` is False.
        """
        lines = [
            {"product": item.product.model_dump(), "quantity": item.quantity}
            for item in cart.items
        ]
        try:
            response = await self._http_client.post(self._url("/api/checkout"), json={"cart": lines})
            response.raise_for_status()
            result = CheckoutResponse.model_validate(response.json())
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Checkout failed: {e}")
            return CheckoutResponse(success=False, message=CHECKOUT_FAILED_MESSAGE, total=0.0)

        if result.success:
            cart.clear_cart()
        return result
