"""Product registration and checkout API routes"""

import json
import logging
from typing import Optional
from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from ..core.errors import InvalidProductError
from ..models.checkout import CheckoutRequest, CheckoutResponse
from ..models.product import RegisterProductResponse
from ..database.products import ProductDatabase
from .dependencies import get_product_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Checkout"])


@router.post("/register", status_code=201, response_model=RegisterProductResponse,
             response_model_exclude_none=True)
async def register_product(
    request: Request,
    product_db: ProductDatabase = Depends(get_product_db),
):
    """
    Register a product in the catalog.

    Every field is optional; an empty or missing body registers a product
    made entirely of defaults.
    """
    raw = await request.body()
    try:
        payload = json.loads(raw) if raw.strip() else {}
        product = product_db.add_product(payload)
    except (ValueError, InvalidProductError) as e:
        logger.warning(f"Rejected product registration: {e}")
        return JSONResponse(status_code=400, content={"success": False, "error": str(e) or "invalid"})

    return RegisterProductResponse(success=True, product=product)


@router.post("/checkout", response_model=CheckoutResponse)
async def checkout(request: Optional[CheckoutRequest] = Body(None)):
    """
    Confirm an order for the posted cart.

    Payment is mocked and always succeeds.
    """
    lines = request.cart if request else []
    total = round(sum(line.price * line.quantity for line in lines), 2)
    logger.info(f"Checkout confirmed: {len(lines)} lines, total ${total}")
    return CheckoutResponse(
        success=True,
        message=f"Order confirmed for {len(lines)} items.",
        total=total,
    )
