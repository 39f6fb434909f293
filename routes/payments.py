"""
Payment Checkout Routes
FastAPI routes creating hosted checkouts with Stripe, EasyPaisa or JazzCash
"""

import logging
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from services.integration_dispatcher import PaymentCheckoutDispatcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


def get_payment_dispatcher(request: Request) -> PaymentCheckoutDispatcher:
    return request.app.state.payment_dispatcher


@router.post("/checkout")
async def create_checkout(request: Request):
    """
    Create a checkout with the requested provider.
    Body: {amount, currency?, provider, metadata?}
    """
    raw_body = await request.body()
    outcome = await get_payment_dispatcher(request).handle(raw_body)
    return JSONResponse(content=outcome.body, status_code=outcome.status_code)


@router.get("/providers")
async def list_payment_providers(request: Request):
    return {"success": True, "providers": get_payment_dispatcher(request).providers()}
