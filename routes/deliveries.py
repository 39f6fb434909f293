"""
Delivery Quote Routes
FastAPI routes requesting courier rate quotes from TCS, Leopards or M&P
"""

import logging
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from services.integration_dispatcher import DeliveryQuoteDispatcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/deliveries", tags=["deliveries"])


def get_delivery_dispatcher(request: Request) -> DeliveryQuoteDispatcher:
    return request.app.state.delivery_dispatcher


@router.post("/quote")
async def request_delivery_quote(request: Request):
    """
    Quote a shipment with the requested courier.
    Body: {provider, weight, origin, destination, metadata?}
    """
    raw_body = await request.body()
    outcome = await get_delivery_dispatcher(request).handle(raw_body)
    return JSONResponse(content=outcome.body, status_code=outcome.status_code)


@router.get("/providers")
async def list_delivery_providers(request: Request):
    return {"success": True, "providers": get_delivery_dispatcher(request).providers()}
