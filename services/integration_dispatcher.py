"""
Integration dispatchers for payment checkout and delivery quotes.

A dispatcher owns the whole request lifecycle: parse the body, normalize the
fields, pick the adapter from its registry, invoke it, and wrap every outcome
in the uniform envelope. Nothing raised by an adapter escapes handle().
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type, Union

import orjson

from config import IntegrationSettings
from services.provider_adapter import ProviderAdapter
from services.provider_registry import (
    DELIVERY_PROVIDERS,
    PAYMENT_PROVIDERS,
    describe_providers,
    get_provider_adapter,
)
from utils.exception_handler import IntegrationError, ValidationError, log_integration_error
from utils.normalizers import (
    DeliveryRequest,
    PaymentRequest,
    decimal_to_json_number,
    normalize_delivery_request,
    normalize_payment_request,
)

logger = logging.getLogger(__name__)

INVALID_PAYLOAD_MESSAGE = "Invalid request payload."


@dataclass
class DispatchResponse:
    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)


class IntegrationDispatcher:
    """Base dispatcher; subclasses bind a registry and a capability"""

    kind = "integration"
    registry: Dict[str, Type[ProviderAdapter]] = {}
    generic_error_message = "Integration request failed. Check server logs for details."

    def __init__(
        self,
        settings: IntegrationSettings,
        registry: Optional[Dict[str, Type[ProviderAdapter]]] = None,
    ):
        self.settings = settings
        if registry is not None:
            self.registry = registry

    def providers(self) -> List[Dict[str, str]]:
        return describe_providers(self.registry)

    def parse_body(self, raw_body: Union[bytes, str, Dict[str, Any], None]) -> Dict[str, Any]:
        if isinstance(raw_body, dict):
            return raw_body
        if raw_body is None:
            raise ValidationError(INVALID_PAYLOAD_MESSAGE)
        try:
            data = orjson.loads(raw_body)
        except orjson.JSONDecodeError:
            raise ValidationError(INVALID_PAYLOAD_MESSAGE)
        if not isinstance(data, dict):
            raise ValidationError(INVALID_PAYLOAD_MESSAGE)
        return data

    def normalize(self, payload: Dict[str, Any]):
        raise NotImplementedError

    async def invoke(self, adapter: ProviderAdapter, request) -> Dict[str, Any]:
        raise NotImplementedError

    async def handle(self, raw_body: Union[bytes, str, Dict[str, Any], None]) -> DispatchResponse:
        try:
            payload = self.parse_body(raw_body)
            request = self.normalize(payload)
            adapter = get_provider_adapter(
                self.registry, request.provider, self.settings, kind=self.kind
            )
            body = await self.invoke(adapter, request)
            logger.info(f"✅ {self.kind} request served by {request.provider}")
            return DispatchResponse(status_code=200, body={"success": True, **body})
        except IntegrationError as e:
            log_integration_error(e, f"{self.kind.capitalize()} dispatch")
            return DispatchResponse(status_code=e.status_code, body=e.to_envelope())
        except Exception:
            logger.exception(f"Unexpected {self.kind} dispatch error")
            return DispatchResponse(
                status_code=500,
                body={"success": False, "error": self.generic_error_message},
            )


class PaymentCheckoutDispatcher(IntegrationDispatcher):
    kind = "payment"
    registry = PAYMENT_PROVIDERS
    generic_error_message = "Unable to create payment. Check server logs for details."

    def normalize(self, payload: Dict[str, Any]) -> PaymentRequest:
        return normalize_payment_request(payload, self.registry)

    async def invoke(self, adapter, request: PaymentRequest) -> Dict[str, Any]:
        result = await adapter.charge(request.amount, request.currency, request.metadata)
        body = {
            "provider": request.provider,
            "amount": decimal_to_json_number(request.amount),
            "currency": request.currency,
        }
        body.update(result.to_dict())
        return body


class DeliveryQuoteDispatcher(IntegrationDispatcher):
    kind = "delivery"
    registry = DELIVERY_PROVIDERS
    generic_error_message = "Unable to fetch delivery quote. Check server logs for details."

    def normalize(self, payload: Dict[str, Any]) -> DeliveryRequest:
        return normalize_delivery_request(payload, self.registry)

    async def invoke(self, adapter, request: DeliveryRequest) -> Dict[str, Any]:
        result = await adapter.quote(
            request.weight, request.origin, request.destination, request.metadata
        )
        return result.to_dict()
