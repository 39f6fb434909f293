"""Stripe Checkout Sessions adapter"""

import logging
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Any, Dict, List, Optional, Tuple

from services.provider_adapter import CheckoutResult, PaymentProviderAdapter, as_text
from utils.data_sanitizer import mask_api_key_safe

logger = logging.getLogger(__name__)

DEFAULT_PRODUCT_NAME = "E-Bazar Order"

# Normalized amounts never exceed the largest double (~1.8e308)
MINOR_UNIT_PRECISION = 400


def to_minor_units(amount: Decimal) -> int:
    """Stripe expects integer minor units; half-cents round up"""
    with localcontext() as ctx:
        ctx.prec = MINOR_UNIT_PRECISION
        return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class StripeCheckoutService(PaymentProviderAdapter):
    """Hosted checkout sessions through the Stripe REST API"""

    provider_name = "stripe"
    display_name = "Stripe"
    required_settings = ("STRIPE_SECRET_KEY",)
    optional_settings = ("STRIPE_API_URL", "STRIPE_SUCCESS_URL", "STRIPE_CANCEL_URL", "PUBLIC_SITE_URL")
    base_url_key = "STRIPE_API_URL"
    default_base_url = "https://api.stripe.com"
    default_error_message = "Stripe checkout session could not be created."

    def extract_error_message(self, payload: Any) -> Optional[str]:
        if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
            message = payload["error"].get("message")
            if isinstance(message, str) and message.strip():
                return message
        return None

    def build_form(self, amount: Decimal, currency: str, metadata: Dict[str, Any], credentials) -> List[Tuple[str, str]]:
        site_url = credentials.get("PUBLIC_SITE_URL")
        success_url = credentials.get("STRIPE_SUCCESS_URL") or site_url or "https://example.com/success"
        cancel_url = credentials.get("STRIPE_CANCEL_URL") or site_url or "https://example.com/cancel"
        product_name = metadata.get("productName") or metadata.get("label") or DEFAULT_PRODUCT_NAME

        form = [
            ("mode", "payment"),
            ("success_url", success_url),
            ("cancel_url", cancel_url),
            ("line_items[0][price_data][currency]", currency.lower()),
            ("line_items[0][price_data][product_data][name]", as_text(product_name)),
            ("line_items[0][price_data][unit_amount]", str(to_minor_units(amount))),
            ("line_items[0][quantity]", "1"),
        ]
        for key, value in metadata.items():
            if value is None:
                continue
            form.append((f"metadata[{key}]", as_text(value)))
        return form

    async def charge(self, amount: Decimal, currency: str, metadata: Dict[str, Any]) -> CheckoutResult:
        credentials = self.resolve_credentials()
        secret_key = credentials["STRIPE_SECRET_KEY"]
        logger.debug(f"Stripe checkout with key {mask_api_key_safe(secret_key)}")

        payload = await self.send_request(
            f"{credentials.base_url}/v1/checkout/sessions",
            headers={"Authorization": f"Bearer {secret_key}"},
            form_body=self.build_form(amount, currency, metadata, credentials),
        )

        return CheckoutResult(
            provider=self.provider_name,
            reference=as_text(payload.get("id")),
            checkout_url=as_text(payload.get("url")),
            status=as_text(payload.get("status")),
        )
