"""JazzCash mobile wallet payment adapter"""

import logging
from decimal import Decimal
from typing import Any, Dict

from services.provider_adapter import CheckoutResult, PaymentProviderAdapter, first_present
from utils.normalizers import decimal_to_json_number

logger = logging.getLogger(__name__)


class JazzCashPaymentService(PaymentProviderAdapter):
    """
    JazzCash payments.
    Merchant ID and password travel in the body; X-API-KEY is sent only when configured.
    """

    provider_name = "jazzcash"
    display_name = "JazzCash"
    required_settings = ("JAZZCASH_API_URL", "JAZZCASH_MERCHANT_ID", "JAZZCASH_PASSWORD")
    optional_settings = ("JAZZCASH_API_KEY",)
    base_url_key = "JAZZCASH_API_URL"
    default_error_message = "JazzCash payment request failed."

    def _get_headers(self, credentials) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        api_key = credentials.get("JAZZCASH_API_KEY")
        if api_key:
            headers["X-API-KEY"] = api_key
        return headers

    async def charge(self, amount: Decimal, currency: str, metadata: Dict[str, Any]) -> CheckoutResult:
        credentials = self.resolve_credentials()

        payload = await self.send_request(
            f"{credentials.base_url}/payments",
            headers=self._get_headers(credentials),
            json_body={
                "amount": decimal_to_json_number(amount),
                "currency": currency,
                "merchantId": credentials["JAZZCASH_MERCHANT_ID"],
                "password": credentials["JAZZCASH_PASSWORD"],
                "metadata": metadata,
            },
        )

        return CheckoutResult(
            provider=self.provider_name,
            reference=first_present(payload, ("pp_TxnRefNo", "transactionId", "id")),
            checkout_url=first_present(payload, ("paymentUrl", "redirectUrl")),
            status=first_present(payload, ("status",)) or "pending",
        )
