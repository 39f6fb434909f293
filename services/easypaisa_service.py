"""EasyPaisa mobile wallet payment adapter"""

import base64
import logging
from decimal import Decimal
from typing import Any, Dict

from services.provider_adapter import CheckoutResult, PaymentProviderAdapter, first_present
from utils.normalizers import decimal_to_json_number

logger = logging.getLogger(__name__)


class EasyPaisaPaymentService(PaymentProviderAdapter):
    """EasyPaisa payments over JSON with HTTP Basic auth"""

    provider_name = "easypaisa"
    display_name = "EasyPaisa"
    required_settings = ("EASYPAISA_API_URL", "EASYPAISA_USERNAME", "EASYPAISA_PASSWORD")
    base_url_key = "EASYPAISA_API_URL"
    default_error_message = "EasyPaisa payment request failed."

    def _get_headers(self, credentials) -> Dict[str, str]:
        token = f"{credentials['EASYPAISA_USERNAME']}:{credentials['EASYPAISA_PASSWORD']}"
        encoded = base64.b64encode(token.encode("utf-8")).decode("ascii")
        return {
            "Content-Type": "application/json",
            "Authorization": f"Basic {encoded}",
        }

    async def charge(self, amount: Decimal, currency: str, metadata: Dict[str, Any]) -> CheckoutResult:
        credentials = self.resolve_credentials()

        payload = await self.send_request(
            f"{credentials.base_url}/payments",
            headers=self._get_headers(credentials),
            json_body={
                "amount": decimal_to_json_number(amount),
                "currency": currency,
                "metadata": metadata,
            },
        )

        return CheckoutResult(
            provider=self.provider_name,
            reference=first_present(payload, ("orderId", "transactionId", "id")),
            checkout_url=first_present(payload, ("checkoutUrl", "redirectUrl")),
            status=first_present(payload, ("status",)) or "pending",
        )
