"""Leopards Courier rate quotes"""

from typing import Dict

from services.provider_adapter import DeliveryProviderAdapter


class LeopardsQuoteService(DeliveryProviderAdapter):
    """Leopards authenticates with an X-API-KEY header instead of a bearer token"""

    provider_name = "leopards"
    display_name = "Leopards"
    required_settings = ("LEOPARDS_API_URL", "LEOPARDS_API_KEY")
    base_url_key = "LEOPARDS_API_URL"
    default_error_message = "Leopards quote request failed."

    reference_fields = ("trackingNumber", "reference")
    cost_fields = ("total", "charges")
    transit_time_fields = ("eta", "transitTime")

    def build_headers(self, credentials) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-API-KEY": credentials["LEOPARDS_API_KEY"],
        }
