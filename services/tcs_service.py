"""TCS courier rate quotes"""

from typing import Dict

from services.provider_adapter import DeliveryProviderAdapter


class TcsQuoteService(DeliveryProviderAdapter):
    provider_name = "tcs"
    display_name = "TCS"
    required_settings = ("TCS_API_URL", "TCS_API_KEY")
    base_url_key = "TCS_API_URL"
    default_error_message = "TCS quote request failed."

    reference_fields = ("reference", "bookingNumber")
    cost_fields = ("totalAmount", "charges")
    transit_time_fields = ("transitTime", "estimatedDelivery")

    def build_headers(self, credentials) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {credentials['TCS_API_KEY']}",
        }
