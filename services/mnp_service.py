"""M&P (Muller & Phipps) courier rate quotes"""

from typing import Dict

from services.provider_adapter import DeliveryProviderAdapter


class MnpQuoteService(DeliveryProviderAdapter):
    provider_name = "mnp"
    display_name = "M&P"
    required_settings = ("MNP_API_URL", "MNP_API_KEY")
    base_url_key = "MNP_API_URL"
    default_error_message = "M&P quote request failed."

    reference_fields = ("cnNumber", "reference")
    cost_fields = ("charges", "amount")
    transit_time_fields = ("transitTime", "eta")

    def build_headers(self, credentials) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {credentials['MNP_API_KEY']}",
        }
