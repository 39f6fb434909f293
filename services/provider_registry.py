"""Registry of provider identifiers to adapter classes"""

from typing import Dict, List, Type

from config import IntegrationSettings
from services.easypaisa_service import EasyPaisaPaymentService
from services.jazzcash_service import JazzCashPaymentService
from services.leopards_service import LeopardsQuoteService
from services.mnp_service import MnpQuoteService
from services.provider_adapter import DeliveryProviderAdapter, PaymentProviderAdapter, ProviderAdapter
from services.stripe_service import StripeCheckoutService
from services.tcs_service import TcsQuoteService
from utils.exception_handler import UnsupportedProviderError


# Insertion order is the display order of the provider lists
PAYMENT_PROVIDERS: Dict[str, Type[PaymentProviderAdapter]] = {
    "easypaisa": EasyPaisaPaymentService,
    "jazzcash": JazzCashPaymentService,
    "stripe": StripeCheckoutService,
}

DELIVERY_PROVIDERS: Dict[str, Type[DeliveryProviderAdapter]] = {
    "tcs": TcsQuoteService,
    "leopards": LeopardsQuoteService,
    "mnp": MnpQuoteService,
}


def describe_providers(registry: Dict[str, Type[ProviderAdapter]]) -> List[Dict[str, str]]:
    return [{"value": name, "label": cls.display_name} for name, cls in registry.items()]


def get_provider_adapter(
    registry: Dict[str, Type[ProviderAdapter]],
    provider_name: str,
    settings: IntegrationSettings,
    kind: str = "payment",
) -> ProviderAdapter:
    provider = str(provider_name or "").strip().lower()
    cls = registry.get(provider)
    if not cls:
        raise UnsupportedProviderError(provider, kind=kind)
    return cls(settings)
