"""
Request normalization for the integration endpoints.

Turns the raw, untyped JSON fields of a checkout or quote request into typed,
sanitized values. Nothing here touches the network: a request that fails
normalization never reaches credential resolution or an adapter.
"""

import re
import math
import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Collection, Dict, Optional, Union

from utils.exception_handler import UnsupportedProviderError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "PKR"

_CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")
_SCALAR_TYPES = (str, int, float, bool, type(None))


@dataclass(frozen=True)
class PaymentRequest:
    provider: str
    amount: Decimal
    currency: str = DEFAULT_CURRENCY
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DeliveryRequest:
    provider: str
    weight: Decimal
    origin: str
    destination: str
    metadata: Dict[str, Any] = field(default_factory=dict)


def normalize_positive_decimal(value: Any, field_name: str, label: str) -> Decimal:
    """
    Coerce value to a finite Decimal strictly greater than zero.

    Args:
        value: int, float, Decimal or numeric string
        field_name: request field reported on failure
        label: human readable name used in the error message

    Raises:
        ValidationError: If value is missing, non-numeric, non-finite or <= 0

    Examples:
        >>> normalize_positive_decimal("500", "amount", "Amount")
        Decimal('500')
        >>> normalize_positive_decimal(2.5, "weight", "Weight")
        Decimal('2.5')
    """
    message = f"{label} must be greater than zero."

    # bool is an int subclass; true/false are not amounts
    if value is None or isinstance(value, bool):
        raise ValidationError(message, field=field_name)

    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        number = Decimal(str(value))
    elif isinstance(value, str):
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            raise ValidationError(message, field=field_name)
    else:
        raise ValidationError(message, field=field_name)

    if not number.is_finite():
        raise ValidationError(message, field=field_name)

    # Must also fit a double without overflowing to inf or underflowing to 0
    as_double = float(number)
    if not math.isfinite(as_double) or as_double <= 0:
        raise ValidationError(message, field=field_name)

    return number


def normalize_required_string(value: Any, field_name: str, label: str) -> str:
    """Return the trimmed string, failing if absent, not a string, or blank"""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} is required.", field=field_name)
    return value.strip()


def normalize_currency(value: Any) -> str:
    if value is None:
        return DEFAULT_CURRENCY

    currency = normalize_required_string(value, "currency", "Currency").upper()
    if not _CURRENCY_CODE.match(currency):
        raise ValidationError(
            "Currency must be a three-letter ISO 4217 code.", field="currency"
        )
    return currency


def normalize_metadata(value: Any) -> Dict[str, Any]:
    if value is None:
        return {}

    if not isinstance(value, dict):
        raise ValidationError("Metadata must be an object.", field="metadata")

    for key, item in value.items():
        if not isinstance(key, str) or not isinstance(item, _SCALAR_TYPES):
            raise ValidationError(
                "Metadata values must be strings, numbers, booleans or null.",
                field="metadata",
            )
    return dict(value)


def normalize_provider_name(value: Any, label: str) -> str:
    return normalize_required_string(value, "provider", label).lower()


def _ensure_supported(provider: str, supported: Collection[str], kind: str) -> str:
    if provider not in supported:
        raise UnsupportedProviderError(provider, kind=kind)
    return provider


def normalize_payment_request(payload: Dict[str, Any], supported: Collection[str]) -> PaymentRequest:
    """
    Validate a checkout request body.

    Provider presence is checked first, then the amount/currency/metadata
    fields, and only then whether the provider is registered.
    """
    provider = normalize_provider_name(payload.get("provider"), "Payment provider")
    amount = normalize_positive_decimal(payload.get("amount"), "amount", "Amount")
    currency = normalize_currency(payload.get("currency"))
    metadata = normalize_metadata(payload.get("metadata"))

    return PaymentRequest(
        provider=_ensure_supported(provider, supported, "payment"),
        amount=amount,
        currency=currency,
        metadata=metadata,
    )


def normalize_delivery_request(payload: Dict[str, Any], supported: Collection[str]) -> DeliveryRequest:
    """Validate a delivery quote request body, same ordering as payments"""
    provider = normalize_provider_name(payload.get("provider"), "Delivery provider")
    weight = normalize_positive_decimal(payload.get("weight"), "weight", "Weight")
    origin = normalize_required_string(payload.get("origin"), "origin", "Pickup area")
    destination = normalize_required_string(
        payload.get("destination"), "destination", "Delivery area"
    )
    metadata = normalize_metadata(payload.get("metadata"))

    return DeliveryRequest(
        provider=_ensure_supported(provider, supported, "delivery"),
        weight=weight,
        origin=origin,
        destination=destination,
        metadata=metadata,
    )


def decimal_to_json_number(value: Optional[Decimal]) -> Union[int, float, None]:
    """Integral values serialize as JSON integers, everything else as floats"""
    if value is None:
        return None
    if value == value.to_integral_value():
        return int(value)
    return float(value)
