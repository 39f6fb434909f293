"""
Shared machinery for payment and courier provider adapters.

Every adapter follows the same shape: resolve credentials, build the
provider-specific request, issue exactly one HTTP call, parse the body on a
best-effort basis and map it into a CheckoutResult or QuoteResult.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Sequence

import aiohttp

from config import IntegrationSettings
from services.credential_resolver import ProviderCredentials, resolve_provider_credentials
from utils.data_sanitizer import sanitize_for_log
from utils.exception_handler import UpstreamError
from utils.normalizers import decimal_to_json_number

logger = logging.getLogger(__name__)


@dataclass
class CheckoutResult:
    """Normalized payment checkout outcome"""

    provider: str
    reference: Optional[str] = None
    status: Optional[str] = None
    checkout_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reference": self.reference,
            "checkoutUrl": self.checkout_url,
            "status": self.status,
            "provider": self.provider,
        }


@dataclass
class QuoteResult:
    """Normalized delivery quote"""

    provider: str
    reference: Optional[str] = None
    cost: Optional[str] = None
    transit_time: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reference": self.reference,
            "cost": self.cost,
            "transitTime": self.transit_time,
            "provider": self.provider,
        }


@asynccontextmanager
async def provider_http_session(timeout_seconds: float):
    """Short-lived HTTP session with a bounded total timeout"""
    timeout = aiohttp.ClientTimeout(total=timeout_seconds)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        yield session


async def parse_json_best_effort(response) -> Optional[Any]:
    """Return the decoded JSON body, or None if it cannot be decoded"""
    try:
        return await response.json(content_type=None)
    except (aiohttp.ClientError, ValueError):
        return None


def as_text(value: Any) -> Optional[str]:
    """Render a scalar provider field as a string; None stays None"""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def first_present(payload: Mapping[str, Any], fields: Sequence[str]) -> Optional[str]:
    """First candidate field that is neither missing, null nor empty"""
    for name in fields:
        value = payload.get(name)
        if value is not None and value != "":
            return as_text(value)
    return None


class ProviderAdapter:
    """Base class for a single third-party integration"""

    provider_name = "base"
    display_name = "Provider"
    required_settings: Sequence[str] = ()
    optional_settings: Sequence[str] = ()
    base_url_key: Optional[str] = None
    default_base_url: Optional[str] = None
    default_error_message = "Provider request failed."

    def __init__(self, settings: IntegrationSettings, timeout_seconds: Optional[float] = None):
        self.settings = settings
        self.timeout_seconds = timeout_seconds or settings.provider_timeout_seconds

    def resolve_credentials(self) -> ProviderCredentials:
        return resolve_provider_credentials(
            self.settings,
            provider=self.provider_name,
            display_name=self.display_name,
            required=self.required_settings,
            optional=self.optional_settings,
            base_url_key=self.base_url_key,
            default_base_url=self.default_base_url,
        )

    def extract_error_message(self, payload: Any) -> Optional[str]:
        if isinstance(payload, dict):
            message = payload.get("message")
            if isinstance(message, str) and message.strip():
                return message
        return None

    async def send_request(
        self,
        url: str,
        headers: Dict[str, str],
        json_body: Optional[Dict[str, Any]] = None,
        form_body: Optional[Any] = None,
    ) -> Dict[str, Any]:
        """
        Issue the single outbound POST for this request.

        Raises:
            UpstreamError: non-2xx status (mirrored), unreadable body,
                network failure or timeout (500)
        """
        logger.info(
            f"➡️ {self.display_name} request: POST {url} "
            f"body={sanitize_for_log(json_body if json_body is not None else {})}"
        )

        try:
            async with provider_http_session(self.timeout_seconds) as session:
                async with session.post(
                    url, headers=headers, json=json_body, data=form_body
                ) as response:
                    status = response.status
                    payload = await parse_json_best_effort(response)
        except asyncio.TimeoutError:
            logger.error(f"{self.display_name} request timed out after {self.timeout_seconds}s")
            raise UpstreamError(
                f"{self.display_name} did not respond in time.", provider=self.provider_name
            )
        except aiohttp.ClientError as e:
            logger.error(f"Network error connecting to {self.display_name}: {type(e).__name__}")
            raise UpstreamError(
                f"{self.display_name} could not be reached.", provider=self.provider_name
            )

        if not 200 <= status < 300:
            message = self.extract_error_message(payload) or self.default_error_message
            logger.warning(
                f"{self.display_name} API error: HTTP {status}: {sanitize_for_log(payload)}"
            )
            raise UpstreamError(message, status_code=status, provider=self.provider_name)

        if not isinstance(payload, dict):
            logger.error(f"{self.display_name} returned HTTP {status} with an unreadable body")
            raise UpstreamError(
                f"{self.display_name} returned an unreadable response.",
                provider=self.provider_name,
            )

        logger.info(f"✅ {self.display_name} responded HTTP {status}")
        return payload


class PaymentProviderAdapter(ProviderAdapter):
    """Creates a checkout/payment with one provider"""

    async def charge(self, amount: Decimal, currency: str, metadata: Dict[str, Any]) -> CheckoutResult:
        raise NotImplementedError


class DeliveryProviderAdapter(ProviderAdapter):
    """
    Requests a rate quote from one courier.

    Couriers share the request body; each subclass declares its auth header
    and the response fields it reads, in fallback order.
    """

    quote_path = "/rates/quote"
    reference_fields: Sequence[str] = ()
    cost_fields: Sequence[str] = ()
    transit_time_fields: Sequence[str] = ()

    def build_headers(self, credentials: ProviderCredentials) -> Dict[str, str]:
        raise NotImplementedError

    async def quote(
        self, weight: Decimal, origin: str, destination: str, metadata: Dict[str, Any]
    ) -> QuoteResult:
        credentials = self.resolve_credentials()

        payload = await self.send_request(
            f"{credentials.base_url}{self.quote_path}",
            headers=self.build_headers(credentials),
            json_body={
                "weight": decimal_to_json_number(weight),
                "origin": origin,
                "destination": destination,
                "metadata": metadata,
            },
        )

        return QuoteResult(
            provider=self.provider_name,
            reference=first_present(payload, self.reference_fields),
            cost=first_present(payload, self.cost_fields),
            transit_time=first_present(payload, self.transit_time_fields),
        )
