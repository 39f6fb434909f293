"""
Courier quote adapter tests
TCS, Leopards and M&P auth headers and response field fallbacks
"""

from decimal import Decimal
from unittest.mock import patch

import aiohttp
import pytest

from config import IntegrationSettings
from services.leopards_service import LeopardsQuoteService
from services.mnp_service import MnpQuoteService
from services.tcs_service import TcsQuoteService
from utils.exception_handler import ConfigurationError, UpstreamError


async def _quote(service_cls, settings, weight="2"):
    return await service_cls(settings).quote(Decimal(weight), "Lahore", "Karachi", {"orderId": "A1"})


class TestTcsQuote:

    @pytest.mark.asyncio
    async def test_request_shape(self, integration_settings, mock_http_post):
        mock_http_post.respond(200, {"reference": "TCS-1", "totalAmount": 350, "transitTime": "2 days"})

        result = await _quote(TcsQuoteService, integration_settings)

        args, kwargs = mock_http_post.call_args
        assert args[0] == "https://tcs.example.pk/v1/rates/quote"
        assert kwargs["headers"]["Authorization"] == "Bearer tcs-key-123"
        assert kwargs["json"] == {
            "weight": 2,
            "origin": "Lahore",
            "destination": "Karachi",
            "metadata": {"orderId": "A1"},
        }
        assert result.to_dict() == {
            "reference": "TCS-1",
            "cost": "350",
            "transitTime": "2 days",
            "provider": "tcs",
        }

    @pytest.mark.asyncio
    async def test_fallback_fields(self, integration_settings, mock_http_post):
        mock_http_post.respond(200, {"bookingNumber": "BK-7", "charges": 410.5, "estimatedDelivery": "Friday"})

        result = await _quote(TcsQuoteService, integration_settings, weight="0.5")

        assert result.reference == "BK-7"
        assert result.cost == "410.5"
        assert result.transit_time == "Friday"
        assert mock_http_post.call_args.kwargs["json"]["weight"] == 0.5

    @pytest.mark.asyncio
    async def test_missing_fields_stay_empty(self, integration_settings, mock_http_post):
        mock_http_post.respond(200, {})

        result = await _quote(TcsQuoteService, integration_settings)

        assert result.reference is None
        assert result.cost is None
        assert result.transit_time is None


class TestProviderTimeout:

    @pytest.mark.asyncio
    async def test_timeout_comes_from_settings(self, provider_env, mock_http_post):
        settings = IntegrationSettings.from_env({**provider_env, "PROVIDER_HTTP_TIMEOUT_SECONDS": "5"})

        with patch("aiohttp.ClientTimeout", wraps=aiohttp.ClientTimeout) as mock_timeout:
            await _quote(TcsQuoteService, settings)

        assert TcsQuoteService(settings).timeout_seconds == 5.0
        mock_timeout.assert_called_once_with(total=5.0)

    def test_explicit_timeout_wins(self, integration_settings):
        assert LeopardsQuoteService(integration_settings, timeout_seconds=3).timeout_seconds == 3


class TestLeopardsQuote:

    @pytest.mark.asyncio
    async def test_api_key_header(self, integration_settings, mock_http_post):
        mock_http_post.respond(200, {"trackingNumber": "LP-3", "total": "275", "eta": "3-4 days"})

        result = await _quote(LeopardsQuoteService, integration_settings)

        headers = mock_http_post.call_args.kwargs["headers"]
        assert headers["X-API-KEY"] == "leo-key-456"
        assert "Authorization" not in headers
        assert result.to_dict() == {
            "reference": "LP-3",
            "cost": "275",
            "transitTime": "3-4 days",
            "provider": "leopards",
        }

    @pytest.mark.asyncio
    async def test_upstream_status_is_mirrored(self, integration_settings, mock_http_post):
        mock_http_post.respond(422, {"message": "Destination not serviced"})

        with pytest.raises(UpstreamError) as exc_info:
            await _quote(LeopardsQuoteService, integration_settings)

        assert exc_info.value.status_code == 422
        assert exc_info.value.message == "Destination not serviced"


class TestMnpQuote:

    @pytest.mark.asyncio
    async def test_field_mapping(self, integration_settings, mock_http_post):
        mock_http_post.respond(200, {"cnNumber": "MNP-55", "amount": 300, "eta": "Next day"})

        result = await _quote(MnpQuoteService, integration_settings)

        assert mock_http_post.call_args.args[0] == "https://mnp.example.pk/api/rates/quote"
        assert mock_http_post.call_args.kwargs["headers"]["Authorization"] == "Bearer mnp-key-789"
        assert result.to_dict() == {
            "reference": "MNP-55",
            "cost": "300",
            "transitTime": "Next day",
            "provider": "mnp",
        }

    @pytest.mark.asyncio
    async def test_default_error_message(self, integration_settings, mock_http_post):
        mock_http_post.respond(500, None)

        with pytest.raises(UpstreamError) as exc_info:
            await _quote(MnpQuoteService, integration_settings)

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "M&P quote request failed."

    @pytest.mark.asyncio
    async def test_missing_url_names_key(self, mock_http_post):
        settings = IntegrationSettings.from_env({"MNP_API_KEY": "k"})

        with pytest.raises(ConfigurationError) as exc_info:
            await _quote(MnpQuoteService, settings)

        assert exc_info.value.missing_keys == ("MNP_API_URL",)
        assert "MNP_API_URL" in exc_info.value.message
        mock_http_post.assert_not_called()
