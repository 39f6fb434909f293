"""
Shared fixtures for the integration gateway test suite.

Key Components:
1. Integration settings snapshots with fake credentials for every provider
2. aiohttp transport mocking (patch('aiohttp.ClientSession.post'))
3. A fake boto3 S3 client and ClientError factory
4. A FastAPI TestClient wired to fake settings and storage
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from unittest.mock import AsyncMock, Mock, patch

import pytest
from botocore.exceptions import ClientError

from config import IntegrationSettings

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

FAKE_PROVIDER_ENV = {
    "STRIPE_SECRET_KEY": "sk_test_1234567890abcdef",
    "STRIPE_SUCCESS_URL": "https://bazar.example.pk/checkout/success",
    "STRIPE_CANCEL_URL": "https://bazar.example.pk/checkout/cancel",
    "EASYPAISA_API_URL": "https://easypaisa.example.pk/api/",
    "EASYPAISA_USERNAME": "bazar_merchant",
    "EASYPAISA_PASSWORD": "ep-secret",
    "JAZZCASH_API_URL": "https://jazzcash.example.pk/api",
    "JAZZCASH_MERCHANT_ID": "MC12345",
    "JAZZCASH_PASSWORD": "jc-secret",
    "TCS_API_URL": "https://tcs.example.pk/v1/",
    "TCS_API_KEY": "tcs-key-123",
    "LEOPARDS_API_URL": "https://leopards.example.pk/api",
    "LEOPARDS_API_KEY": "leo-key-456",
    "MNP_API_URL": "https://mnp.example.pk/api",
    "MNP_API_KEY": "mnp-key-789",
}

FAKE_STORAGE_ENV = {
    "AWS_REGION": "ap-south-1",
    "AWS_S3_BUCKET": "ebazar-media",
    "AWS_ACCESS_KEY_ID": "AKIAEXAMPLEKEY",
    "AWS_SECRET_ACCESS_KEY": "example-secret-access-key",
}


@pytest.fixture
def provider_env() -> Dict[str, str]:
    return dict(FAKE_PROVIDER_ENV)


@pytest.fixture
def integration_settings(provider_env) -> IntegrationSettings:
    """Every provider and the bucket configured with fake credentials"""
    return IntegrationSettings.from_env({**provider_env, **FAKE_STORAGE_ENV})


@pytest.fixture
def storage_env() -> Dict[str, str]:
    return dict(FAKE_STORAGE_ENV)


@pytest.fixture
def storage_settings(storage_env):
    return IntegrationSettings.from_env(storage_env).storage()


def make_provider_response(status: int = 200, payload: Any = None, json_error: Optional[Exception] = None):
    """Fake aiohttp response usable inside `async with session.post(...)`"""
    response = AsyncMock()
    response.status = status
    if json_error is not None:
        response.json = AsyncMock(side_effect=json_error)
    else:
        response.json = AsyncMock(return_value=payload)
    return response


@pytest.fixture
def mock_http_post():
    """Patch the aiohttp transport; tests set the response with respond()"""
    with patch("aiohttp.ClientSession.post") as mock_post:

        def respond(status: int = 200, payload: Any = None, json_error: Optional[Exception] = None):
            response = make_provider_response(status, payload, json_error)
            mock_post.return_value.__aenter__.return_value = response
            return response

        mock_post.respond = respond
        respond(200, {})
        yield mock_post


def make_client_error(code: str, message: str = "", status: int = 400, operation: str = "PutObject") -> ClientError:
    return ClientError(
        {
            "Error": {"Code": code, "Message": message},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


@pytest.fixture
def client_error():
    return make_client_error


class FakeStreamingBody:
    """Minimal stand-in for botocore's StreamingBody"""

    def __init__(self, data: bytes):
        self.data = data
        self.closed = False

    def iter_chunks(self, chunk_size: int = 1024):
        for start in range(0, len(self.data), chunk_size):
            yield self.data[start:start + chunk_size]

    def close(self):
        self.closed = True


@pytest.fixture
def streaming_body():
    return FakeStreamingBody


@pytest.fixture
def s3_client():
    client = Mock()
    client.put_object = Mock(return_value={"ETag": '"abc123"'})
    client.delete_object = Mock(return_value={})
    client.head_object = Mock(
        return_value={
            "ContentType": "image/png",
            "ContentLength": 4,
            "ETag": '"abc123"',
            "LastModified": datetime(2024, 6, 12, 8, 30, tzinfo=timezone.utc),
        }
    )
    client.get_object = Mock(
        return_value={
            "Body": FakeStreamingBody(b"\x89PNG"),
            "ContentType": "image/png",
            "ContentLength": 4,
            "ETag": '"abc123"',
            "LastModified": datetime(2024, 6, 12, 8, 30, tzinfo=timezone.utc),
        }
    )
    return client


@pytest.fixture
def media_service(storage_settings, s3_client):
    from services.s3_media_service import S3MediaService

    return S3MediaService(storage_settings, client=s3_client)


@pytest.fixture
def api_client(integration_settings, media_service):
    from fastapi.testclient import TestClient
    from api_server import create_app

    app = create_app(settings=integration_settings, media_service=media_service)
    with TestClient(app) as client:
        yield client

