"""
Credential resolution and settings snapshot tests
"""

import pytest

from config import DEFAULT_OBJECT_ACL, DEFAULT_PROVIDER_TIMEOUT_SECONDS, IntegrationSettings
from services.credential_resolver import resolve_provider_credentials, sanitize_base_url
from utils.exception_handler import ConfigurationError


class TestIntegrationSettings:

    def test_only_known_keys_are_captured(self):
        settings = IntegrationSettings.from_env({"TCS_API_KEY": "k", "HOME": "/root"})

        assert settings.get("TCS_API_KEY") == "k"
        assert "HOME" not in settings.values

    def test_blank_values_read_as_missing(self):
        settings = IntegrationSettings.from_env({"TCS_API_KEY": "   "})
        assert settings.get("TCS_API_KEY") is None

    def test_storage_defaults_to_public_read_acl(self):
        storage = IntegrationSettings.from_env({"AWS_REGION": "us-east-1"}).storage()
        assert storage.object_acl == DEFAULT_OBJECT_ACL

    def test_empty_acl_disables_directive(self):
        storage = IntegrationSettings.from_env({"AWS_S3_OBJECT_ACL": ""}).storage()
        assert storage.object_acl is None

    def test_provider_timeout_defaults(self):
        assert IntegrationSettings.from_env({}).provider_timeout_seconds == DEFAULT_PROVIDER_TIMEOUT_SECONDS

    def test_provider_timeout_from_snapshot(self):
        settings = IntegrationSettings.from_env({"PROVIDER_HTTP_TIMEOUT_SECONDS": " 7.5 "})
        assert settings.provider_timeout_seconds == 7.5

    @pytest.mark.parametrize("value", ["0", "-3", "nan", ""])
    def test_unusable_timeout_falls_back(self, value):
        settings = IntegrationSettings.from_env({"PROVIDER_HTTP_TIMEOUT_SECONDS": value})
        assert settings.provider_timeout_seconds == DEFAULT_PROVIDER_TIMEOUT_SECONDS


class TestResolveProviderCredentials:

    def test_resolves_and_strips_base_url(self, integration_settings):
        credentials = resolve_provider_credentials(
            integration_settings,
            provider="tcs",
            display_name="TCS",
            required=("TCS_API_URL", "TCS_API_KEY"),
            base_url_key="TCS_API_URL",
        )

        assert credentials.base_url == "https://tcs.example.pk/v1"
        assert credentials["TCS_API_KEY"] == "tcs-key-123"

    def test_missing_keys_are_named(self):
        settings = IntegrationSettings.from_env({"EASYPAISA_API_URL": "https://ep.example.pk"})

        with pytest.raises(ConfigurationError) as exc_info:
            resolve_provider_credentials(
                settings,
                provider="easypaisa",
                display_name="EasyPaisa",
                required=("EASYPAISA_API_URL", "EASYPAISA_USERNAME", "EASYPAISA_PASSWORD"),
            )

        error = exc_info.value
        assert error.status_code == 500
        assert error.missing_keys == ("EASYPAISA_USERNAME", "EASYPAISA_PASSWORD")
        assert error.message == (
            "EasyPaisa credentials are not configured. "
            "Set EASYPAISA_API_URL, EASYPAISA_USERNAME, and EASYPAISA_PASSWORD."
        )

    def test_error_never_contains_secret_values(self):
        settings = IntegrationSettings.from_env({"MNP_API_KEY": "super-secret-value"})

        with pytest.raises(ConfigurationError) as exc_info:
            resolve_provider_credentials(
                settings, "mnp", "M&P", required=("MNP_API_URL", "MNP_API_KEY")
            )
        assert "super-secret-value" not in exc_info.value.message

    def test_optional_default_base_url(self):
        settings = IntegrationSettings.from_env({"STRIPE_SECRET_KEY": "sk_test"})
        credentials = resolve_provider_credentials(
            settings,
            "stripe",
            "Stripe",
            required=("STRIPE_SECRET_KEY",),
            optional=("STRIPE_API_URL",),
            base_url_key="STRIPE_API_URL",
            default_base_url="https://api.stripe.com/",
        )
        assert credentials.base_url == "https://api.stripe.com"


def test_sanitize_base_url():
    assert sanitize_base_url("https://x.pk///") == "https://x.pk"
    assert sanitize_base_url(None) == ""
