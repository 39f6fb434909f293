"""Provider credential resolution from the integration settings snapshot"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence

from config import IntegrationSettings
from utils.exception_handler import ConfigurationError

logger = logging.getLogger(__name__)


def sanitize_base_url(url: Optional[str]) -> str:
    """Strip trailing slashes so endpoint paths can be appended"""
    return (url or "").rstrip("/")


@dataclass(frozen=True)
class ProviderCredentials:
    """Resolved credential set for one provider call"""

    provider: str
    values: Dict[str, str] = field(default_factory=dict)
    base_url: str = ""

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def __getitem__(self, key: str) -> str:
        return self.values[key]


def resolve_provider_credentials(
    settings: IntegrationSettings,
    provider: str,
    display_name: str,
    required: Sequence[str],
    optional: Sequence[str] = (),
    base_url_key: Optional[str] = None,
    default_base_url: Optional[str] = None,
) -> ProviderCredentials:
    """
    Read a provider's credential set, failing fast if it is incomplete.

    Args:
        settings: immutable environment snapshot
        provider: registry identifier, e.g. "easypaisa"
        display_name: name used in the error message, e.g. "EasyPaisa"
        required: keys that must be present and non-empty
        optional: keys read when present
        base_url_key: key holding the provider endpoint
        default_base_url: used when base_url_key is optional and unset

    Raises:
        ConfigurationError: naming every missing required key (never values)
    """
    missing = [key for key in required if not settings.get(key)]
    if missing:
        if len(missing) == 1 and len(required) == 1:
            message = f"{display_name} credentials are not configured. Set {missing[0]}."
        else:
            message = (
                f"{display_name} credentials are not configured. "
                f"Set {_join_keys(required)}."
            )
        logger.error(f"{display_name} configuration incomplete; missing: {', '.join(missing)}")
        raise ConfigurationError(message, missing_keys=missing)

    values = {}
    for key in list(required) + list(optional):
        value = settings.get(key)
        if value is not None:
            values[key] = value

    base_url = ""
    if base_url_key:
        base_url = sanitize_base_url(values.get(base_url_key) or default_base_url)

    return ProviderCredentials(provider=provider, values=values, base_url=base_url)


def _join_keys(keys: Sequence[str]) -> str:
    keys = list(keys)
    if len(keys) <= 1:
        return "".join(keys)
    if len(keys) == 2:
        return f"{keys[0]} and {keys[1]}"
    return f"{', '.join(keys[:-1])}, and {keys[-1]}"
