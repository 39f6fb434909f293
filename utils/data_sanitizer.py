"""
Data Sanitization Module
Masks provider credentials and customer details before they reach a log line
"""

import re
import json
import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


class DataSanitizer:
    """Redaction for outbound request bodies, provider responses and headers"""

    # Applied in order to every string value; group 1, when present, is kept
    SENSITIVE_PATTERNS = {
        "api_key": re.compile(
            r'(?i)(api[_-]?key|apikey|access[_-]?key|secret[_-]?key)["\':=\s]*([a-zA-Z0-9_-]{12,})'
        ),
        "bearer": re.compile(r"(?i)(bearer\s+)([a-zA-Z0-9._~+/=-]{8,})"),
        "basic": re.compile(r"(?i)(basic\s+)([a-zA-Z0-9+/=]{8,})"),
        "password": re.compile(r'(?i)(password|pwd|pass)["\':=\s]*([^\s"\',}]{4,})'),
        "email": re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
        "phone": re.compile(r"(\+92|0)3\d{9}\b"),
    }

    # Substrings of lower-cased field names whose values are dropped outright
    SENSITIVE_FIELDS = (
        "api_key",
        "apikey",
        "x-api-key",
        "secret",
        "password",
        "authorization",
        "token",
        "merchantid",
        "merchant_id",
        "access_key",
        "email",
        "phone",
        "cnic",
    )

    @classmethod
    def is_sensitive_field(cls, name: Any) -> bool:
        lowered = str(name).lower()
        return any(fragment in lowered for fragment in cls.SENSITIVE_FIELDS)

    @classmethod
    def sanitize_text(cls, text: Any) -> str:
        sanitized = text if isinstance(text, str) else str(text)
        for name, pattern in cls.SENSITIVE_PATTERNS.items():
            label = f"[REDACTED-{name.upper()}]"
            sanitized = pattern.sub(
                lambda m, label=label: f"{m.group(1)}{label}" if m.re.groups > 1 else label,
                sanitized,
            )
        return sanitized

    @classmethod
    def sanitize_value(cls, value: Any) -> Any:
        """Recursively redact a decoded JSON value"""
        if isinstance(value, dict):
            return {
                key: "[REDACTED]" if cls.is_sensitive_field(key) else cls.sanitize_value(item)
                for key, item in value.items()
            }
        if isinstance(value, (list, tuple)):
            return [cls.sanitize_value(item) for item in value]
        if isinstance(value, str):
            return cls.sanitize_text(value)
        return value

    @classmethod
    def sanitize_dict(cls, data: dict) -> dict:
        return cls.sanitize_value(data) if isinstance(data, dict) else data

    @staticmethod
    def mask_api_key(api_key: Optional[str], visible: int = 2) -> str:
        """Keep only the first and last `visible` characters of a credential"""
        if not api_key:
            return "[NO_API_KEY]"
        if len(api_key) <= visible * 2:
            return "[REDACTED]"
        return f"[API_KEY:{api_key[:visible]}***{api_key[-visible:]}]"


data_sanitizer = DataSanitizer()


def sanitize_for_log(data: Any) -> str:
    """Single-line, redacted rendering of a payload for log messages"""
    if isinstance(data, (dict, list, tuple)):
        return json.dumps(data_sanitizer.sanitize_value(data), default=str)
    return data_sanitizer.sanitize_text(data)


def mask_api_key_safe(api_key: Optional[str]) -> str:
    return data_sanitizer.mask_api_key(api_key)
