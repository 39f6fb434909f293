"""
Object key derivation for the media bucket.

Upload keys are built from a caller-supplied folder and file name:

    shops/42/images/My_Photo-1718000000000-<uuid4>.PNG

and public URLs are reversed back into keys by matching them against the
known bucket URL forms.
"""

import re
import time
import uuid
import logging
from typing import Callable, List, Optional
from urllib.parse import quote, unquote

from config import StorageSettings
from utils.exception_handler import (
    ConfigurationError,
    PathTraversalError,
    UnresolvableKeyError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_UNSAFE_CHARACTERS = re.compile(r"[^A-Za-z0-9._-]")
_PLACEHOLDER_NAMES = {"blob"}
# encodeURI's reserved set, minus "?" and "#" so a key never looks like a query
_URL_SAFE = "/;,:@&=+$-_.!~*'()"


def sanitize_segment(segment: str) -> str:
    return _UNSAFE_CHARACTERS.sub("_", segment)


def ensure_path_is_safe(raw_path: Optional[str]) -> str:
    """
    Normalize an upload folder.

    Leading, trailing and repeated slashes are removed; "." segments are
    dropped; any ".." segment is rejected.

    Examples:
        >>> ensure_path_is_safe("/shops/42/images/")
        'shops/42/images'
        >>> ensure_path_is_safe("a//b/")
        'a/b'
    """
    if raw_path is None or not isinstance(raw_path, str):
        raise ValidationError("Upload path is required.", field="path")

    segments = [segment for segment in raw_path.strip().split("/") if segment]

    for segment in segments:
        if ".." in segment.split("\\"):
            raise PathTraversalError()

    segments = [segment for segment in segments if segment != "."]
    if not segments:
        raise ValidationError("Upload path cannot be empty.", field="path")

    return "/".join(segments)


def _timestamp_ms() -> int:
    return int(time.time() * 1000)


def _random_suffix() -> str:
    return str(uuid.uuid4())


def generate_object_key(
    folder_path: str,
    original_name: Optional[str] = None,
    clock: Callable[[], int] = _timestamp_ms,
    suffix_factory: Callable[[], str] = _random_suffix,
) -> str:
    """Append a timestamp + random suffix before the extension"""
    suffix = f"{clock()}-{suffix_factory()}"

    trimmed_name = (original_name or "").strip()
    if not trimmed_name or trimmed_name in _PLACEHOLDER_NAMES:
        return f"{folder_path}/{suffix}"

    if "." in trimmed_name:
        base_name, extension = trimmed_name.rsplit(".", 1)
    else:
        base_name, extension = trimmed_name, ""

    safe_base = sanitize_segment(base_name) or "upload"
    safe_extension = sanitize_segment(extension)

    if safe_extension:
        return f"{folder_path}/{safe_base}-{suffix}.{safe_extension}"
    return f"{folder_path}/{safe_base}-{suffix}"


def resolve_upload_key(
    raw_path: Optional[str],
    file_name: Optional[str] = None,
    clock: Callable[[], int] = _timestamp_ms,
    suffix_factory: Callable[[], str] = _random_suffix,
) -> str:
    """Validate the folder first, then build the key"""
    safe_path = ensure_path_is_safe(raw_path)
    return generate_object_key(safe_path, file_name, clock=clock, suffix_factory=suffix_factory)


class ObjectUrlResolver:
    """Maps keys to public URLs and back for one bucket"""

    def __init__(self, storage: StorageSettings):
        self.storage = storage

    def _bucket_host(self, regional: bool) -> Optional[str]:
        bucket, region = self.storage.bucket, self.storage.region
        if not bucket:
            return None
        if regional:
            if not region:
                return None
            return f"https://{bucket}.s3.{region}.amazonaws.com"
        return f"https://{bucket}.s3.amazonaws.com"

    def public_base_url(self) -> str:
        if self.storage.public_url:
            return self.storage.public_url.rstrip("/")

        if not self.storage.bucket or not self.storage.region:
            raise ConfigurationError(
                "Missing AWS configuration. Set AWS_REGION and AWS_S3_BUCKET.",
                missing_keys=[
                    key
                    for key, value in (("AWS_REGION", self.storage.region), ("AWS_S3_BUCKET", self.storage.bucket))
                    if not value
                ],
            )

        if self.storage.region == "us-east-1":
            return self._bucket_host(regional=False)
        return self._bucket_host(regional=True)

    def base_url_candidates(self) -> List[str]:
        """Custom domain first, then the global and regional bucket hosts"""
        candidates = []
        if self.storage.public_url:
            candidates.append(self.storage.public_url)
        for regional in (False, True):
            host = self._bucket_host(regional)
            if host:
                candidates.append(host)
        return [candidate.rstrip("/") for candidate in candidates]

    def build_public_url(self, key: str) -> str:
        if not key:
            raise ValidationError("Missing S3 object key", field="key")
        return f"{self.public_base_url()}/{quote(key, safe=_URL_SAFE)}"

    def resolve_key_from_url(self, url: Optional[str]) -> str:
        if not url or not url.strip():
            raise ValidationError("File URL is required to derive the S3 key", field="url")

        normalized_url = url.strip().split("?", 1)[0]
        for base in self.base_url_candidates():
            prefix = f"{base}/"
            if normalized_url.startswith(prefix):
                try:
                    key = unquote(normalized_url[len(prefix):], errors="strict")
                except UnicodeDecodeError:
                    logger.warning("Media URL contains a malformed percent-escape")
                    raise UnresolvableKeyError()
                if key:
                    return key

        logger.warning("Could not match media URL against any known bucket base URL")
        raise UnresolvableKeyError()
