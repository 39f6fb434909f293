"""
S3 Media Service
Uploads, proxies and deletes marketplace media in the configured S3 bucket
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Any, Dict, Iterator, Mapping, Optional, Sequence

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from config import StorageSettings
from services.object_key_resolver import ObjectUrlResolver
from utils.data_sanitizer import mask_api_key_safe
from utils.exception_handler import (
    ConfigurationError,
    NotFoundError,
    StorageError,
    ValidationError,
)

logger = logging.getLogger(__name__)

DEFAULT_CACHE_CONTROL = "public, max-age=86400, immutable"
DEFAULT_CONTENT_TYPE = "application/octet-stream"
STREAM_CHUNK_SIZE = 64 * 1024

# Backends that disallow ACLs answer with one of these; both lists can be
# extended per service instance.
ACL_UNSUPPORTED_CODES = ("AccessControlListNotSupported",)
ACL_UNSUPPORTED_MESSAGES = (
    "bucket does not allow ACLs",
    "Access Control List is not supported",
)

NOT_FOUND_CODES = {"NoSuchKey", "NotFound", "404"}


@dataclass
class UploadedObject:
    key: str
    url: str


@dataclass
class MediaObject:
    body: Iterator[bytes]
    headers: Dict[str, str] = field(default_factory=dict)


def format_http_date(value: Any) -> str:
    """IMF-fixdate, e.g. 'Wed, 12 Jun 2024 08:30:00 GMT'"""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return format_datetime(value.astimezone(timezone.utc), usegmt=True)
    return str(value)


def build_media_headers(metadata: Mapping[str, Any], cache_control_override: Optional[str] = None) -> Dict[str, str]:
    """Translate S3 object metadata into HTTP response headers"""
    headers = {}
    if metadata.get("ContentType"):
        headers["Content-Type"] = metadata["ContentType"]
    if metadata.get("ContentLength") is not None:
        headers["Content-Length"] = str(metadata["ContentLength"])
    if metadata.get("ETag"):
        headers["ETag"] = metadata["ETag"]
    if metadata.get("LastModified"):
        headers["Last-Modified"] = format_http_date(metadata["LastModified"])

    headers["Cache-Control"] = (
        metadata.get("CacheControl") or cache_control_override or DEFAULT_CACHE_CONTROL
    )
    return headers


def _error_code(error: Exception) -> str:
    if isinstance(error, ClientError):
        return str(error.response.get("Error", {}).get("Code", ""))
    return str(getattr(error, "code", "") or type(error).__name__)


def _error_message(error: Exception) -> str:
    if isinstance(error, ClientError):
        return error.response.get("Error", {}).get("Message") or str(error)
    return str(error)


def _error_status(error: Exception) -> Optional[int]:
    if isinstance(error, ClientError):
        return error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return None


def _iter_stream(body, chunk_size: int = STREAM_CHUNK_SIZE) -> Iterator[bytes]:
    try:
        for chunk in body.iter_chunks(chunk_size):
            yield chunk
    finally:
        body.close()


class S3MediaService:
    """
    Media storage backed by boto3.

    Blocking boto3 calls run in worker threads so the event loop only waits
    on them.
    """

    def __init__(
        self,
        storage: StorageSettings,
        client=None,
        acl_unsupported_codes: Sequence[str] = ACL_UNSUPPORTED_CODES,
        acl_unsupported_messages: Sequence[str] = ACL_UNSUPPORTED_MESSAGES,
    ):
        self.storage = storage
        self.urls = ObjectUrlResolver(storage)
        self.acl_unsupported_codes = tuple(acl_unsupported_codes)
        self.acl_unsupported_messages = tuple(acl_unsupported_messages)
        self._client = client

    def validate_config(self):
        missing = [
            key
            for key, value in (("AWS_REGION", self.storage.region), ("AWS_S3_BUCKET", self.storage.bucket))
            if not value
        ]
        if missing:
            raise ConfigurationError(
                f"Missing AWS configuration. Set the following environment variable(s): {', '.join(missing)}",
                missing_keys=missing,
            )

        credentials = (
            ("AWS_ACCESS_KEY_ID", self.storage.access_key_id),
            ("AWS_SECRET_ACCESS_KEY", self.storage.secret_access_key),
        )
        if any(value for _, value in credentials):
            missing_credentials = [key for key, value in credentials if not value]
            if missing_credentials:
                raise ConfigurationError(
                    "Incomplete AWS credentials. Provide both AWS_ACCESS_KEY_ID and "
                    f"AWS_SECRET_ACCESS_KEY. Missing: {', '.join(missing_credentials)}",
                    missing_keys=missing_credentials,
                )

    @property
    def client(self):
        if self._client is None:
            self.validate_config()
            # Without static keys boto3 falls back to its default credential chain
            self._client = boto3.client(
                "s3",
                region_name=self.storage.region,
                endpoint_url=self.storage.endpoint_url,
                aws_access_key_id=self.storage.access_key_id,
                aws_secret_access_key=self.storage.secret_access_key,
            )
            logger.info(
                f"S3 client initialized for bucket {self.storage.bucket} "
                f"(key: {mask_api_key_safe(self.storage.access_key_id)})"
            )
        return self._client

    @property
    def bucket(self) -> str:
        self.validate_config()
        return self.storage.bucket

    def is_acl_unsupported_error(self, error: Exception) -> bool:
        if _error_code(error) in self.acl_unsupported_codes:
            return True
        message = _error_message(error)
        return any(fragment in message for fragment in self.acl_unsupported_messages)

    async def upload(self, key: str, data: bytes, content_type: Optional[str] = None) -> UploadedObject:
        """
        Store an object and return its public URL.

        The first attempt carries the configured ACL; a bucket that rejects
        ACLs gets exactly one more attempt without it.
        """
        client = self.client
        params = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": data,
            "ContentType": content_type or DEFAULT_CONTENT_TYPE,
        }
        if self.storage.cache_control:
            params["CacheControl"] = self.storage.cache_control

        acl = self.storage.object_acl
        try:
            if acl:
                await asyncio.to_thread(client.put_object, **params, ACL=acl)
            else:
                await asyncio.to_thread(client.put_object, **params)
        except (ClientError, BotoCoreError) as e:
            if not (acl and self.is_acl_unsupported_error(e)):
                logger.error(f"S3 upload failed for {key}: {_error_code(e)}: {_error_message(e)}")
                raise StorageError(_error_message(e) or "Failed to upload file to S3.")

            logger.warning("S3 bucket does not accept ACLs; retrying upload without ACL.")
            try:
                await asyncio.to_thread(client.put_object, **params)
            except (ClientError, BotoCoreError) as retry_error:
                logger.error(f"S3 upload retry failed for {key}: {_error_message(retry_error)}")
                raise StorageError(_error_message(retry_error) or "Failed to upload file to S3.")

        url = self.urls.build_public_url(key)
        logger.info(f"📤 Uploaded s3://{self.storage.bucket}/{key}")
        return UploadedObject(key=key, url=url)

    def _translate_read_error(self, error: Exception, key: str) -> Exception:
        code = _error_code(error)
        if code in NOT_FOUND_CODES or _error_status(error) == 404:
            logger.info(f"S3 object not found: {key}")
            return NotFoundError()
        logger.error(f"S3 proxy error for {key}: {code}: {_error_message(error)}")
        return StorageError(_error_message(error) or "Unable to retrieve media from S3.")

    async def head_meta(self, key: str) -> Dict[str, str]:
        client = self.client
        try:
            metadata = await asyncio.to_thread(client.head_object, Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise self._translate_read_error(e, key)
        return build_media_headers(metadata, self.storage.cache_control)

    async def fetch(self, key: str) -> MediaObject:
        client = self.client
        try:
            result = await asyncio.to_thread(client.get_object, Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise self._translate_read_error(e, key)

        body = result.get("Body")
        if body is None:
            raise StorageError("Failed to load media stream.")
        return MediaObject(
            body=_iter_stream(body),
            headers=build_media_headers(result, self.storage.cache_control),
        )

    async def delete(self, key: str):
        if not key:
            raise ValidationError("S3 object key is required for deletion", field="key")
        client = self.client
        try:
            await asyncio.to_thread(client.delete_object, Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"S3 delete failed for {key}: {_error_message(e)}")
            raise StorageError(_error_message(e) or "Failed to delete file from S3.")
        logger.info(f"🗑️ Deleted s3://{self.storage.bucket}/{key}")

    def resolve_key(self, key: Optional[str] = None, url: Optional[str] = None) -> str:
        """Prefer an explicit key; otherwise derive it from a public URL"""
        if isinstance(key, str) and key.strip():
            return key.strip()
        if isinstance(url, str) and url.strip():
            return self.urls.resolve_key_from_url(url.strip())
        raise ValidationError("Provide either the S3 object key or the file URL.")
