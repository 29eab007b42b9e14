"""
Infrastructure layer: S3-compatible object store client with retry logic.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from app.config import settings
from app.domain.exceptions import StorageInvalidInputError, StorageUnavailableError

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def _is_transient(error: BaseException) -> bool:
    """Network failures, timeouts and 5xx responses are worth another attempt."""
    if isinstance(error, (BotoCoreError, asyncio.TimeoutError)):
        return True
    if isinstance(error, ClientError):
        status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
        return status >= 500
    return False


class ObjectStoreClient:
    """
    Client for the image bucket (DigitalOcean Spaces).

    boto3 is synchronous, so every call runs in a worker thread and is
    bounded by a timeout. Transient failures are retried with exponential
    backoff before surfacing as StorageUnavailableError.
    """

    def __init__(
        self,
        s3_client: Optional[Any] = None,
        bucket: Optional[str] = None,
        endpoint: Optional[str] = None,
        timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
        retry_min_wait: Optional[float] = None,
        retry_max_wait: Optional[float] = None,
    ):
        """
        Initialize the client with configuration.

        Args:
            s3_client: Preconfigured boto3 S3 client (built from settings if omitted)
            bucket: Bucket name
            endpoint: Endpoint host used for public URLs, without scheme
            timeout: Seconds allowed per call
            max_attempts: Attempts per call, including the first
            retry_min_wait: Minimum backoff between attempts in seconds
            retry_max_wait: Maximum backoff between attempts in seconds
        """
        self.bucket = bucket or settings.do_spaces_bucket
        self.endpoint = endpoint or settings.do_spaces_endpoint
        self.timeout = timeout if timeout is not None else settings.object_store_timeout
        self.max_attempts = max_attempts or settings.max_retry_attempts
        self.retry_min_wait = (
            retry_min_wait if retry_min_wait is not None else settings.retry_min_wait
        )
        self.retry_max_wait = (
            retry_max_wait if retry_max_wait is not None else settings.retry_max_wait
        )
        self.client = s3_client or boto3.client(
            "s3",
            endpoint_url=settings.object_store_endpoint_url,
            region_name=settings.do_spaces_region,
            aws_access_key_id=settings.do_spaces_key,
            aws_secret_access_key=settings.do_spaces_secret,
            config=BotoConfig(
                connect_timeout=self.timeout,
                read_timeout=self.timeout,
                # tenacity owns retries
                retries={"max_attempts": 1, "mode": "standard"},
                s3={"addressing_style": "virtual"},
            ),
        )

    def close(self):
        """Release pooled HTTP connections."""
        self.client.close()

    async def _call(self, operation: str, **kwargs) -> Dict[str, Any]:
        """
        Run a boto3 operation with timeout and retry.

        Args:
            operation: boto3 client method name
            **kwargs: Arguments for the operation

        Returns:
            The boto3 response dictionary

        Raises:
            ClientError: For non-transient S3 errors
            BotoCoreError, asyncio.TimeoutError: When retries are exhausted
        """
        method = getattr(self.client, operation)
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(
                multiplier=settings.retry_backoff_multiplier,
                min=self.retry_min_wait,
                max=self.retry_max_wait,
            ),
            retry=retry_if_exception(_is_transient),
            reraise=True,
        ):
            with attempt:
                return await asyncio.wait_for(
                    asyncio.to_thread(method, **kwargs),
                    timeout=self.timeout,
                )

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        """
        Upload bytes under `key` as a publicly readable object.

        An existing object with the same key is overwritten.

        Raises:
            StorageInvalidInputError: If `data` is empty or `key` is blank
            StorageUnavailableError: If the upload fails
        """
        if not data:
            raise StorageInvalidInputError(
                "Error uploading image", f"Refusing to store empty object '{key}'"
            )
        if not key:
            raise StorageInvalidInputError("Error uploading image", "Object key is empty")

        try:
            await self._call(
                "put_object",
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type or "application/octet-stream",
                ACL="public-read",
            )
        except (BotoCoreError, ClientError, asyncio.TimeoutError) as e:
            raise StorageUnavailableError(
                "Error uploading image", f"Object store put failed for '{key}': {e!r}"
            )
        logger.info(f"Stored object {key} ({len(data)} bytes)")

    async def delete(self, key: str) -> None:
        """
        Remove the object under `key`. A missing object counts as deleted.

        Raises:
            StorageUnavailableError: If the delete fails for another reason
        """
        try:
            await self._call("delete_object", Bucket=self.bucket, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _NOT_FOUND_CODES:
                logger.info(f"Object {key} already absent")
                return
            raise StorageUnavailableError(
                "Error deleting image", f"Object store delete failed for '{key}': {e!r}"
            )
        except (BotoCoreError, asyncio.TimeoutError) as e:
            raise StorageUnavailableError(
                "Error deleting image", f"Object store delete failed for '{key}': {e!r}"
            )
        logger.info(f"Deleted object {key}")

    async def list_keys(self, prefix: str = "") -> List[str]:
        """
        List object keys under a prefix.

        Raises:
            StorageUnavailableError: If listing fails
        """
        keys: List[str] = []
        token: Optional[str] = None
        while True:
            kwargs: Dict[str, Any] = {"Bucket": self.bucket, "Prefix": prefix}
            if token:
                kwargs["ContinuationToken"] = token
            try:
                page = await self._call("list_objects_v2", **kwargs)
            except (BotoCoreError, ClientError, asyncio.TimeoutError) as e:
                raise StorageUnavailableError(
                    "Error listing images", f"Object store list failed for '{prefix}': {e!r}"
                )
            keys.extend(item["Key"] for item in page.get("Contents", []))
            if not page.get("IsTruncated"):
                return keys
            token = page.get("NextContinuationToken")

    def build_public_url(self, key: str) -> str:
        """
        Map a key to its public URL: https://<bucket>.<endpoint>/<key>.

        Args:
            key: Object key

        Returns:
            Publicly fetchable URL
        """
        return f"https://{self.bucket}.{self.endpoint}/{key.lstrip('/')}"

