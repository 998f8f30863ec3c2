from typing import Optional
from urllib.parse import quote, unquote, urlsplit

import structlog
from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from app.core.exceptions import (
    CredentialIssuanceError,
    ObjectDeleteError,
    ObjectNotFoundError,
    ObjectWriteError,
)
from app.stores.base import ATTACHMENT_PREFIX

logger = structlog.get_logger(__name__)

NOT_FOUND_CODES = {"NoSuchKey", "NotFound", "404"}


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


class S3ObjectStore:
    """Object store adapter for one S3 (or S3-compatible) bucket."""

    def __init__(
        self,
        client,
        bucket: str,
        region: str = "us-east-1",
        endpoint_url: Optional[str] = None,
        public_base_url: Optional[str] = None,
    ):
        self.client = client
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url.rstrip("/") if endpoint_url else None
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None

    async def put(self, key: str, body: bytes, content_type: str) -> None:
        """Upload bytes to ``key``."""
        try:
            await run_in_threadpool(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to upload object", key=key, error=str(e))
            raise ObjectWriteError() from e

        logger.info("Object uploaded", key=key, size=len(body))

    async def delete(self, key: str) -> None:
        """Delete the object at ``key``."""
        try:
            await run_in_threadpool(
                self.client.delete_object, Bucket=self.bucket, Key=key
            )
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                raise ObjectNotFoundError() from e
            logger.error("Failed to delete object", key=key, error=str(e))
            raise ObjectDeleteError() from e
        except BotoCoreError as e:
            logger.error("Failed to delete object", key=key, error=str(e))
            raise ObjectDeleteError() from e

        logger.info("Object deleted", key=key)

    async def presign_put(self, key: str, content_type: str, expires_in: int) -> str:
        """Presign a single PUT of ``key`` with the declared content type."""
        try:
            return await run_in_threadpool(
                self.client.generate_presigned_url,
                "put_object",
                Params={
                    "Bucket": self.bucket,
                    "Key": key,
                    "ContentType": content_type,
                },
                ExpiresIn=expires_in,
                HttpMethod="PUT",
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to presign upload", key=key, error=str(e))
            raise CredentialIssuanceError() from e

    def url_for(self, key: str) -> str:
        """Build the URL an attachment is read from."""
        quoted = quote(key)
        if self.public_base_url:
            return f"{self.public_base_url}/{quoted}"
        if self.endpoint_url:
            return f"{self.endpoint_url}/{self.bucket}/{quoted}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{quoted}"

    def key_for(self, ref: str) -> Optional[str]:
        """Recover the object key from an attachment reference.

        Understands public base URLs, virtual-hosted and path-style S3 URLs and
        ``s3://bucket/key`` URIs. Returns None for references into other
        buckets or hosts, and for keys outside the attachment prefix.
        """
        if not ref:
            return None

        parsed = urlsplit(ref)
        path = unquote(parsed.path)

        if parsed.scheme == "s3":
            key = path.lstrip("/") if parsed.netloc == self.bucket else ""
        elif self.public_base_url and ref.startswith(self.public_base_url + "/"):
            base_path = unquote(urlsplit(self.public_base_url).path).rstrip("/")
            key = path[len(base_path) + 1 :]
        elif parsed.netloc in self._virtual_hosts():
            key = path.lstrip("/")
        elif path.startswith(f"/{self.bucket}/") and self._is_store_host(
            parsed.netloc
        ):
            key = path[len(self.bucket) + 2 :]
        else:
            key = ""

        if not key.startswith(f"{ATTACHMENT_PREFIX}/"):
            return None
        return key

    def _virtual_hosts(self) -> set:
        if self.endpoint_url:
            return set()
        return {
            f"{self.bucket}.s3.{self.region}.amazonaws.com",
            f"{self.bucket}.s3.amazonaws.com",
        }

    def _is_store_host(self, host: str) -> bool:
        if self.endpoint_url:
            return host == urlsplit(self.endpoint_url).netloc
        return host in {f"s3.{self.region}.amazonaws.com", "s3.amazonaws.com"}
