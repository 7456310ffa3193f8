# core/storage.py

"""
Object storage for identification images and request documents.

Two logical buckets are used (``ID_UPLOADS_BUCKET`` and ``DOCUMENTS_BUCKET``).
No object is assumed to be publicly readable: ``fetch`` may try an
unauthenticated public URL first but always falls back to an authenticated
download when that URL does not resolve.
"""

import re
import time
import uuid
from abc import ABC, abstractmethod
from typing import Optional

import requests
from botocore.client import BaseClient
from botocore.exceptions import BotoCoreError, ClientError
from supabase import Client

from core.config import Settings
from core.errors import StorageError, extract_supabase_error
from core.logging_config import get_logger
from core.s3_client import get_s3_client


logger = get_logger("storage")

PUBLIC_URL_TIMEOUT_SECONDS = 10
CACHE_CONTROL_SECONDS = "3600"


# -----------------------------------------------------
# Object keys
# -----------------------------------------------------
def safe_extension(filename: Optional[str]) -> str:
    if not filename or "." not in filename:
        return ""
    ext = filename.rsplit(".", 1)[-1].lower()
    ext = re.sub(r"[^a-z0-9]", "", ext)
    return f".{ext}" if ext else ""


def unique_suffix() -> str:
    """Millisecond timestamp for ordering plus a random token for uniqueness."""
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:12]}"


def attachment_key(
    owner_id: str,
    request_id: str,
    category: str,
    filename: Optional[str] = None,
    suffix: Optional[str] = None,
) -> str:
    """
    Bucket-relative path: ``<owner>/<request>/<category>/<suffix><.ext>``.

    Two keys for the same owner, request and category differ in their random
    suffix token, so concurrent uploads within the same millisecond never
    collide.
    """
    suffix = suffix or unique_suffix()
    return f"{owner_id}/{request_id}/{category}/{suffix}{safe_extension(filename)}"


def object_path(stored: str, bucket: str) -> str:
    """
    Older rows hold a full public URL instead of a bucket-relative path.
    '.../object/public/id-uploads/u1/r1/x.jpg' -> 'u1/r1/x.jpg'
    """
    if not stored.startswith(("http://", "https://")):
        return stored.lstrip("/")

    marker = f"/{bucket}/"
    if marker in stored:
        return stored.split(marker, 1)[1].split("?", 1)[0]
    return stored


# -----------------------------------------------------
# Backends
# -----------------------------------------------------
class ObjectStorage(ABC):
    """Port: object storage. One instance serves both buckets."""

    @abstractmethod
    def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: str,
        metadata: Optional[dict] = None,
    ) -> str:
        ...

    @abstractmethod
    def download(self, bucket: str, path: str) -> bytes:
        ...

    @abstractmethod
    def remove(self, bucket: str, path: str) -> None:
        ...

    @abstractmethod
    def public_url(self, bucket: str, path: str) -> Optional[str]:
        ...

    @abstractmethod
    def signed_url(self, bucket: str, path: str, expires_in: int) -> str:
        ...

    def __init__(self, try_public_url: bool = True):
        self.try_public_url = try_public_url

    def fetch(self, bucket: str, path: str) -> bytes:
        """
        Resolve object bytes. The public URL is only an optimisation; a 403/404
        (or any transport error) falls through to the authenticated download.
        """
        if self.try_public_url:
            url = self.public_url(bucket, path)
            if url:
                try:
                    response = requests.get(url, timeout=PUBLIC_URL_TIMEOUT_SECONDS)
                    if response.status_code == 200:
                        return response.content
                    logger.info(
                        f"Public URL returned {response.status_code} for {bucket}/{path}, "
                        "using authenticated download"
                    )
                except requests.RequestException as e:
                    logger.info(f"Public URL failed for {bucket}/{path} ({e}), using authenticated download")

        return self.download(bucket, path)


class SupabaseStorage(ObjectStorage):
    """Supabase Storage through the service-role client."""

    def __init__(self, client: Client, try_public_url: bool = True):
        super().__init__(try_public_url)
        self.client = client

    def _bucket(self, bucket: str):
        return self.client.storage.from_(bucket)

    def upload(self, bucket, path, data, content_type, metadata=None):
        options = {
            "content-type": content_type,
            "cache-control": CACHE_CONTROL_SECONDS,
            "upsert": "false",
        }
        if metadata:
            options["metadata"] = metadata

        try:
            self._bucket(bucket).upload(path, data, file_options=options)
        except Exception as e:
            raise StorageError(extract_supabase_error(e), path) from e
        return path

    def download(self, bucket, path):
        try:
            return self._bucket(bucket).download(path)
        except Exception as e:
            raise StorageError(extract_supabase_error(e), path) from e

    def remove(self, bucket, path):
        try:
            self._bucket(bucket).remove([path])
        except Exception as e:
            raise StorageError(extract_supabase_error(e), path) from e

    def public_url(self, bucket, path):
        try:
            return self._bucket(bucket).get_public_url(path)
        except Exception as e:
            logger.info(f"No public URL for {bucket}/{path}: {e}")
            return None

    def signed_url(self, bucket, path, expires_in):
        try:
            result = self._bucket(bucket).create_signed_url(path, expires_in)
        except Exception as e:
            raise StorageError(extract_supabase_error(e), path) from e

        # storage3 has used both spellings
        url = (result or {}).get("signedURL") or (result or {}).get("signedUrl")
        if not url:
            raise StorageError("Signed URL not returned", path)
        return url


class S3Storage(ObjectStorage):
    """Any S3-compatible endpoint (Supabase Storage's S3 gateway included)."""

    def __init__(self, s3: BaseClient, try_public_url: bool = False):
        super().__init__(try_public_url)
        self.s3 = s3

    def upload(self, bucket, path, data, content_type, metadata=None):
        try:
            self.s3.put_object(
                Bucket=bucket,
                Key=path,
                Body=data,
                ContentType=content_type,
                CacheControl=f"max-age={CACHE_CONTROL_SECONDS}",
                Metadata={k: str(v) for k, v in (metadata or {}).items()},
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(str(e), path) from e
        return path

    def download(self, bucket, path):
        try:
            obj = self.s3.get_object(Bucket=bucket, Key=path)
            return obj["Body"].read()
        except (BotoCoreError, ClientError) as e:
            raise StorageError(str(e), path) from e

    def remove(self, bucket, path):
        try:
            self.s3.delete_object(Bucket=bucket, Key=path)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(str(e), path) from e

    def public_url(self, bucket, path):
        return None

    def signed_url(self, bucket, path, expires_in):
        try:
            return self.s3.generate_presigned_url(
                "get_object",
                Params={"Bucket": bucket, "Key": path},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(str(e), path) from e


def build_storage(settings: Settings, client: Optional[Client]) -> Optional[ObjectStorage]:
    """Construct the configured backend once at start-up."""
    if settings.STORAGE_BACKEND == "s3":
        return S3Storage(get_s3_client(settings), try_public_url=False)

    if client is None:
        return None
    return SupabaseStorage(client, try_public_url=settings.STORAGE_TRY_PUBLIC_URL)
