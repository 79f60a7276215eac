"""
Supabase object storage for deckforge.

Generated images are uploaded to a storage bucket and handed out as signed
URLs, so a deck never references a provider's temporary URL.
"""
from typing import Optional

import httpx
from supabase import acreate_client, AsyncClient

from config.settings import get_settings
from deckforge.utils.logger import setup_logger

logger = setup_logger(__name__)

# Global client instance
_supabase_client: Optional[AsyncClient] = None


class StorageError(Exception):
    """Upload, signing or download of an object failed."""


async def get_supabase_client() -> AsyncClient:
    """
    Get or create the Supabase client instance.

    Returns:
        Supabase async client

    Raises:
        RuntimeError: If Supabase is not configured or the connection fails
    """
    global _supabase_client

    if _supabase_client is None:
        settings = get_settings()
        key = settings.SUPABASE_SERVICE_KEY or settings.SUPABASE_ANON_KEY

        if not settings.SUPABASE_URL or not key:
            raise RuntimeError(
                "Supabase configuration missing. "
                "Please set SUPABASE_URL and SUPABASE_SERVICE_KEY environment variables."
            )

        try:
            _supabase_client = await acreate_client(settings.SUPABASE_URL, key)
            logger.info("Supabase async client initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize Supabase client: {e}")
            raise RuntimeError(f"Cannot connect to Supabase: {str(e)}")

    return _supabase_client


class SupabaseObjectStorage:
    """Upload and sign objects in one Supabase storage bucket."""

    def __init__(self, bucket: Optional[str] = None, client: Optional[AsyncClient] = None):
        settings = get_settings()
        self.bucket = bucket or settings.SUPABASE_STORAGE_BUCKET
        self.base_url = (settings.SUPABASE_URL or "").rstrip("/")
        self._client = client

    async def _bucket(self):
        if self._client is None:
            self._client = await get_supabase_client()
        return self._client.storage.from_(self.bucket)

    async def upload(self, key: str, data: bytes, mime_type: str) -> None:
        """
        Upload bytes under a key, overwriting any existing object.

        Raises:
            StorageError: If the upload fails
        """
        try:
            bucket = await self._bucket()
            await bucket.upload(
                path=key,
                file=data,
                file_options={"content-type": mime_type, "upsert": "true"},
            )
        except Exception as e:
            logger.error(f"Upload of {key} to bucket {self.bucket} failed: {e}")
            raise StorageError(f"Upload failed for {key}: {e}") from e

        logger.debug(f"Uploaded {len(data)} bytes to {self.bucket}/{key}")

    async def signed_url(self, key: str, ttl_seconds: int) -> str:
        """
        Create a signed URL for an uploaded object.

        Raises:
            StorageError: If signing fails or no URL is returned
        """
        try:
            bucket = await self._bucket()
            result = await bucket.create_signed_url(key, ttl_seconds)
        except Exception as e:
            raise StorageError(f"Signing failed for {key}: {e}") from e

        url = (result.get("signedURL") or result.get("signedUrl")) if isinstance(result, dict) else None
        if not url:
            raise StorageError(f"No signed URL returned for {key}")
        return url

    def is_storage_url(self, url: Optional[str]) -> bool:
        """True if the URL already points into this storage bucket."""
        if not url:
            return False
        marker = f"/storage/v1/object/sign/{self.bucket}/"
        public_marker = f"/storage/v1/object/public/{self.bucket}/"
        if self.base_url and not url.startswith(self.base_url):
            return False
        return marker in url or public_marker in url


async def download_image(url: str, timeout: float = 30.0) -> tuple:
    """
    Download an image from a temporary provider URL.

    Returns:
        Tuple of (bytes, mime type)

    Raises:
        StorageError: On HTTP or network failures
    """
    try:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            response = await client.get(url)
            response.raise_for_status()
    except httpx.HTTPError as e:
        raise StorageError(f"Image download failed: {e}") from e

    mime_type = response.headers.get("content-type", "image/png").split(";")[0]
    return response.content, mime_type
