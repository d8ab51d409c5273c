"""Blob storage client for generated documents (Supabase Storage HTTP API)."""

import logging

import httpx

from landhunt.config import Settings
from landhunt.core.errors import StorageError
from landhunt.core.types import StoredObject

logger = logging.getLogger(__name__)


class BlobStorage:
    """Uploads bytes under a key and hands back the public URL."""

    def __init__(
        self,
        storage_url: str,
        bucket: str,
        service_key: str,
        timeout: float,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base = storage_url.rstrip("/")
        self._bucket = bucket
        self._service_key = service_key
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "BlobStorage":
        return cls(
            storage_url=settings.storage_url,
            bucket=settings.storage_bucket,
            service_key=settings.storage_service_key,
            timeout=settings.storage_timeout_s,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def public_url(self, key: str) -> str:
        return f"{self._base}/object/public/{self._bucket}/{key}"

    async def upload(self, key: str, data: bytes, content_type: str) -> StoredObject:
        """Upload (or overwrite) an object.

        Raises:
            StorageError: transport failure or non-success response.
        """
        url = f"{self._base}/object/{self._bucket}/{key}"
        headers = {
            "Authorization": f"Bearer {self._service_key}",
            "apikey": self._service_key,
            "Content-Type": content_type,
            "x-upsert": "true",
        }
        try:
            resp = await self._client.post(url, content=data, headers=headers)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Blob upload failed for %s: HTTP %d %s",
                key, e.response.status_code, e.response.text[:200],
            )
            raise StorageError(f"Upload failed with HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error("Blob upload failed for %s: %s", key, e)
            raise StorageError(f"Upload failed: {e}") from e

        logger.info("Uploaded %s (%d bytes)", key, len(data))
        return StoredObject(path=key, url=self.public_url(key))
