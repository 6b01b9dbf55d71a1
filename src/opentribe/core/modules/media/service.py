import asyncio
from typing import Any

import httpx
import structlog
from pymongo.asynchronous.database import AsyncDatabase

from opentribe.core.core import Service

logger = structlog.get_logger(__name__)


class MediaService(Service):
    """Thin client for the external blob storage service.

    Upload URLs are handed to clients, which upload directly; the core only keeps
    the opaque references and resolves them to URLs when needed.
    """

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._client: httpx.AsyncClient | None = None

    async def on_stop(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            config = self.core.config
            headers = {"Authorization": f"Bearer {config.blob_storage_api_key}"} if config.blob_storage_api_key else {}
            self._client = httpx.AsyncClient(
                base_url=config.blob_storage_url,
                headers=headers,
                timeout=httpx.Timeout(config.blob_storage_timeout),
            )
        return self._client

    async def generate_upload_url(self) -> str:
        response = await self._get_client().post("/upload-urls")
        response.raise_for_status()
        url = response.json()["url"]
        logger.debug("upload_url_generated")
        return str(url)

    async def get_url(self, ref: str) -> str | None:
        """Resolve a storage reference to a URL, or None if the blob does not exist."""
        response = await self._get_client().get(f"/files/{ref}/url")
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        response.raise_for_status()
        url = response.json().get("url")
        return str(url) if url else None

    async def get_urls(self, refs: list[str]) -> dict[str, str | None]:
        unique = list(dict.fromkeys(refs))
        urls = await asyncio.gather(*(self.get_url(ref) for ref in unique))
        return dict(zip(unique, urls, strict=True))

    async def get_avatar_url(self, avatar_ref: str | None) -> str | None:
        """URL snapshot for denormalized author avatars.

        Storage failures leave the snapshot empty instead of failing the write it belongs to.
        """
        if avatar_ref is None:
            return None
        try:
            return await self.get_url(avatar_ref)
        except httpx.HTTPError as e:
            logger.warning("avatar_url_unavailable", avatar_ref=avatar_ref, error=str(e))
            return None
