"""
Library - Metadata Cache

Memoizes catalog metadata lookups for the lifetime of the process.
"""
import asyncio
from typing import Dict, Optional
import aiohttp
from pydantic import ValidationError
from loguru import logger

from egdata_client.core.errors import LockError
from egdata_client.core.locking import GuardedLock
from egdata_client.library.models import Metadata

METADATA_API_URL = "https://api.egdata.app"
METADATA_TIMEOUT_SECONDS = 10


class MetadataCache:
    """
    Catalog item id -> Metadata, filled on demand from the metadata API.

    Entries are never evicted. The lock is only held for dictionary
    access; two callers missing the same key at once will both fetch it
    and the later insert wins.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        base_url: str = METADATA_API_URL,
        timeout: float = METADATA_TIMEOUT_SECONDS
    ):
        """
        Args:
            session: Shared HTTP session
            base_url: Metadata service root
            timeout: Total timeout per request in seconds
        """
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._lock = GuardedLock("metadata cache")
        self._entries: Dict[str, Metadata] = {}

    def __len__(self) -> int:
        with self._lock.hold():
            return len(self._entries)

    def get_cached(self, catalog_item_id: str) -> Optional[Metadata]:
        with self._lock.hold():
            return self._entries.get(catalog_item_id)

    async def fetch(self, catalog_item_id: str) -> Optional[Metadata]:
        """
        Return metadata for an item, fetching it on a cache miss.

        Failures of any kind are logged and yield None; missing metadata
        never fails a scan.
        """
        try:
            cached = self.get_cached(catalog_item_id)
        except LockError as e:
            logger.error(f"Metadata lookup for {catalog_item_id} skipped: {e}")
            return None
        if cached is not None:
            return cached

        metadata = await self._request(catalog_item_id)
        if metadata is None:
            return None

        try:
            with self._lock.hold():
                self._entries[catalog_item_id] = metadata
        except LockError as e:
            logger.warning(f"Metadata for {catalog_item_id} not cached: {e}")
        return metadata

    async def _request(self, catalog_item_id: str) -> Optional[Metadata]:
        url = f"{self.base_url}/items/{catalog_item_id}"
        try:
            async with self.session.get(url, timeout=self.timeout) as response:
                if not 200 <= response.status < 300:
                    logger.warning(f"API request failed for {catalog_item_id}: HTTP {response.status}")
                    return None
                body = await response.json(content_type=None)
            return Metadata.model_validate(body)
        except ValidationError as e:
            logger.warning(f"Failed to parse metadata for {catalog_item_id}: {e.error_count()} invalid fields")
        except asyncio.TimeoutError:
            logger.warning(f"Timed out fetching metadata for {catalog_item_id}")
        except (aiohttp.ClientError, ValueError) as e:
            logger.warning(f"Failed to fetch metadata for {catalog_item_id}: {e}")
        return None
