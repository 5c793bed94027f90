"""
Library - Sync Service

Owns the shared engine state (registry, metadata cache, dedup store) and
exposes the operations the UI and the scheduler call.
"""
from typing import List, Optional, Set
import aiohttp
from loguru import logger

from egdata_client.core.base_system import BaseSystem
from egdata_client.core.errors import AgentError, LockError, NotFoundError
from egdata_client.core.config import SettingsConfig
from egdata_client.core.events import EventBus, Events
from egdata_client.core.messaging import MsgTopic
from egdata_client.library.dedup import DedupStore
from egdata_client.library.metadata_cache import MetadataCache
from egdata_client.library.models import PackageRecord, UploadState, UploadStatus
from egdata_client.library.registry import PackageRegistry, RegistryUpdate
from egdata_client.library.scanner import ManifestScanner
from egdata_client.library.uploader import ManifestUploader


class LibrarySyncService(BaseSystem):
    """
    Discovery, enrichment and upload of installed packages.

    Shared state is built once per process and reused by the periodic
    loops and the command surface:
    - PackageRegistry: last completed scan
    - MetadataCache: catalog lookups, never evicted
    - DedupStore: hashes the collection service already holds
    """

    depends_on = [EventBus]

    def __init__(self, locator, config, session: Optional[aiohttp.ClientSession] = None):
        super().__init__(locator, config)
        self.notifier = locator.notifier
        self.registry = PackageRegistry()
        self.dedup = DedupStore(locator.paths.uploaded_manifests_file)
        self._session = session
        self._owns_session = session is None
        self.metadata_cache: Optional[MetadataCache] = None
        self.scanner: Optional[ManifestScanner] = None
        self.uploader: Optional[ManifestUploader] = None

    async def initialize(self) -> None:
        """Open the HTTP session and build the scan/upload pipeline."""
        logger.info("LibrarySyncService initializing")

        if self._session is None:
            self._session = aiohttp.ClientSession()

        manifests_dir = self.locator.paths.manifests_dir
        self.metadata_cache = MetadataCache(self._session)
        self.scanner = ManifestScanner(manifests_dir, self.metadata_cache)
        self.uploader = ManifestUploader(
            self._session,
            self.dedup,
            manifests_dir,
            notifier=self.notifier,
        )

        logger.info(f"LibrarySyncService ready (manifests: {manifests_dir}, "
                    f"{len(self.dedup)} uploaded hashes)")
        await super().initialize()

    async def shutdown(self) -> None:
        """Close the HTTP session if this service opened it."""
        logger.info("LibrarySyncService shutting down")
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
        await super().shutdown()

    # --- Commands ---

    def get_installed_packages(self) -> List[PackageRecord]:
        return self.registry.snapshot()

    async def scan_now(self) -> List[PackageRecord]:
        """
        Scan on demand and replace the registry.

        Raises:
            NotFoundError: manifest directory missing (registry unchanged)
        """
        topic = MsgTopic.SCANNER.value
        self.notifier.info("Starting scan for Epic Games...", topic=topic)
        try:
            records = await self.scanner.scan()
            self.registry.replace(records)
        except AgentError as e:
            self.notifier.error(f"Scan failed: {e}", topic=topic, exc=e)
            raise

        self.notifier.success(f"Found {len(records)} Epic Games installed on your system.", topic=topic)
        for record in records:
            self.notifier.info(
                f"Found game \"{record.display_name}\" ({record.catalog_item_id}) at {record.install_location}",
                topic=topic,
            )
        self.notifier.publish(Events.GAMES_UPDATED, records)
        return records

    async def upload_package(self, catalog_item_id: str, installation_guid: str) -> UploadStatus:
        """
        Upload a single package picked by the user.

        Raises:
            NotFoundError: no such package in the registry
            AgentError: descriptor/blob unreadable or network failure
        """
        record = self.registry.find(catalog_item_id, installation_guid)
        if record is None:
            self.notifier.error("Game not found for upload", topic=MsgTopic.UPLOADER.value)
            raise NotFoundError("Game not found")

        try:
            return await self.uploader.upload(record)
        except AgentError as e:
            self.notifier.error(f"Upload error for {record.display_name}: {e}",
                                topic=MsgTopic.UPLOADER.value, exc=e)
            raise

    async def upload_all(self) -> List[UploadStatus]:
        """Upload every package in the current registry snapshot."""
        return await self.uploader.upload_all(self.registry.snapshot())

    def get_settings(self) -> SettingsConfig:
        return self.config.data

    def set_settings(self, settings: SettingsConfig) -> None:
        self.notifier.info("Updating settings...", topic=MsgTopic.SETTINGS.value)
        self.config.replace(settings)
        self.notifier.publish(Events.SETTINGS_CHANGED, self.config.data)

    async def clear_uploaded_manifests(self) -> None:
        """Forget every acknowledged hash so the next cycle uploads again."""
        self.dedup.clear()
        await self.dedup.persist()
        self.notifier.info("Cleared uploaded manifest records", topic=MsgTopic.UPLOADER.value)

    def uploaded_hashes(self) -> Set[str]:
        return self.dedup.snapshot()

    # --- Periodic cycles ---

    async def run_scan_cycle(self) -> Optional[RegistryUpdate]:
        """
        Background scan: replace the registry and report whether it changed.

        Returns:
            RegistryUpdate, or None when the scan failed
        """
        topic = MsgTopic.SCANNER.value
        try:
            records = await self.scanner.scan()
            update = self.registry.replace(records)
        except (NotFoundError, LockError) as e:
            self.notifier.error(f"Periodic scan failed: {e}", topic=topic, exc=e)
            return None

        if update.changed:
            self.notifier.info(
                f"Games updated from background scan. Found {update.new_count} games.",
                topic=topic,
            )
            self.notifier.publish(Events.GAMES_UPDATED, records)
        else:
            self.notifier.info(
                f"Background scan completed. {update.new_count} games found (no changes).",
                topic=topic,
            )
        return update

    async def run_upload_cycle(self) -> Optional[List[UploadStatus]]:
        """
        Background upload of the current registry snapshot.

        Returns:
            Per-record statuses, or None when the registry could not be read
        """
        topic = MsgTopic.UPLOADER.value
        self.notifier.info("Starting periodic manifest upload...", topic=topic)
        try:
            records = self.registry.snapshot()
        except LockError as e:
            self.notifier.error(f"Periodic upload failed: {e}", topic=topic, exc=e)
            return None

        results = await self.uploader.upload_all(records)

        uploaded = sum(1 for r in results if r.status is UploadState.UPLOADED)
        already = sum(1 for r in results if r.status is UploadState.ALREADY_UPLOADED)
        failed = sum(1 for r in results if r.status is UploadState.FAILED)
        self.notifier.success(
            f"Periodic upload completed: {uploaded} uploaded, {already} already uploaded, {failed} failed",
            topic=topic,
        )
        self.notifier.publish(Events.UPLOAD_COMPLETED, results)
        return results
