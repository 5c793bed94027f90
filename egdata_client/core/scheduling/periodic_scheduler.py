"""
Core - Sync Scheduler

Drives the two independent background loops: scan-and-replace-registry
and snapshot-and-upload.
"""
from typing import List, Optional
import asyncio
from loguru import logger

from egdata_client.core.base_system import BaseSystem
from egdata_client.core.scheduling.interval_loop import IntervalLoop
from egdata_client.library.service import LibrarySyncService

SCAN_INTERVAL_KEY = "scan_interval_minutes"
UPLOAD_INTERVAL_KEY = "upload_interval"


class SyncScheduler(BaseSystem):
    """
    Periodic scan and upload scheduler.

    Both loops read their interval from the shared settings on every tick
    and are woken when the matching setting changes. They do not
    coordinate with each other: an upload cycle works on whatever
    registry snapshot exists when it starts.
    """

    depends_on = [LibrarySyncService]

    # Length of one settings interval unit; tests shrink it.
    seconds_per_unit = 60.0

    def __init__(self, locator, config):
        super().__init__(locator, config)
        self._running = False
        self._scheduled_tasks: List[asyncio.Task] = []
        self.scan_loop: Optional[IntervalLoop] = None
        self.upload_loop: Optional[IntervalLoop] = None

    async def initialize(self):
        """Start the scan and upload loops."""
        logger.info("SyncScheduler initializing...")
        service = self.locator.get_system(LibrarySyncService)

        self.scan_loop = IntervalLoop(
            "Scan",
            lambda: self.config.get(SCAN_INTERVAL_KEY),
            service.run_scan_cycle,
            seconds_per_unit=self.seconds_per_unit,
            notifier=self.locator.notifier,
        )
        self.upload_loop = IntervalLoop(
            "Upload",
            lambda: self.config.get(UPLOAD_INTERVAL_KEY),
            service.run_upload_cycle,
            seconds_per_unit=self.seconds_per_unit,
            notifier=self.locator.notifier,
        )

        self.config.on_changed.connect(self._on_config_changed)

        for loop in (self.scan_loop, self.upload_loop):
            self._scheduled_tasks.append(asyncio.create_task(loop.run(), name=f"{loop.name.lower()}-loop"))

        self._running = True
        await super().initialize()
        logger.info(f"SyncScheduler ready ({len(self._scheduled_tasks)} loops)")

    async def shutdown(self):
        """Cancel both loops."""
        logger.info("SyncScheduler shutting down...")
        self._running = False
        self.config.on_changed.disconnect(self._on_config_changed)

        for task in self._scheduled_tasks:
            if not task.done():
                task.cancel()

        if self._scheduled_tasks:
            await asyncio.gather(*self._scheduled_tasks, return_exceptions=True)
            logger.info(f"Cancelled {len(self._scheduled_tasks)} scheduled loops")

        await super().shutdown()

    def _on_config_changed(self, key: str, value):
        if key == SCAN_INTERVAL_KEY and self.scan_loop:
            self.scan_loop.request_reconfigure()
        elif key == UPLOAD_INTERVAL_KEY and self.upload_loop:
            self.upload_loop.request_reconfigure()
