"""
Core - System Base Class

Long-lived component started and stopped by the ServiceLocator.
"""
from typing import TYPE_CHECKING, List, Type
from loguru import logger

if TYPE_CHECKING:
    from .locator import ServiceLocator
    from .config import ConfigManager


class BaseSystem:
    """
    Component with an async start/stop lifecycle.

    Subclasses do their work in `initialize()`/`shutdown()` and finish by
    calling the base implementation, which tracks readiness. The locator
    and settings are handed in explicitly.

    Start order is declared with `depends_on`:
        class SyncScheduler(BaseSystem):
            depends_on = [LibrarySyncService]
    """

    depends_on: List[Type["BaseSystem"]] = []

    def __init__(self, locator: 'ServiceLocator', config: 'ConfigManager'):
        self.locator = locator
        self.config = config
        self._is_ready = False

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def is_ready(self) -> bool:
        return self._is_ready

    async def initialize(self) -> None:
        self._is_ready = True
        logger.debug(f"{self.name} ready")

    async def shutdown(self) -> None:
        self._is_ready = False
        logger.debug(f"{self.name} stopped")

    async def __aenter__(self):
        if not self._is_ready:
            await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._is_ready:
            await self.shutdown()
