"""
Bootstrap helpers for the agent.

Wires logging, the service locator and the default systems.
"""
import asyncio
import signal
from typing import List, Optional, Type

from loguru import logger

from .base_system import BaseSystem
from .events import EventBus
from .locator import ServiceLocator
from .paths import AgentPaths


class ApplicationBuilder:
    """
    Fluent builder for the agent.

    Example:
        locator = await (ApplicationBuilder("EGData Client")
                         .with_logging()
                         .build())
    """

    def __init__(self, name: str = "EGData Client", paths: Optional[AgentPaths] = None):
        """
        Initialize application builder.

        Args:
            name: Application name
            paths: Filesystem locations (defaults to the platform ones)
        """
        self.name = name
        self.paths = paths or AgentPaths()
        self._systems: List[Type[BaseSystem]] = []
        self._use_scheduler = True
        self._logging_configured = False
        self._debug = False

    def with_scheduler(self, enable: bool = True):
        """
        Start the periodic scan/upload loops.

        Disable for one-shot console commands.

        Returns:
            Self for chaining
        """
        self._use_scheduler = enable
        return self

    def add_system(self, system_cls: Type[BaseSystem]):
        """
        Register an additional system.

        Returns:
            Self for chaining
        """
        self._systems.append(system_cls)
        return self

    def with_logging(self, enable: bool = True, debug: bool = False):
        """
        Configure loguru sinks (stderr plus a rotating file in the app data dir).

        Returns:
            Self for chaining
        """
        self._logging_configured = enable
        self._debug = debug
        return self

    async def build(self) -> ServiceLocator:
        """
        Initialize and start all systems.

        Returns:
            ServiceLocator with all systems started
        """
        if self._logging_configured:
            from .logging import setup_logging
            setup_logging(debug_mode=self._debug, log_dir=self.paths.log_dir)
            logger.info(f"Starting {self.name}")

        locator = ServiceLocator(self.paths)

        from egdata_client.library.service import LibrarySyncService
        locator.register_system(EventBus)
        locator.register_system(LibrarySyncService)
        if self._use_scheduler:
            from .scheduling.periodic_scheduler import SyncScheduler
            locator.register_system(SyncScheduler)

        for sys_cls in self._systems:
            locator.register_system(sys_cls)

        await locator.start_all()
        return locator


async def run_until_stopped(builder: ApplicationBuilder) -> None:
    """
    Run the agent until SIGINT/SIGTERM, then stop every system.
    """
    locator = await builder.build()
    stop = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError):
            # Windows event loops have no signal handler support
            pass

    logger.info(f"{builder.name} running")
    try:
        await stop.wait()
    finally:
        await locator.stop_all()
        logger.info(f"{builder.name} stopped")
