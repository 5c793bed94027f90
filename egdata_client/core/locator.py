"""
Core - Service Locator

Holds the agent's systems and the state they share (paths, settings,
notifier), and starts/stops the systems in dependency order.
"""
from typing import Dict, List, Optional, Set, Type, TypeVar
from loguru import logger

from .base_system import BaseSystem
from .config import ConfigManager
from .events import Signal, EventBus
from .messaging import Notifier
from .paths import AgentPaths

T = TypeVar('T', bound=BaseSystem)


class ServiceLocator:
    """
    Registry for the agent's long-lived systems.

    Not a process-wide singleton: the application builds one and every
    system receives it at construction time, so tests can run several
    side by side.
    """

    def __init__(self, paths: Optional[AgentPaths] = None, config: Optional[ConfigManager] = None):
        self.paths = paths or AgentPaths()
        self.config = config or ConfigManager(str(self.paths.settings_file))
        self.bus = Signal("SystemBus")
        self.notifier = Notifier(self.bus)
        self._systems: Dict[Type[BaseSystem], BaseSystem] = {}
        self._started: List[BaseSystem] = []

    def register_system(self, system_cls: Type[T]) -> T:
        """Instantiate `system_cls` once; later calls return the same instance."""
        existing = self._systems.get(system_cls)
        if existing is not None:
            return existing

        instance = system_cls(self, self.config)
        self._systems[system_cls] = instance
        logger.debug(f"Registered system: {system_cls.__name__}")

        if isinstance(instance, EventBus):
            self.notifier.event_bus = instance
        return instance

    def get_system(self, system_cls: Type[T]) -> T:
        try:
            return self._systems[system_cls]
        except KeyError:
            raise KeyError(f"System {system_cls.__name__} not registered.") from None

    def has_system(self, system_cls: Type[BaseSystem]) -> bool:
        return system_cls in self._systems

    def start_order(self) -> List[BaseSystem]:
        """
        Registered systems, each after everything it depends on.

        Dependencies that were never registered are ignored.

        Raises:
            ValueError: dependency cycle
        """
        order: List[BaseSystem] = []
        done: Set[type] = set()
        visiting: Set[type] = set()

        def visit(cls: type) -> None:
            if cls in done:
                return
            if cls in visiting:
                raise ValueError(f"Circular system dependency at {cls.__name__}")
            visiting.add(cls)
            for dep in cls.depends_on:
                if dep in self._systems:
                    visit(dep)
            visiting.discard(cls)
            done.add(cls)
            order.append(self._systems[cls])

        for cls in self._systems:
            visit(cls)
        return order

    async def start_all(self) -> None:
        """
        Initialize systems in dependency order.

        A system that fails to start is logged; systems depending on it
        are not started.
        """
        failed: Set[type] = set()
        for system in self.start_order():
            cls = type(system)
            blocked = [dep.__name__ for dep in cls.depends_on if dep in failed]
            if blocked:
                logger.error(f"Not starting {system.name}: {', '.join(blocked)} failed to start")
                failed.add(cls)
                continue
            try:
                await system.initialize()
            except Exception as e:
                logger.exception(f"Failed to start system {system.name}: {e}")
                failed.add(cls)
                continue
            self._started.append(system)
            logger.info(f"System {system.name} started")

    async def stop_all(self) -> None:
        """Shut down started systems in reverse start order."""
        while self._started:
            system = self._started.pop()
            try:
                await system.shutdown()
                logger.info(f"System {system.name} stopped")
            except Exception as e:
                logger.exception(f"Failed to stop system {system.name}: {e}")
