"""
EventBus - Outward Event Channel

Single pub/sub channel between the sync engine and whatever presents its
state (desktop shell, CLI, tests). The engine publishes without waiting;
delivery to slow subscribers happens on the event loop.
"""
import asyncio
import inspect
import threading
from typing import Any, Callable, Dict, List, Optional, Set
from loguru import logger

from egdata_client.core.base_system import BaseSystem


class EventBus(BaseSystem):
    """
    Named-event pub/sub for the agent.

    Handlers may be plain callables or coroutine functions. `publish()`
    awaits every handler; `publish_sync()` is what the engine uses: plain
    handlers run inline and coroutine handlers become tasks on the bus
    loop. Calls from other threads are marshalled onto that loop.

    Usage:
        event_bus.subscribe(Events.GAMES_UPDATED, on_games)
        event_bus.publish_sync(Events.GAMES_UPDATED, records)
    """

    def __init__(self, locator, config):
        super().__init__(locator, config)
        self._subscribers: Dict[str, List[Callable]] = {}
        self._pending: Set[asyncio.Task] = set()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._loop_thread: Optional[int] = None

    async def initialize(self):
        self._loop = asyncio.get_running_loop()
        self._loop_thread = threading.get_ident()
        logger.info("EventBus initialized")
        await super().initialize()

    async def shutdown(self):
        """Drop subscribers and cancel handler tasks still running."""
        self._subscribers.clear()
        for task in list(self._pending):
            task.cancel()
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        await super().shutdown()

    def subscribe(self, event: str, handler: Callable) -> None:
        handlers = self._subscribers.setdefault(event, [])
        if handler not in handlers:
            handlers.append(handler)
            logger.debug(f"Subscribed to {event}: {getattr(handler, '__name__', handler)}")

    def unsubscribe(self, event: str, handler: Callable) -> None:
        handlers = self._subscribers.get(event)
        if handlers and handler in handlers:
            handlers.remove(handler)

    async def publish(self, event: str, data: Any = None) -> None:
        """Deliver `data` to every handler of `event` and wait for all of them."""
        for handler in list(self._subscribers.get(event, [])):
            try:
                result = handler(data)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Handler {getattr(handler, '__name__', handler)} failed for {event}: {e}")

    def publish_sync(self, event: str, data: Any = None) -> None:
        """
        Deliver `data` without waiting for coroutine handlers.

        From a thread other than the bus loop's, the whole delivery is
        scheduled on the loop instead.
        """
        if (self._loop is not None and not self._loop.is_closed()
                and threading.get_ident() != self._loop_thread):
            self._loop.call_soon_threadsafe(self._deliver, event, data)
            return
        self._deliver(event, data)

    def _deliver(self, event: str, data: Any) -> None:
        for handler in list(self._subscribers.get(event, [])):
            try:
                if inspect.iscoroutinefunction(handler):
                    self._spawn(handler(data), event)
                else:
                    handler(data)
            except Exception as e:
                logger.error(f"Handler {getattr(handler, '__name__', handler)} failed for {event}: {e}")

    def _spawn(self, coro, event: str) -> None:
        try:
            if self._loop is not None and not self._loop.is_closed():
                loop = self._loop
            else:
                loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.warning(f"No event loop to deliver {event}; async handler skipped")
            return
        task = loop.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(lambda t: self._finished(t, event))

    def _finished(self, task: asyncio.Task, event: str) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Async handler failed for {event}: {task.exception()}")
