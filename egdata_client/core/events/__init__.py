"""
Event System - Outward Notifications.

Provides:
- Signal: Synchronous observer used for settings changes and the message bus
- EventBus: Pub/sub for application events consumed by the UI layer
- Events: Event name constants

Usage:
    from egdata_client.core.events import EventBus, Events
    
    event_bus.subscribe(Events.GAMES_UPDATED, on_games_updated)
    event_bus.publish_sync(Events.GAMES_UPDATED, records)
"""
from .observer import Signal
from .bus import EventBus
from .constants import Events


__all__ = ["Signal", "EventBus", "Events"]
