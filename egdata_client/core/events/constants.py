"""
Event Type Constants.

Names of the events published to the UI layer. The string values are the
ones the desktop shell listens for.
"""


class Events:
    """
    Standard event names for EventBus.
    
    Example:
        >>> event_bus.subscribe(Events.UPLOAD_COMPLETED, handler)
    """
    
    # Structured log line (payload: SystemMessage)
    LOG = "log-event"
    
    # Registry replaced by a scan (payload: list of PackageRecord)
    GAMES_UPDATED = "games-updated"
    
    # Periodic batch finished (payload: list of UploadStatus)
    UPLOAD_COMPLETED = "periodic-upload-completed"
    
    # Settings replaced or updated (payload: SettingsConfig)
    SETTINGS_CHANGED = "settings-changed"
